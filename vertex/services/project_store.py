import json
import logging
import threading
import time
from datetime import datetime

from vertex.services.project_files import ProjectFile, default_files
from vertex.services.snapshot_storage import StorageError

logger = logging.getLogger(__name__)

AUTOSAVE_DEBOUNCE_SECONDS = 1.2
DEFAULT_PROJECT_NAME = 'My Vertex Project'

SAVE_STATE_READY = 'Ready'
SAVE_STATE_UNSAVED = 'Unsaved changes'
SAVE_STATE_SAVED = 'Saved'
SAVE_STATE_AUTOSAVED = 'Auto-saved'
SAVE_STATE_SUBMITTED = 'Submitted (read-only)'
SAVE_STATE_FAILED = 'Save failed'


class SubmittedProjectError(Exception):
    """Raised when a change is attempted on a submitted project"""


def now_ms():
    return int(time.time() * 1000)


def format_last_edited(timestamp_ms):
    moment = datetime.fromtimestamp(timestamp_ms / 1000)
    return f"Last edited: {moment.strftime('%d %b %Y, %H:%M:%S')}"


class ProjectStore:
    """In-memory copy of one user's project plus its persistence rules.

    Edits go into `files` straight away; the snapshot in storage follows
    after a quiet period (see `schedule_save`) or on an explicit save.
    Once submitted, nothing but the submission itself is ever written.
    """

    def __init__(self, storage, context, debounce_seconds=AUTOSAVE_DEBOUNCE_SECONDS,
                 default_project_name=DEFAULT_PROJECT_NAME, clock=now_ms):
        self.storage = storage
        self.context = context
        self.debounce_seconds = debounce_seconds
        self.default_project_name = default_project_name
        self.clock = clock

        self.project_name = default_project_name
        self.files = []
        self.active_file_id = None
        self.submitted = False
        self.dirty = False
        self.last_edited = clock()
        self.save_state = SAVE_STATE_READY

        self._timer = None
        self._lock = threading.RLock()

    @staticmethod
    def storage_key(user_id, project_name):
        return f"vertex:{user_id}:{project_name}"

    @property
    def key(self):
        return self.storage_key(self.context.id, self.project_name)

    @property
    def active_file(self):
        return self.get_file(self.active_file_id)

    @property
    def last_edited_label(self):
        return format_last_edited(self.last_edited)

    def get_file(self, file_id):
        for file in self.files:
            if file.id == file_id:
                return file
        return None

    def load(self, project_name=None):
        with self._lock:
            self.cancel_pending_save()
            self.project_name = (project_name or '').strip() or self.default_project_name
            self.dirty = False

            snapshot = self._read_snapshot()
            if snapshot is not None:
                files, active_file_id, submitted, last_edited = snapshot
                self.files = files
                self.active_file_id = active_file_id
                self.submitted = submitted
                self.last_edited = last_edited
                logger.info(f"📂 Loaded project {self.key} ({len(files)} files, submitted={submitted})")
                return

            self.files = default_files()
            self.active_file_id = self.files[0].id
            self.submitted = False
            self.last_edited = self.clock()
            logger.info(f"🆕 Created project {self.key} from starter files")

    def _read_snapshot(self):
        key = self.key
        try:
            raw = self.storage.read(key)
        except StorageError:
            logger.error(f"❌ Could not read project {key}, using starter files")
            return None
        if not raw:
            return None

        try:
            parsed = json.loads(raw)
            files = [ProjectFile.from_dict(item) for item in parsed['files']]
            if not files:
                raise ValueError("snapshot has no files")
            active_file_id = parsed.get('activeFileId')
            if not any(file.id == active_file_id for file in files):
                active_file_id = files[0].id
            last_edited = int(parsed.get('lastEdited') or self.clock())
            submitted = parsed.get('submitted', False)
            if not isinstance(submitted, bool):
                raise ValueError(f"submitted must be a boolean, got {submitted!r}")
            return files, active_file_id, submitted, last_edited
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            logger.error(f"⚠️ Failed to parse saved project {key}, resetting: {str(e)}")
            return None

    def _serialize(self, timestamp):
        return json.dumps({
            'files': [file.to_dict() for file in self.files],
            'activeFileId': self.active_file_id,
            'lastEdited': timestamp,
            'submitted': self.submitted,
        })

    def _write(self, timestamp):
        self.storage.write(self.key, self._serialize(timestamp))
        self.last_edited = timestamp

    def save(self, manual=False):
        """Persist the project. Returns False when nothing was written."""
        with self._lock:
            if self.submitted:
                return False
            try:
                self._write(self.clock())
            except StorageError:
                self.save_state = SAVE_STATE_FAILED
                return False
            self.save_state = SAVE_STATE_SAVED if manual else SAVE_STATE_AUTOSAVED
            self.dirty = False
            logger.info(f"💾 {self.save_state} project {self.key}")
            return True

    def schedule_save(self):
        """(Re)start the autosave timer so a burst of edits yields one write"""
        with self._lock:
            self.cancel_pending_save()
            timer = threading.Timer(self.debounce_seconds, self._autosave)
            timer.daemon = True
            self._timer = timer
            timer.start()

    def _autosave(self):
        with self._lock:
            if self._timer is not threading.current_thread():
                return
            self._timer = None
        self.save(manual=False)

    def cancel_pending_save(self):
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

    @property
    def save_pending(self):
        return self._timer is not None

    def mark_dirty(self):
        with self._lock:
            self.dirty = True
            self.save_state = SAVE_STATE_UNSAVED
            self.schedule_save()

    def set_active_file(self, file_id):
        with self._lock:
            if self.get_file(file_id) is None:
                raise KeyError(file_id)
            self.active_file_id = file_id

    def add_file(self, name):
        with self._lock:
            if self.submitted:
                raise SubmittedProjectError("Project has been submitted")
            name = (name or '').strip()
            if not name:
                raise ValueError("File name is required")
            new_file = ProjectFile.create(name)
            self.files.append(new_file)
            self.active_file_id = new_file.id
            logger.info(f"📄 Added {new_file.language} file {name} to {self.key}")
            self.save(manual=True)
            return new_file

    def submit(self):
        """Freeze the project and write the submitted snapshot once"""
        with self._lock:
            if self.submitted:
                return False
            self.cancel_pending_save()
            self.submitted = True
            self.save_state = SAVE_STATE_SUBMITTED
            try:
                self._write(self.clock())
            except StorageError:
                logger.error(f"❌ Submission of {self.key} was not persisted")
                self.submitted = False
                self.save_state = SAVE_STATE_FAILED
                return False
            self.dirty = False
            logger.info(f"🔒 Project {self.key} submitted")
            return True

    def close(self):
        self.cancel_pending_save()
