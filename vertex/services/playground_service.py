import logging
import threading
from collections import OrderedDict

from vertex.sandbox.python_sandbox import PythonSandbox
from vertex.sandbox.validator import DenylistValidator
from vertex.services.editor_surface import EditorSurface
from vertex.services.execution_log_service import ExecutionLogService
from vertex.services.execution_router import ExecutionRouter
from vertex.services.project_store import ProjectStore, SAVE_STATE_READY
from vertex.services.snapshot_storage import SqlSnapshotStorage

logger = logging.getLogger(__name__)


class Playground:
    """One user's editing session on one project.

    The user context is handed in explicitly; nothing here looks up the
    current user on its own.
    """

    def __init__(self, context, storage, python_runner, execution_log=None, widget=None,
                 debounce_seconds=1.2, default_project_name='My Vertex Project'):
        self.context = context
        self.python_runner = python_runner
        self.store = ProjectStore(
            storage,
            context,
            debounce_seconds=debounce_seconds,
            default_project_name=default_project_name,
        )
        self.editor = EditorSurface(self.store, widget=widget)
        self.router = ExecutionRouter(self.store, context, python_runner, execution_log)

    def open(self, project_name=None):
        self.store.load(project_name)
        self.editor.refresh()
        self.store.save_state = SAVE_STATE_READY
        return self

    def select_file(self, file_id):
        self.editor.select_file(file_id)

    def edit(self, text):
        return self.editor.edit(text)

    def add_file(self, name):
        return self.editor.add_file(name)

    def save(self):
        return self.store.save(manual=True)

    def submit(self):
        submitted = self.store.submit()
        self.editor.refresh()
        return submitted

    def run(self):
        return self.router.run()

    def set_output_mode(self, mode):
        self.router.set_output_mode(mode)

    def describe(self):
        store = self.store
        return {
            'project_name': store.project_name,
            'user': self.context.to_dict(),
            'files': [file.to_dict() for file in store.files],
            'active_file_id': store.active_file_id,
            'submitted': store.submitted,
            'dirty': store.dirty,
            'save_state': store.save_state,
            'last_edited': store.last_edited,
            'last_edited_label': store.last_edited_label,
            'editor': self.editor.describe(),
            'tabs': self.editor.tabs(),
            'file_rows': self.editor.file_rows(),
            **self.router.describe(),
        }

    def close(self):
        self.store.close()
        shutdown = getattr(self.python_runner, 'shutdown', None)
        if shutdown is not None:
            shutdown()


class PlaygroundRegistry:
    """Open playground sessions for an app, keyed by (user id, project name).

    At most MAX_OPEN_PLAYGROUNDS sessions stay open. Opening one more closes
    the least recently used session: a pending autosave is written first,
    then its Python runner is shut down. The next open reloads the snapshot.
    """

    def __init__(self, app):
        self.app = app
        self.storage = SqlSnapshotStorage(app)
        self.execution_log = ExecutionLogService(app, limit=app.config['EXECUTION_LOG_LIMIT'])
        self._sessions = OrderedDict()
        self._lock = threading.Lock()

    def resolve_name(self, project_name):
        return (project_name or '').strip() or self.app.config['DEFAULT_PROJECT_NAME']

    def get(self, context, project_name):
        name = self.resolve_name(project_name)
        key = (context.id, name)
        evicted = []
        with self._lock:
            playground = self._sessions.get(key)
            if playground is not None:
                self._sessions.move_to_end(key)
                if playground.context.role != context.role:
                    # Role changed upstream; the runner is shared, only the context moves
                    playground.context = context
                    playground.router.context = context
                    playground.store.context = context
            else:
                playground = Playground(
                    context,
                    self.storage,
                    self.create_python_runner(),
                    execution_log=self.execution_log,
                    debounce_seconds=self.app.config['AUTOSAVE_DEBOUNCE_SECONDS'],
                    default_project_name=self.app.config['DEFAULT_PROJECT_NAME'],
                ).open(name)
                self._sessions[key] = playground
                logger.info(f"🚀 Opened playground {name} for {context.id}")
                limit = max(1, self.app.config['MAX_OPEN_PLAYGROUNDS'])
                while len(self._sessions) > limit:
                    evicted.append(self._sessions.popitem(last=False))
        for (user_id, evicted_name), session in evicted:
            logger.info(f"🧹 Evicting idle playground {evicted_name} for {user_id}")
            self._close_session(session)
        return playground

    def create_python_runner(self):
        config = self.app.config
        if config['PYTHON_RUNNER'] == 'celery':
            from vertex.services.remote_runner import CeleryPythonRunner
            from vertex.tasks.sandbox_tasks import run_python_task
            return CeleryPythonRunner(
                run_python_task,
                timeout=config['SANDBOX_TIMEOUT_SECONDS'] + config['SANDBOX_STARTUP_TIMEOUT_SECONDS'],
            )
        return PythonSandbox(
            validator=DenylistValidator(extra=config['SANDBOX_EXTRA_DENYLIST']),
            timeout=config['SANDBOX_TIMEOUT_SECONDS'],
            startup_timeout=config['SANDBOX_STARTUP_TIMEOUT_SECONDS'],
            max_output_size=config['MAX_OUTPUT_SIZE'],
        )

    def close(self, context, project_name):
        key = (context.id, self.resolve_name(project_name))
        with self._lock:
            playground = self._sessions.pop(key, None)
        if playground is not None:
            self._close_session(playground)
        return playground is not None

    def _close_session(self, playground):
        store = playground.store
        if store.save_pending:
            # Write the debounced edit now instead of dropping it with the timer
            store.cancel_pending_save()
            store.save(manual=False)
        playground.close()

    def close_all(self):
        with self._lock:
            sessions, self._sessions = list(self._sessions.values()), OrderedDict()
        for playground in sessions:
            playground.close()

    def __len__(self):
        return len(self._sessions)
