import logging
from vertex.services.project_files import map_language

logger = logging.getLogger(__name__)


class BufferWidget:
    """In-memory stand-in for the browser code editor"""

    def __init__(self):
        self.value = ''
        self.language = 'html'
        self.read_only = False

    def get_value(self):
        return self.value

    def set_value(self, value):
        self.value = value

    def set_language(self, language):
        self.language = language

    def set_read_only(self, read_only):
        self.read_only = read_only


class EditorSurface:
    """Keeps the editor widget and the store's active file in step"""

    def __init__(self, store, widget=None):
        self.store = store
        self.widget = widget or BufferWidget()

    def select_file(self, file_id):
        self.store.set_active_file(file_id)
        self.refresh()

    def refresh(self):
        file = self.store.active_file
        if file is None:
            return
        self.widget.set_value(file.content)
        self.widget.set_language(map_language(file.language))
        self.widget.set_read_only(self.store.submitted)

    def edit(self, text):
        """Apply a buffer change. Returns False if the project is frozen."""
        file = self.store.active_file
        if file is None:
            return False
        if self.store.submitted:
            # Put the saved content back even if input was not blocked
            self.widget.set_value(file.content)
            logger.info(f"Rejected edit to {file.name}: project is submitted")
            return False
        self.widget.set_value(text)
        file.content = text
        self.store.mark_dirty()
        return True

    def add_file(self, name):
        new_file = self.store.add_file(name)
        self.refresh()
        return new_file

    def tabs(self):
        return [
            {
                'id': file.id,
                'name': file.name,
                'language': file.language,
                'active': file.id == self.store.active_file_id,
                'disabled': self.store.submitted,
            }
            for file in self.store.files
        ]

    def file_rows(self):
        return [
            {
                'id': file.id,
                'name': file.name,
                'meta': file.language.upper(),
                'active': file.id == self.store.active_file_id,
                'disabled': self.store.submitted,
            }
            for file in self.store.files
        ]

    def describe(self):
        return {
            'buffer': self.widget.get_value(),
            'language_mode': self.widget.language,
            'read_only': self.widget.read_only,
        }
