import logging
from sqlalchemy.exc import SQLAlchemyError
from vertex.models.db import db
from vertex.models.project_model import ProjectSnapshot

logger = logging.getLogger(__name__)


class StorageError(Exception):
    pass


class SqlSnapshotStorage:
    """Key/value store for project snapshots backed by the `project_snapshots` table.

    Every call pushes its own app context so it can be used from the
    autosave timer thread as well as from request handlers.
    """

    def __init__(self, app):
        self.app = app

    def read(self, key):
        with self.app.app_context():
            try:
                snapshot = db.session.get(ProjectSnapshot, key)
                return snapshot.payload if snapshot else None
            except SQLAlchemyError as e:
                logger.error(f"❌ Failed to read snapshot {key}: {str(e)}")
                raise StorageError(str(e)) from e

    def write(self, key, payload):
        with self.app.app_context():
            try:
                snapshot = db.session.get(ProjectSnapshot, key)
                if snapshot is None:
                    snapshot = ProjectSnapshot(storage_key=key, payload=payload)
                    db.session.add(snapshot)
                else:
                    snapshot.payload = payload
                db.session.commit()
            except SQLAlchemyError as e:
                db.session.rollback()
                logger.error(f"❌ Failed to write snapshot {key}: {str(e)}")
                raise StorageError(str(e)) from e
