import logging
from sqlalchemy.exc import SQLAlchemyError
from vertex.models.db import db
from vertex.models.execution_log_model import ExecutionLogRecord
from vertex.services.project_store import now_ms

logger = logging.getLogger(__name__)

EXECUTION_LOG_LIMIT = 50


class ExecutionLogService:
    """Audit trail of run attempts, trimmed to the newest `limit` records"""

    def __init__(self, app, limit=EXECUTION_LOG_LIMIT):
        self.app = app
        self.limit = limit

    def append(self, channel, language, status, user, at=None):
        with self.app.app_context():
            try:
                record = ExecutionLogRecord(
                    at=at if at is not None else now_ms(),
                    channel=channel,
                    language=language,
                    status=status,
                    user=user,
                )
                db.session.add(record)
                db.session.flush()

                keep = db.select(ExecutionLogRecord.id) \
                    .order_by(ExecutionLogRecord.id.desc()) \
                    .limit(self.limit) \
                    .subquery()
                dropped = ExecutionLogRecord.query \
                    .filter(ExecutionLogRecord.id.notin_(db.select(keep.c.id))) \
                    .delete(synchronize_session=False)
                db.session.commit()

                logger.info(f"📝 Logged {channel}/{language} run for {user}: {status}")
                if dropped:
                    logger.debug(f"Dropped {dropped} old execution log records")
                return record.to_dict()
            except SQLAlchemyError as e:
                db.session.rollback()
                logger.error(f"❌ Failed to append execution log record: {str(e)}")
                return None

    def records(self):
        """All retained records, oldest first"""
        with self.app.app_context():
            records = ExecutionLogRecord.query.order_by(ExecutionLogRecord.id.asc()).all()
            return [record.to_dict() for record in records]
