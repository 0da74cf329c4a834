from vertex.models.db import db


class ExecutionLogRecord(db.Model):
    __tablename__ = "execution_log"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    at = db.Column(db.BigInteger, nullable=False, index=True)  # epoch ms
    channel = db.Column(db.String(20), nullable=False)
    language = db.Column(db.String(20), nullable=False)
    status = db.Column(db.String(20), nullable=False)
    user = db.Column(db.String(255), nullable=False)

    def to_dict(self):
        return {
            "at": self.at,
            "channel": self.channel,
            "language": self.language,
            "status": self.status,
            "user": self.user,
        }
