from datetime import datetime
from vertex.models.db import db


class ProjectSnapshot(db.Model):
    """Serialized project document stored under its `vertex:<user>:<project>` key"""
    __tablename__ = "project_snapshots"

    storage_key = db.Column(db.String(512), primary_key=True)
    payload = db.Column(db.Text, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
