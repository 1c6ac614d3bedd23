import uuid
from datetime import datetime, timezone

from giddylist import db


def new_id():
    return str(uuid.uuid4())


def utcnow():
    return datetime.now(timezone.utc)


def isoformat(value):
    return value.isoformat() if value else None


class TimestampMixin:
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow, nullable=False)
