import logging

from giddylist import db
from giddylist.models import Notification

logger = logging.getLogger(__name__)


def notify(user_id, type, title, message=None, data=None):
    """Queue a notification on the current session; the caller commits."""
    if not user_id:
        return None
    notification = Notification(
        user_id=user_id,
        type=type,
        title=title,
        message=message,
        data=data,
    )
    db.session.add(notification)
    logger.debug(f"Notification '{type}' queued for {user_id}")
    return notification


def list_notifications(user_id, unread_only=False, limit=50):
    query = Notification.query.filter_by(user_id=user_id)
    if unread_only:
        query = query.filter_by(is_read=False)
    return query.order_by(Notification.created_at.desc()).limit(limit).all()


def mark_read(user_id, ids=None):
    query = Notification.query.filter_by(user_id=user_id, is_read=False)
    if ids:
        query = query.filter(Notification.id.in_(ids))
    count = query.update({'is_read': True}, synchronize_session=False)
    db.session.commit()
    return count
