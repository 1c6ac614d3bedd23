from http import HTTPStatus

from flask import Blueprint, jsonify, request

from giddylist.auth import require_user_id
from giddylist.errors import BadRequest
from giddylist.services.notification_service import list_notifications, mark_read
from giddylist.utils import get_int_arg

notifications_bp = Blueprint('notifications', __name__)


@notifications_bp.route('/api/notifications', methods=['GET'])
def get_notifications():
    user_id = require_user_id()
    notifications = list_notifications(
        user_id,
        unread_only=request.args.get('unread') == 'true',
        limit=get_int_arg('limit', 50),
    )
    return jsonify({
        'success': True,
        'notifications': [n.to_dict() for n in notifications],
        'unread_count': sum(1 for n in notifications if not n.is_read)
    }), HTTPStatus.OK


@notifications_bp.route('/api/notifications/read', methods=['POST'])
def read_notifications():
    user_id = require_user_id()
    data = request.get_json(silent=True) or {}
    ids = data.get('ids')
    if ids is not None and not isinstance(ids, list):
        raise BadRequest('ids must be a list')

    updated = mark_read(user_id, ids)
    return jsonify({'success': True, 'updated': updated}), HTTPStatus.OK
