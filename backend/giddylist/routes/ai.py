from http import HTTPStatus

from flask import Blueprint, current_app, jsonify

from giddylist.auth import get_optional_user_id
from giddylist.errors import BadRequest, NotFound
from giddylist.models import Kid
from giddylist.services.suggestion_service import SUGGESTION_CONTEXTS
from giddylist.utils import get_json_body

ai_bp = Blueprint('ai', __name__)


@ai_bp.route('/api/ai/suggestions', methods=['POST'])
def suggestions():
    data = get_json_body()

    context = data.get('context') or 'wishlist'
    if context not in SUGGESTION_CONTEXTS:
        raise BadRequest(f"context must be one of: {', '.join(SUGGESTION_CONTEXTS)}")

    try:
        limit = min(max(int(data.get('limit') or 5), 1), 10)
        age = int(data['age']) if data.get('age') is not None else None
    except (TypeError, ValueError):
        raise BadRequest('age and limit must be integers')

    kid = None
    if data.get('kid_id'):
        # Only the parent may pull suggestions built from a kid's preferences
        kid = Kid.query.filter_by(id=data['kid_id'], user_id=get_optional_user_id()).first()
        if not kid:
            raise NotFound('Kid not found')

    service = current_app.extensions['suggestion_service']
    results = service.suggest(
        kid=kid,
        context=context,
        existing_items=data.get('existing_items'),
        age=age,
        interests=data.get('interests'),
        limit=limit,
    )
    return jsonify({'success': True, 'suggestions': results}), HTTPStatus.OK
