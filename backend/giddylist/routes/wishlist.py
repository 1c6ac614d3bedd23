from http import HTTPStatus

from flask import Blueprint, current_app, jsonify, request

from giddylist.auth import get_bearer_token, require_user_id
from giddylist.models.base import isoformat
from giddylist.services.wishlist_service import WishlistService
from giddylist.utils import get_json_body

wishlist_bp = Blueprint('wishlist', __name__)
wishlist_service = WishlistService()


def _kid_payload(kid):
    data = kid.to_dict()
    data['wishlist_items'] = [item.to_dict() for item in wishlist_service.list_items(
        kid.user_id, kid.id)]
    return data


@wishlist_bp.route('/api/kids', methods=['GET'])
def list_kids():
    user_id = require_user_id()
    kids = wishlist_service.list_kids(user_id)
    return jsonify({
        'success': True,
        'kids': [_kid_payload(kid) for kid in kids]
    }), HTTPStatus.OK


@wishlist_bp.route('/api/kids', methods=['POST'])
def create_kid():
    user_id = require_user_id()
    kid = wishlist_service.create_kid(user_id, get_json_body())
    return jsonify({'success': True, 'kid': kid.to_dict()}), HTTPStatus.CREATED


@wishlist_bp.route('/api/kids/<kid_id>', methods=['PUT'])
def update_kid(kid_id):
    user_id = require_user_id()
    kid = wishlist_service.update_kid(user_id, kid_id, get_json_body())
    return jsonify({'success': True, 'kid': kid.to_dict()}), HTTPStatus.OK


@wishlist_bp.route('/api/kids/<kid_id>', methods=['DELETE'])
def delete_kid(kid_id):
    user_id = require_user_id()
    wishlist_service.delete_kid(user_id, kid_id)
    return jsonify({'success': True}), HTTPStatus.OK


@wishlist_bp.route('/api/wishlist', methods=['POST'])
def add_wishlist_item():
    user_id = require_user_id()
    item = wishlist_service.add_from_url(user_id, get_json_body())
    return jsonify({'success': True, 'item': item.to_dict()}), HTTPStatus.CREATED


@wishlist_bp.route('/api/wishlist/<item_id>', methods=['PUT'])
def update_wishlist_item(item_id):
    user_id = require_user_id()
    item = wishlist_service.update_item(user_id, item_id, get_json_body())
    return jsonify({'success': True, 'item': item.to_dict()}), HTTPStatus.OK


@wishlist_bp.route('/api/wishlist/<item_id>', methods=['DELETE'])
def delete_wishlist_item(item_id):
    user_id = require_user_id()
    wishlist_service.delete_item(user_id, item_id)
    return jsonify({'success': True}), HTTPStatus.OK


@wishlist_bp.route('/api/wishlist/<item_id>/refresh', methods=['POST'])
def refresh_wishlist_item(item_id):
    user_id = require_user_id()
    item = wishlist_service.refresh(user_id, item_id)
    return jsonify({'success': True, 'item': item.to_dict()}), HTTPStatus.OK


@wishlist_bp.route('/api/wishlist/add-external', methods=['POST'])
def add_external_item():
    user_id = require_user_id()
    item = wishlist_service.add_external(user_id, get_json_body())
    return jsonify({
        'success': True,
        'item': item.to_dict(),
        'message': 'Item added successfully'
    }), HTTPStatus.CREATED


@wishlist_bp.route('/api/extension/auth', methods=['GET'])
def extension_auth():
    """Login state and kid list for the browser extension.

    Anonymous callers get ``isLoggedIn: false`` with a 200, never a 401.
    """
    token = get_bearer_token() or request.cookies.get('sb-access-token')
    user = current_app.extensions['auth_service'].get_user(token) if token else None
    if not user:
        return jsonify({'isLoggedIn': False, 'kids': []}), HTTPStatus.OK

    kids = wishlist_service.list_kids(user['id'])
    return jsonify({
        'isLoggedIn': True,
        'userId': user['id'],
        'email': user.get('email'),
        'kids': [{
            'id': kid.id,
            'name': kid.name,
            'birthdate': isoformat(kid.birthdate),
            'avatar_url': kid.avatar_url,
        } for kid in kids]
    }), HTTPStatus.OK
