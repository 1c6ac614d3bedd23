from http import HTTPStatus

from flask import Blueprint, jsonify, request

from giddylist.auth import get_optional_user_id, require_user_id
from giddylist.errors import BadRequest
from giddylist.services.registry_service import RegistryService
from giddylist.utils import get_json_body

registry_bp = Blueprint('registry', __name__)
registry_service = RegistryService()


@registry_bp.route('/api/registry', methods=['GET'])
def list_registries():
    user_id = require_user_id()
    registries = registry_service.list_for_user(user_id)
    return jsonify({
        'success': True,
        'registries': [registry.to_dict() for registry in registries]
    }), HTTPStatus.OK


@registry_bp.route('/api/registry', methods=['POST'])
def create_registry():
    user_id = require_user_id()
    registry = registry_service.create(user_id, get_json_body())
    return jsonify({
        'success': True,
        'registry': registry.to_dict()
    }), HTTPStatus.CREATED


@registry_bp.route('/api/registry/<slug>', methods=['GET'])
def get_registry(slug):
    view = registry_service.get_view(slug, get_optional_user_id())
    return jsonify({'success': True, **view}), HTTPStatus.OK


@registry_bp.route('/api/registry/<slug>', methods=['PUT'])
def update_registry(slug):
    user_id = require_user_id()
    registry = registry_service.update(user_id, slug, get_json_body())
    return jsonify({
        'success': True,
        'registry': registry.to_dict()
    }), HTTPStatus.OK


@registry_bp.route('/api/registry/<slug>', methods=['DELETE'])
def delete_registry(slug):
    user_id = require_user_id()
    registry_service.delete(user_id, slug)
    return jsonify({'success': True}), HTTPStatus.OK


@registry_bp.route('/api/registry/<slug>/items', methods=['POST'])
def add_registry_items(slug):
    user_id = require_user_id()
    data = get_json_body()

    wishlist_ids = data.get('wishlist_ids')
    if wishlist_ids is None and data.get('wishlist_id'):
        wishlist_ids = [data['wishlist_id']]
    if not isinstance(wishlist_ids, list):
        raise BadRequest('wishlist_ids must be a list')

    added = registry_service.add_items(user_id, slug, wishlist_ids)
    return jsonify({
        'success': True,
        'items': [item.to_dict() for item in added]
    }), HTTPStatus.CREATED


@registry_bp.route('/api/registry/<slug>/items/<wishlist_id>', methods=['DELETE'])
def remove_registry_item(slug, wishlist_id):
    user_id = require_user_id()
    registry_service.remove_item(user_id, slug, wishlist_id)
    return jsonify({'success': True}), HTTPStatus.OK


@registry_bp.route('/api/registry/<slug>/claim', methods=['POST'])
def claim_item(slug):
    data = get_json_body()
    claim = registry_service.claim(slug, data, get_optional_user_id())
    return jsonify({
        'success': True,
        'claim': claim.to_dict()
    }), HTTPStatus.OK


@registry_bp.route('/api/registry/<slug>/claim', methods=['DELETE'])
def remove_claim(slug):
    claim_id = request.args.get('claim_id')
    if not claim_id:
        raise BadRequest('Claim ID is required')
    user_id = require_user_id()
    registry_service.remove_claim(slug, claim_id, user_id)
    return jsonify({'success': True}), HTTPStatus.OK
