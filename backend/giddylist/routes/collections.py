from http import HTTPStatus

from flask import Blueprint, jsonify, request

from giddylist.auth import get_optional_user_id, require_user_id
from giddylist.services.collection_service import CollectionService
from giddylist.utils import get_int_arg, get_json_body

collections_bp = Blueprint('collections', __name__)
collection_service = CollectionService()


@collections_bp.route('/api/collections', methods=['GET'])
def list_collections():
    limit = get_int_arg('limit', 20)
    offset = get_int_arg('offset', 0)
    collections, total = collection_service.list_public(
        age_range=request.args.get('age_range'),
        category=request.args.get('category'),
        limit=limit,
        offset=offset,
    )
    return jsonify({
        'success': True,
        'collections': [collection.to_dict() for collection in collections],
        'total': total,
        'limit': limit,
        'offset': offset,
    }), HTTPStatus.OK


@collections_bp.route('/api/collections', methods=['POST'])
def create_collection():
    user_id = require_user_id()
    collection = collection_service.create(user_id, get_json_body())
    return jsonify({
        'success': True,
        'collection': collection.to_dict()
    }), HTTPStatus.CREATED


@collections_bp.route('/api/collections/<slug>', methods=['GET'])
def get_collection(slug):
    view = collection_service.get_view(slug, get_optional_user_id())
    return jsonify({'success': True, **view}), HTTPStatus.OK


@collections_bp.route('/api/collections/<slug>', methods=['DELETE'])
def delete_collection(slug):
    user_id = require_user_id()
    collection_service.delete(user_id, slug)
    return jsonify({'success': True}), HTTPStatus.OK


@collections_bp.route('/api/collections/<slug>/items', methods=['POST'])
def add_collection_item(slug):
    user_id = require_user_id()
    item = collection_service.add_item(user_id, slug, get_json_body())
    return jsonify({'success': True, 'item': item.to_dict()}), HTTPStatus.CREATED
