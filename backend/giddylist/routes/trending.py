from http import HTTPStatus

from flask import Blueprint, current_app, jsonify, request

from giddylist.services.trending_service import TrendingService
from giddylist.utils import get_int_arg, get_json_body

trending_bp = Blueprint('trending', __name__)


def _service():
    return TrendingService.from_config(current_app.config)


@trending_bp.route('/api/trending-gifts', methods=['GET'])
def list_trending():
    gifts, source = _service().list(
        age_range=request.args.get('age_range'),
        category=request.args.get('category'),
        limit=get_int_arg('limit', current_app.config.get('TRENDING_PER_PAGE', 12)),
    )
    return jsonify({
        'success': True,
        'data': gifts,
        'source': source
    }), HTTPStatus.OK


@trending_bp.route('/api/trending-gifts', methods=['POST'])
def add_trending():
    service = _service()
    service.require_database()
    data = get_json_body()

    saved, errors = service.add_from_urls(
        data.get('urls'),
        data.get('age_range'),
        data.get('category'),
    )
    payload = {
        'success': True,
        'data': [gift.to_dict() for gift in saved],
        'message': f'Successfully added {len(saved)} trending gifts'
    }
    if errors:
        payload['errors'] = errors
    return jsonify(payload), HTTPStatus.OK


@trending_bp.route('/api/trending-gifts', methods=['PUT'])
def refresh_trending():
    service = _service()
    service.require_database()
    data = request.get_json(silent=True) or {}

    inserted, terms = service.seed_curated(data.get('age_range'))
    return jsonify({
        'success': True,
        'message': f'Refreshed {len(inserted)} trending gifts',
        'data': [gift.to_dict() for gift in inserted],
        'search_terms_used': terms
    }), HTTPStatus.OK
