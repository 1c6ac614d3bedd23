from http import HTTPStatus

from flask import Blueprint, jsonify, request

from giddylist.auth import get_optional_user_id, require_user_id
from giddylist.errors import BadRequest
from giddylist.services.profile_service import ProfileService
from giddylist.utils import get_json_body

profiles_bp = Blueprint('profiles', __name__)
profile_service = ProfileService()


@profiles_bp.route('/api/profiles/me', methods=['GET'])
def get_my_profile():
    user_id = require_user_id()
    profile = profile_service.get_own(user_id)
    return jsonify({
        'success': True,
        'profile': profile.to_dict(include_private=True)
    }), HTTPStatus.OK


@profiles_bp.route('/api/profiles/me', methods=['PUT'])
def update_my_profile():
    user_id = require_user_id()
    profile = profile_service.upsert_own(user_id, get_json_body())
    return jsonify({
        'success': True,
        'profile': profile.to_dict(include_private=True)
    }), HTTPStatus.OK


@profiles_bp.route('/api/profiles/<username>', methods=['GET'])
def get_profile(username):
    view = profile_service.get_view(username, get_optional_user_id())
    return jsonify({'success': True, **view}), HTTPStatus.OK


@profiles_bp.route('/api/profiles/<username>/follow', methods=['POST'])
def follow(username):
    user_id = require_user_id()
    target = profile_service.follow(user_id, username)
    return jsonify({
        'success': True,
        'following': True,
        'followers_count': target.total_followers
    }), HTTPStatus.OK


@profiles_bp.route('/api/profiles/<username>/follow', methods=['DELETE'])
def unfollow(username):
    user_id = require_user_id()
    target = profile_service.unfollow(user_id, username)
    return jsonify({
        'success': True,
        'following': False,
        'followers_count': target.total_followers
    }), HTTPStatus.OK


@profiles_bp.route('/api/guide/become', methods=['POST'])
def become_guide():
    user_id = require_user_id()
    data = request.get_json(silent=True) or {}
    profile = profile_service.become_guide(user_id, data)
    return jsonify({
        'success': True,
        'profile': profile.to_dict(include_private=True)
    }), HTTPStatus.OK


@profiles_bp.route('/api/earnings', methods=['GET'])
def earnings_summary():
    user_id = require_user_id()
    monthly_views = request.args.get('monthly_views')
    if monthly_views is not None:
        try:
            monthly_views = int(monthly_views)
        except ValueError:
            raise BadRequest('monthly_views must be an integer')

    summary = profile_service.earnings_summary(user_id, monthly_views)
    return jsonify({'success': True, 'earnings': summary}), HTTPStatus.OK


@profiles_bp.route('/api/earnings/payout', methods=['POST'])
def request_payout():
    user_id = require_user_id()
    amount = profile_service.request_payout(user_id)
    return jsonify({
        'success': True,
        'amount': amount,
        'message': 'Payout requested'
    }), HTTPStatus.OK
