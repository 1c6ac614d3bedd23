import hmac
import logging

import requests
from flask import current_app, request

from giddylist.errors import Forbidden, Unauthorized


class AuthService:
    """Validates bearer tokens against the hosted identity service."""

    def __init__(self, base_url, api_key, session=None, timeout=10):
        self.base_url = (base_url or '').rstrip('/')
        self.api_key = api_key
        self.session = session or requests.Session()
        self.timeout = timeout
        self.logger = logging.getLogger(__name__)

    def get_user(self, token):
        """Return the identity service's user dict, or None if the token is bad."""
        if not token or not self.base_url:
            return None
        try:
            response = self.session.get(
                f"{self.base_url}/auth/v1/user",
                headers={
                    'Authorization': f'Bearer {token}',
                    'apikey': self.api_key or '',
                },
                timeout=self.timeout
            )
            if response.status_code != 200:
                return None
            user = response.json()
        except (requests.RequestException, ValueError) as e:
            self.logger.warning(f"Token validation failed: {str(e)}")
            return None
        return user if isinstance(user, dict) and user.get('id') else None

    def get_user_id(self, token):
        user = self.get_user(token)
        return user['id'] if user else None


def get_bearer_token():
    header = request.headers.get('Authorization')
    if not header:
        return None
    return header.replace('Bearer ', '', 1).strip() or None


def get_optional_user_id():
    """User id for the request, or None when anonymous or the token is invalid."""
    token = get_bearer_token()
    if not token:
        return None
    return current_app.extensions['auth_service'].get_user_id(token)


def require_user_id():
    if not get_bearer_token():
        raise Unauthorized('Unauthorized')
    user_id = get_optional_user_id()
    if not user_id:
        raise Unauthorized('Unauthorized')
    return user_id


def is_admin(user_id):
    from giddylist import db
    from giddylist.models import CreatorProfile

    profile = db.session.get(CreatorProfile, user_id) if user_id else None
    return bool(profile and profile.is_admin)


def require_admin():
    user_id = require_user_id()
    if not is_admin(user_id):
        raise Forbidden('Forbidden - Admin access required')
    return user_id


def verify_cron_secret():
    secret = current_app.config.get('CRON_SECRET')
    if not secret:
        current_app.logger.warning("CRON_SECRET not configured")
        return False
    header = request.headers.get('Authorization', '')
    return hmac.compare_digest(header.encode('utf-8'), f'Bearer {secret}'.encode('utf-8'))
