import logging
from http import HTTPStatus

from flask import jsonify
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Error carrying the HTTP status it should be rendered with."""

    status = HTTPStatus.INTERNAL_SERVER_ERROR

    def __init__(self, message, status=None, **extra):
        super().__init__(message)
        self.message = message
        if status is not None:
            self.status = status
        self.extra = extra

    def to_dict(self):
        payload = {'success': False, 'error': self.message}
        payload.update(self.extra)
        return payload


class BadRequest(ApiError):
    status = HTTPStatus.BAD_REQUEST


class Unauthorized(ApiError):
    status = HTTPStatus.UNAUTHORIZED


class Forbidden(ApiError):
    status = HTTPStatus.FORBIDDEN


class NotFound(ApiError):
    status = HTTPStatus.NOT_FOUND


class Conflict(ApiError):
    status = HTTPStatus.CONFLICT


class ServiceUnavailable(ApiError):
    status = HTTPStatus.SERVICE_UNAVAILABLE


def register_error_handlers(app):
    from giddylist import db

    @app.errorhandler(ApiError)
    def handle_api_error(error):
        return jsonify(error.to_dict()), error.status

    @app.errorhandler(SQLAlchemyError)
    def handle_database_error(error):
        db.session.rollback()
        logger.error(f"Database error: {str(error)}")
        return jsonify({
            'success': False,
            'error': str(getattr(error, 'orig', None) or error)
        }), HTTPStatus.INTERNAL_SERVER_ERROR

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        return jsonify({'success': False, 'error': error.description}), error.code

    @app.errorhandler(Exception)
    def handle_unexpected(error):
        logger.exception(f"Unhandled error: {str(error)}")
        return jsonify({
            'success': False,
            'error': 'Internal server error'
        }), HTTPStatus.INTERNAL_SERVER_ERROR
