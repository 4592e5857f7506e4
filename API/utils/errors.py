# API/utils/errors.py
# ============================================================================
# Error handlers for the admin API
# ============================================================================

import logging
from flask import jsonify

from Utils.errors import (
    AccessDenied,
    ConfigurationError,
    NotFound,
    PermissionsManagerError,
    RemoteRejected,
    UpstreamRequestError,
)

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    NotFound: 404,
    AccessDenied: 403,
    RemoteRejected: 502,
    UpstreamRequestError: 502,
    ConfigurationError: 500,
}


def register_error_handlers(app):
    """Register error handlers for the Flask app"""

    @app.errorhandler(PermissionsManagerError)
    def permissions_error(error):
        status = ERROR_STATUS.get(type(error), 500)
        if status >= 500:
            logger.error(f"{type(error).__name__}: {error.message} {error.context}")
        body = error.to_dict()
        body['code'] = f"HTTP_{status}"
        return jsonify(body), status

    @app.errorhandler(ValueError)
    def invalid_value(error):
        return jsonify({
            'error': 'Bad request',
            'message': str(error),
            'code': 'HTTP_400'
        }), 400

    @app.errorhandler(404)
    def not_found(error):
        return jsonify({
            'error': 'Not found',
            'message': 'The requested endpoint does not exist',
            'code': 'HTTP_404'
        }), 404

    @app.errorhandler(500)
    def internal_error(error):
        return jsonify({
            'error': 'Internal server error',
            'message': 'An unexpected error occurred',
            'code': 'HTTP_500'
        }), 500

    @app.errorhandler(400)
    def bad_request(error):
        return jsonify({
            'error': 'Bad request',
            'message': str(error),
            'code': 'HTTP_400'
        }), 400
