from flask import request, jsonify, g
from functools import wraps
import logging

logger = logging.getLogger(__name__)


def require_bearer_token(f):
    """
    Require the caller's Discord OAuth2 bearer token.
    The token identifies the acting user and authorizes command permission
    writes, so it is forwarded to Discord as-is.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        header = request.headers.get('Authorization', '')
        scheme, _, token = header.partition(' ')

        if not header:
            return jsonify({
                'error': 'Missing bearer token',
                'message': 'Authorization header is required',
                'code': 'AUTH_001'
            }), 401

        if scheme.lower() != 'bearer' or not token.strip():
            return jsonify({
                'error': 'Invalid authorization header',
                'message': 'Expected "Authorization: Bearer <token>"',
                'code': 'AUTH_002'
            }), 401

        g.bearer_token = token.strip()
        return f(*args, **kwargs)

    return decorated_function
