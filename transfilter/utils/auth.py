"""Shared authentication utilities.

Bearer tokens are HS256 JWTs carrying ``user_id`` and a ``capabilities`` list.
The decorators below set ``g.current_user_id`` and ``g.capabilities`` so routes
can build a render context for the actor.
"""

from functools import wraps
from flask import request, jsonify, current_app, g
import jwt


def _secret_key():
    return current_app.config['JWT_SECRET_KEY']


def issue_token(user_id, capabilities=()):
    """Create a token for a user (used by the host platform and in tests)."""
    payload = {'user_id': user_id, 'capabilities': list(capabilities)}
    return jwt.encode(payload, _secret_key(), algorithm='HS256')


def decode_token(auth_header):
    """Return the token payload from an Authorization header value.

    Raises:
        jwt.InvalidTokenError: The token is missing, expired or malformed.
    """
    if not auth_header:
        raise jwt.InvalidTokenError('Token is missing')
    # Support both "Bearer <token>" and raw token formats
    token = auth_header.split(' ')[1] if ' ' in auth_header else auth_header
    return jwt.decode(token, _secret_key(), algorithms=['HS256'])


def _set_actor(payload):
    g.current_user_id = payload.get('user_id') if payload else None
    g.capabilities = list(payload.get('capabilities') or []) if payload else []


def token_required(f):
    """
    Decorator to require valid JWT token.

    Usage:
        @bp.route('/protected')
        @token_required
        def protected_route():
            return jsonify({'user_id': g.current_user_id})
    """
    @wraps(f)
    def decorated(*args, **kwargs):
        auth_header = request.headers.get('Authorization')

        if not auth_header:
            return jsonify({'error': 'Token is missing'}), 401

        try:
            payload = decode_token(auth_header)
        except jwt.ExpiredSignatureError:
            return jsonify({'error': 'Token has expired'}), 401
        except jwt.InvalidTokenError:
            return jsonify({'error': 'Token is invalid'}), 401

        _set_actor(payload)
        return f(*args, **kwargs)
    return decorated


def token_optional(f):
    """
    Decorator that optionally validates JWT token.

    Anonymous or invalid tokens render as a reader with no capabilities.
    """
    @wraps(f)
    def decorated(*args, **kwargs):
        payload = None
        auth_header = request.headers.get('Authorization')

        if auth_header:
            try:
                payload = decode_token(auth_header)
            except jwt.InvalidTokenError:
                payload = None  # optional, read as anonymous

        _set_actor(payload)
        return f(*args, **kwargs)
    return decorated
