# Overview: Request authentication decorators for API routes.

from functools import wraps
from flask import request, jsonify, g

from .services import session_service


def _bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    return auth_header.split(" ", 1)[1].strip() or None


def _authenticate():
    token = _bearer_token()
    if not token:
        return None, (jsonify({"error": "Unauthorized"}), 401)

    context = session_service.validate_session(token)
    if not context:
        return None, (jsonify({"error": "Unauthorized"}), 401)

    g.session_context = context
    g.token = token
    return context, None


def require_admin(f):
    """
    Require an admin session.

    Sets g.current_user and g.session_context.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        context, error = _authenticate()
        if error:
            return error
        if not context.is_admin:
            return jsonify({"error": "Forbidden"}), 403

        g.current_user = context.user
        return f(*args, **kwargs)

    return decorated_function


def require_terminal(f):
    """
    Require a bound store-terminal session.

    Sets g.store_id, g.brand_id and g.device_id from the session; routes
    never take the store from the request body.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        context, error = _authenticate()
        if error:
            return error
        if context.is_admin:
            return jsonify({"error": "Forbidden"}), 403

        g.store_id = context.store_id
        g.brand_id = context.brand_id
        g.device_id = context.device_id
        return f(*args, **kwargs)

    return decorated_function
