# Overview: Flask API routes for admin authentication; parses input and returns JSON responses.

from flask import Blueprint, current_app, g, jsonify

from ..decorators import require_admin
from ..services import auth_service, session_service
from . import json_body


auth_bp = Blueprint("auth", __name__, url_prefix="/api")


@auth_bp.post("/auth/login")
def login():
    """
    Request body:
    {
        "email": "admin@freshguard.local",
        "password": "..."
    }
    """
    data = json_body()
    email = auth_service.normalize_email(data.get("email"))
    password = str(data.get("password") or "")

    if not email or not password:
        return jsonify({"error": "email and password are required"}), 400

    user = auth_service.authenticate_admin(email, password)
    if not user:
        current_app.logger.warning("Failed admin login for %s", email)
        return jsonify({"error": "Invalid credentials"}), 401

    _session, token = session_service.create_admin_session(user)
    return jsonify({
        "token": token,
        "user": {"id": user.id, "email": user.email, "role": user.role},
    }), 200


@auth_bp.post("/auth/logout")
@require_admin
def logout():
    session_service.revoke_session(g.token)
    return "", 204


@auth_bp.get("/admin/me")
@require_admin
def me():
    user = g.current_user
    return jsonify({"id": user.id, "email": user.email, "role": user.role}), 200
