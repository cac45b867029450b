"""
Authentication routes.
"""
from flask import Blueprint, request, jsonify

from app.errors import ApiError
from .services import AuthService


def create_auth_blueprint(auth_service: AuthService) -> Blueprint:
    """Create authentication routes."""
    bp = Blueprint('auth', __name__)

    @bp.route("/auth/register", methods=["POST"])
    def register():
        """Create a user with a password."""
        payload = request.get_json(silent=True) or {}
        try:
            auth_service.register(str(payload.get("uid", "")), str(payload.get("password", "")))
        except ApiError as exc:
            return exc.to_response()
        return jsonify({"success": True}), 201

    @bp.route("/auth/token", methods=["POST"])
    def issue_token():
        """Exchange uid and password for a bearer token."""
        payload = request.get_json(silent=True) or {}
        try:
            token = auth_service.issue_token(str(payload.get("uid", "")).strip(), str(payload.get("password", "")))
        except ApiError as exc:
            return exc.to_response()
        return jsonify({"success": True, "token": token, "token_type": "Bearer"})

    return bp
