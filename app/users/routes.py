"""
User profile routes.
"""
import logging

from flask import Blueprint, request, jsonify

from app.auth.services import AuthService
from app.errors import ApiError
from .services import UserService

logger = logging.getLogger(__name__)


def create_users_blueprint(user_service: UserService, auth_service: AuthService) -> Blueprint:
    """Create user profile routes."""
    bp = Blueprint('users', __name__)

    @bp.route("/users/me", methods=["GET"])
    def get_me():
        uid, error = auth_service.require_auth_json()
        if error:
            return jsonify(error), 401
        try:
            user = user_service.get_user(uid)
        except ApiError as exc:
            return exc.to_response()
        return jsonify({"success": True, "user": user})

    @bp.route("/users/me/analysis", methods=["PUT"])
    def update_analysis():
        uid, error = auth_service.require_auth_json()
        if error:
            return jsonify(error), 401
        try:
            result = user_service.update_analysis(uid, request.get_json(silent=True) or {})
        except ApiError as exc:
            return exc.to_response()
        return jsonify({"success": True, **result})

    return bp
