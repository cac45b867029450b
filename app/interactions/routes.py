"""
Interaction routes.

Creating an interaction that already exists is an idempotent success
reported with HTTP 208.
"""
import logging

from flask import Blueprint, request, jsonify

from app.auth.services import AuthService
from app.errors import ApiError
from .models import CreateOutcome
from .services import InteractionService

logger = logging.getLogger(__name__)


def create_interactions_blueprint(interaction_service: InteractionService, auth_service: AuthService) -> Blueprint:
    """Create interaction routes."""
    bp = Blueprint('interactions', __name__)

    @bp.route("/interactions/<entity_type>/<entity_id>/<interaction_type>", methods=["GET"])
    def interaction_exists(entity_type, entity_id, interaction_type):
        uid, error = auth_service.require_auth_json()
        if error:
            return jsonify(error), 401
        try:
            exists = interaction_service.exists(uid, entity_type, entity_id, interaction_type)
        except ApiError as exc:
            return exc.to_response()
        return jsonify({"success": True, "exists": exists})

    @bp.route("/interactions/<entity_type>/<entity_id>/<interaction_type>", methods=["POST"])
    def create_interaction(entity_type, entity_id, interaction_type):
        uid, error = auth_service.require_auth_json()
        if error:
            return jsonify(error), 401
        try:
            result = interaction_service.record(uid, entity_type, entity_id, interaction_type)
        except ApiError as exc:
            return exc.to_response()

        if result["outcome"] is CreateOutcome.ALREADY_EXISTS:
            return jsonify({"success": True, "already_exists": True}), 208
        return jsonify({"success": True, "already_exists": False, "score": result["score"]})

    @bp.route("/interactions/<entity_type>/<entity_id>/<interaction_type>", methods=["DELETE"])
    def delete_interaction(entity_type, entity_id, interaction_type):
        uid, error = auth_service.require_auth_json()
        if error:
            return jsonify(error), 401
        try:
            result = interaction_service.remove(uid, entity_type, entity_id, interaction_type)
        except ApiError as exc:
            return exc.to_response()
        return jsonify({"success": True, "score": result["score"]})

    @bp.route("/interactions/<entity_type>", methods=["GET"])
    def list_interactions(entity_type):
        """The caller's interactions of one entity type, newest first."""
        uid, error = auth_service.require_auth_json()
        if error:
            return jsonify(error), 401
        try:
            interactions = interaction_service.list_for_user(uid, entity_type, request.args.get("type"))
        except ApiError as exc:
            return exc.to_response()
        return jsonify({"success": True, "interactions": [item.model_dump() for item in interactions]})

    return bp
