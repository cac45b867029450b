"""
Routine routes.
"""
import logging

from flask import Blueprint, request, jsonify

from app.auth.services import AuthService
from app.errors import ApiError
from .services import RoutineService

logger = logging.getLogger(__name__)


def create_routines_blueprint(routine_service: RoutineService, auth_service: AuthService) -> Blueprint:
    """Create routine routes."""
    bp = Blueprint('routines', __name__)

    @bp.route("/routines", methods=["GET"])
    def list_routines():
        """Public, non-deleted routines."""
        routines = routine_service.catalog_service.get_public_routines()
        return jsonify({"success": True, "routines": [r.model_dump() for r in routines]})

    @bp.route("/routines/private", methods=["GET"])
    def list_private_routines():
        """The caller's own routines, public or private."""
        uid, error = auth_service.require_auth_json()
        if error:
            return jsonify(error), 401
        routines = routine_service.list_private_routines(uid)
        return jsonify({"success": True, "routines": [r.model_dump() for r in routines]})

    @bp.route("/routines/<routine_id>", methods=["GET"])
    def get_routine(routine_id):
        uid, _ = auth_service.require_auth_json()
        try:
            routine = routine_service.get_visible_routine(uid, routine_id)
        except ApiError as exc:
            return exc.to_response()
        return jsonify({"success": True, "routine": routine.model_dump()})

    @bp.route("/routines", methods=["POST"])
    def create_routine():
        uid, error = auth_service.require_auth_json()
        if error:
            return jsonify(error), 401
        try:
            routine, rescore = routine_service.create_routine(uid, request.get_json(silent=True) or {})
        except ApiError as exc:
            return exc.to_response()
        return jsonify({"success": True, "routine": routine.model_dump(), "rescore": rescore}), 201

    @bp.route("/routines/<routine_id>/adapt", methods=["POST"])
    def adapt_routine(routine_id):
        uid, error = auth_service.require_auth_json()
        if error:
            return jsonify(error), 401
        try:
            routine, rescore = routine_service.adapt_routine(uid, routine_id, request.get_json(silent=True))
        except ApiError as exc:
            return exc.to_response()
        return jsonify({"success": True, "routine": routine.model_dump(), "rescore": rescore}), 201

    @bp.route("/routines/<routine_id>", methods=["PUT"])
    def edit_routine(routine_id):
        uid, error = auth_service.require_auth_json()
        if error:
            return jsonify(error), 401
        try:
            routine, rescore = routine_service.edit_routine(uid, routine_id, request.get_json(silent=True) or {})
        except ApiError as exc:
            return exc.to_response()
        return jsonify({"success": True, "routine": routine.model_dump(), "rescore": rescore})

    @bp.route("/routines/<routine_id>", methods=["DELETE"])
    def delete_routine(routine_id):
        uid, error = auth_service.require_auth_json()
        if error:
            return jsonify(error), 401
        try:
            rescore = routine_service.delete_routine(uid, routine_id)
        except ApiError as exc:
            return exc.to_response()
        return jsonify({"success": True, "rescore": rescore})

    return bp
