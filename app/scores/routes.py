"""
Score routes: direct reads, on-demand scoring and completion polling.
"""
import logging

from flask import Blueprint, request, jsonify

from app.auth.services import AuthService
from app.errors import ApiError
from .models import EntityKind
from .services import ScoreStore

logger = logging.getLogger(__name__)


def _register_entity_routes(bp: Blueprint, score_store: ScoreStore, auth_service: AuthService, kind: EntityKind):
    path = f"/{kind.value}s"

    def read_score(entity_id):
        """Latest persisted score; null when the entity was never scored."""
        uid, error = auth_service.require_auth_json()
        if error:
            return jsonify(error), 401
        score = score_store.get_score(uid, kind.value, entity_id)
        return jsonify({"success": True, "entity_id": entity_id, "score": score})

    def compute_score(entity_id):
        """Score one entity now and persist the result."""
        uid, error = auth_service.require_auth_json()
        if error:
            return jsonify(error), 401
        try:
            match = score_store.score_and_persist(uid, kind.value, entity_id)
        except ApiError as exc:
            return exc.to_response()
        score_store.invalidate(uid)
        return jsonify({"success": True, "entity_id": entity_id, "score": match.to_document()})

    def list_scores():
        """Completion status for polling, or a batch read with ?ids=a,b."""
        uid, error = auth_service.require_auth_json()
        if error:
            return jsonify(error), 401

        ids = request.args.get("ids")
        if ids:
            entity_ids = [item.strip() for item in ids.split(",") if item.strip()]
            scores = score_store.get_batch_scores(uid, kind.value, entity_ids)
            return jsonify({"success": True, "scores": scores})

        status = score_store.get_completion_status(uid, kind.value)
        return jsonify({"success": True, **status})

    bp.add_url_rule(f"{path}/<entity_id>/score", f"read_{kind.value}_score", read_score, methods=["GET"])
    bp.add_url_rule(f"{path}/<entity_id>/score", f"compute_{kind.value}_score", compute_score, methods=["POST"])
    bp.add_url_rule(f"{path}/scores", f"list_{kind.value}_scores", list_scores, methods=["GET"])


def create_scores_blueprint(score_store: ScoreStore, auth_service: AuthService) -> Blueprint:
    """Create score routes for products and routines."""
    bp = Blueprint('scores', __name__)

    for kind in EntityKind:
        _register_entity_routes(bp, score_store, auth_service, kind)

    @bp.route("/revalidate-scores", methods=["POST"])
    def revalidate_scores():
        """Evict the caller's cached score listings."""
        uid, error = auth_service.require_auth_json()
        if error:
            return jsonify(error), 401
        keys = score_store.invalidate(uid)
        logger.info(f"Revalidated score caches for {uid}")
        return jsonify({"success": True, "revalidated": keys})

    return bp
