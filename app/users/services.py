"""
User profile services.

Saving a hair analysis derives the user's follicle id. When one of the
core attributes changed (or on the first analysis) the analysis time is
stamped, which marks every existing score stale, and a full rescore is
started.
"""
import logging
from typing import Any, Dict, Optional

from pydantic import ValidationError as PydanticValidationError

from match_service.follicle import describe_follicle_id, generate_follicle_id
from match_service.models import CORE_ANALYSIS_FIELDS, HairAnalysis
from match_service.store import DocumentStore, utc_now_iso
from app.auth.services import USERS_COLLECTION
from app.errors import NotFound, validation_error_from_pydantic
from app.scores.services import ScoreStore

logger = logging.getLogger(__name__)

PRIVATE_FIELDS = ("password_hash",)


class UserService:
    """Read user profiles and record hair analyses."""

    def __init__(self, store: DocumentStore, score_store: ScoreStore):
        self.store = store
        self.score_store = score_store

    def get_user(self, uid: str) -> Dict[str, Any]:
        doc = self.store.get(USERS_COLLECTION, uid)
        if doc is None:
            raise NotFound("user-not-found")
        user = {key: value for key, value in doc.data.items() if key not in PRIVATE_FIELDS}
        user["uid"] = uid
        if user.get("follicle_id"):
            user["follicle_description"] = describe_follicle_id(user["follicle_id"])
        return user

    def get_follicle_id(self, uid: str) -> Optional[str]:
        return self.score_store.get_follicle_id(uid)

    @staticmethod
    def core_changed(previous: Optional[Dict[str, Any]], analysis: HairAnalysis) -> bool:
        if not previous:
            return True
        return any(previous.get(name) != getattr(analysis, name) for name in CORE_ANALYSIS_FIELDS)

    def update_analysis(self, uid: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Store a hair analysis; rescore everything if the profile changed."""
        try:
            analysis = HairAnalysis(**(payload or {}))
        except PydanticValidationError as exc:
            raise validation_error_from_pydantic(exc)

        existing = self.store.get(USERS_COLLECTION, uid)
        previous = existing.get("hair_analysis") if existing else None
        changed = self.core_changed(previous, analysis)

        fields = {
            "hair_analysis": analysis.model_dump(),
            "follicle_id": generate_follicle_id(analysis),
            "updated_at": utc_now_iso(),
        }
        if changed:
            fields["analysis_completed_at"] = fields["updated_at"]
        self.store.set(USERS_COLLECTION, uid, fields, merge=True)

        if changed:
            logger.info(f"Hair profile of {uid} is now {fields['follicle_id']}, rescoring")
            self.score_store.invalidate(uid)
            self.score_store.submit_rescore_all(uid)
        else:
            logger.info(f"Hair profile of {uid} unchanged, keeping existing scores")

        return {"user": self.get_user(uid), "rescore_started": changed}
