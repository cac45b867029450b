"""
Routine services.

Routine mutations keep the product interaction ledger in step with the
routine's product set: each product a routine uses carries one 'routine'
interaction for the owner. Edits only touch the products that were added
or removed. Affected entities are rescored after the write; a failed
rescore is logged and reported, never rolled back.
"""
import logging
import uuid
from typing import Any, Dict, Iterable, List, Optional, Tuple

from pydantic import ValidationError as PydanticValidationError

from match_service.models import Routine
from match_service.store import ArrayUnion, DocumentStore, utc_now_iso
from app.auth.services import USERS_COLLECTION
from app.catalog.services import ROUTINES_COLLECTION, CatalogService
from app.errors import Forbidden, NotFound, ValidationError, validation_error_from_pydantic
from app.interactions.models import CREATED_ROUTINES_FIELD
from app.interactions.services import InteractionLedger
from app.scores.services import ScoreStore
from .models import RoutinePayload

logger = logging.getLogger(__name__)


def diff_routine_products(old_ids: Iterable[str], new_ids: Iterable[str]) -> Tuple[List[str], List[str]]:
    """Products added and removed between two step lists, in step order."""
    old_ids = list(dict.fromkeys(old_ids))
    new_ids = list(dict.fromkeys(new_ids))
    old_set, new_set = set(old_ids), set(new_ids)
    added = [pid for pid in new_ids if pid not in old_set]
    removed = [pid for pid in old_ids if pid not in new_set]
    return added, removed


class RoutineService:
    """Create, edit, adapt and soft-delete routines."""

    def __init__(
        self,
        store: DocumentStore,
        catalog_service: CatalogService,
        ledger: InteractionLedger,
        score_store: ScoreStore,
    ):
        self.store = store
        self.catalog_service = catalog_service
        self.ledger = ledger
        self.score_store = score_store

    def _parse_payload(self, payload: Dict[str, Any]) -> RoutinePayload:
        try:
            parsed = RoutinePayload(**(payload or {}))
        except PydanticValidationError as exc:
            raise validation_error_from_pydantic(exc)

        missing = [step.product_id for step in parsed.steps if self.catalog_service.get_product(step.product_id) is None]
        if missing:
            raise ValidationError(f"unknown-products: {', '.join(dict.fromkeys(missing))}")
        return parsed

    def _require_owned(self, uid: str, routine_id: str) -> Routine:
        routine = self.catalog_service.get_routine(routine_id)
        if routine is None:
            raise NotFound("routine-not-found")
        if routine.user_id != uid:
            raise Forbidden("not-routine-owner")
        return routine

    def get_visible_routine(self, uid: Optional[str], routine_id: str) -> Routine:
        """A routine the caller may see: public ones, or their own."""
        routine = self.catalog_service.get_routine(routine_id)
        if routine is None or (not routine.is_public and routine.user_id != uid):
            raise NotFound("routine-not-found")
        return routine

    def _rescore(self, uid: str, product_ids: List[str], routine_ids: Iterable[str] = ()) -> Dict[str, Any]:
        reports = {"product": self.score_store.rescore_entities(uid, "product", product_ids).to_dict()}
        routine_ids = list(routine_ids)
        if routine_ids:
            reports["routine"] = self.score_store.rescore_entities(uid, "routine", routine_ids).to_dict()
        return reports

    def create_routine(self, uid: str, payload: Dict[str, Any]) -> Tuple[Routine, Dict[str, Any]]:
        follicle_id = self.score_store.get_follicle_id(uid)
        if not follicle_id:
            raise ValidationError("hair-analysis-required")
        parsed = self._parse_payload(payload)

        now = utc_now_iso()
        routine = Routine(
            id=uuid.uuid4().hex,
            user_id=uid,
            follicle_id=follicle_id,
            created_at=now,
            updated_at=now,
            **parsed.model_dump(),
        )

        batch = self.store.batch()
        batch.set(ROUTINES_COLLECTION, routine.id, routine.model_dump(exclude={"id"}))
        tracked = self.ledger.track_routine_products(batch, uid, routine.id, routine.product_ids(), follicle_id)
        batch.set(USERS_COLLECTION, uid, {CREATED_ROUTINES_FIELD: ArrayUnion(routine.id)}, merge=True)
        batch.commit()
        logger.info(f"Created routine {routine.id} for {uid} with {len(tracked)} products")

        return routine, self._rescore(uid, tracked, [routine.id])

    def edit_routine(self, uid: str, routine_id: str, payload: Dict[str, Any]) -> Tuple[Routine, Dict[str, Any]]:
        existing = self._require_owned(uid, routine_id)
        parsed = self._parse_payload(payload)
        updated = Routine(**{**existing.model_dump(), **parsed.model_dump(), "updated_at": utc_now_iso()})

        added, removed = diff_routine_products(existing.product_ids(), updated.product_ids())
        follicle_id = self.score_store.get_follicle_id(uid) or existing.follicle_id

        batch = self.store.batch()
        batch.set(ROUTINES_COLLECTION, routine_id, updated.model_dump(exclude={"id"}))
        self.ledger.track_routine_products(batch, uid, routine_id, added, follicle_id)
        self.ledger.untrack_routine_products(batch, uid, routine_id, removed)
        batch.commit()
        logger.info(f"Edited routine {routine_id}: +{len(added)} -{len(removed)} products")

        return updated, self._rescore(uid, added + removed, [routine_id])

    def list_private_routines(self, uid: str) -> List[Routine]:
        """The caller's own non-deleted routines, most recently updated first."""
        docs = self.store.query(
            ROUTINES_COLLECTION,
            where=[("user_id", "==", uid)],
            order_by="updated_at",
            descending=True,
        )
        return [
            Routine(id=doc.id, **{k: v for k, v in doc.data.items() if k != "id"})
            for doc in docs
            if not doc.get("deleted_at")
        ]

    def adapt_routine(
        self, uid: str, source_id: str, payload: Optional[Dict[str, Any]] = None
    ) -> Tuple[Routine, Dict[str, Any]]:
        """Copy a visible routine into a new one owned by the caller.

        The body may override any field of the copy; missing fields come
        from the source routine.
        """
        follicle_id = self.score_store.get_follicle_id(uid)
        if not follicle_id:
            raise ValidationError("hair-analysis-required")
        source = self.get_visible_routine(uid, source_id)
        parsed = self._parse_payload({
            "name": source.name,
            "description": source.description,
            "is_public": source.is_public,
            "steps": [step.model_dump() for step in source.steps],
            **(payload if isinstance(payload, dict) else {}),
        })

        now = utc_now_iso()
        routine = Routine(
            id=uuid.uuid4().hex,
            user_id=uid,
            follicle_id=follicle_id,
            adapted_from=source.id,
            created_at=now,
            updated_at=now,
            **parsed.model_dump(),
        )

        batch = self.store.batch()
        batch.set(ROUTINES_COLLECTION, routine.id, routine.model_dump(exclude={"id"}))
        tracked = self.ledger.track_routine_products(batch, uid, routine.id, routine.product_ids(), follicle_id)
        batch.set(USERS_COLLECTION, uid, {CREATED_ROUTINES_FIELD: ArrayUnion(routine.id)}, merge=True)
        self.ledger.record_adapt(batch, uid, source.id, routine.id, follicle_id)
        batch.commit()
        logger.info(f"Adapted routine {source.id} into {routine.id} for {uid} with {len(tracked)} products")

        return routine, self._rescore(uid, tracked, [routine.id, source.id])

    def delete_routine(self, uid: str, routine_id: str) -> Dict[str, Any]:
        """Soft-delete a routine and release its product tracking."""
        existing = self._require_owned(uid, routine_id)

        batch = self.store.batch()
        batch.set(ROUTINES_COLLECTION, routine_id, {"deleted_at": utc_now_iso()}, merge=True)
        freed = self.ledger.untrack_routine_products(batch, uid, routine_id, existing.product_ids())
        removed = self.ledger.remove_routine_interactions(batch, uid, routine_id)
        batch.commit()
        logger.info(f"Deleted routine {routine_id}: {len(freed)} products released, {removed} interactions removed")

        self.score_store.delete_score(uid, "routine", routine_id)
        return self._rescore(uid, freed)
