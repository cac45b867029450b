"""
Interaction ledger.

Each interaction is one document in ``{entity}_interactions``. The
user document carries array projections of the ledger (``liked_products``
and friends) which are updated in the same write batch as the ledger
document, so the two never disagree after a commit.
"""
import logging
import uuid
from typing import Any, Dict, Iterable, List, Optional

from match_service.models import Interaction
from match_service.store import ArrayRemove, ArrayUnion, DocumentStore, Document, SERVER_TIMESTAMP, WriteBatch
from app.auth.services import USERS_COLLECTION
from app.errors import NotFound, ValidationError
from .models import (
    CREATED_ROUTINES_FIELD,
    CreateOutcome,
    EntityType,
    InteractionType,
    Sentiment,
    get_cache_field,
)

logger = logging.getLogger(__name__)


def apply_interaction_delta(
    batch: WriteBatch,
    uid: str,
    entity_type: EntityType,
    entity_id: str,
    interaction_type: InteractionType,
    added: bool,
) -> Optional[str]:
    """Stage the user-document cache update for one ledger change.

    Returns the cache field touched, or None for types without one (views).
    """
    field = get_cache_field(entity_type, interaction_type)
    if field is None:
        return None
    transform = ArrayUnion(entity_id) if added else ArrayRemove(entity_id)
    batch.set(USERS_COLLECTION, uid, {field: transform}, merge=True)
    return field


def interaction_doc_id(uid: str, entity_id: str, interaction_type: InteractionType, routine_id: Optional[str] = None) -> str:
    """Deterministic id so a racing duplicate overwrites instead of duplicating."""
    doc_id = f"{uid}_{entity_id}_{interaction_type.value}"
    if routine_id:
        doc_id = f"{doc_id}_{routine_id}"
    return doc_id


def parse_types(entity_path: str, interaction_type: Optional[str] = None, include_internal: bool = False):
    """Validate path segments into (EntityType, InteractionType or None)."""
    try:
        entity_type = EntityType.from_path(entity_path)
    except ValueError:
        raise ValidationError(f"invalid-entity-type: {entity_path}")

    if interaction_type is None:
        return entity_type, None

    allowed = InteractionType.get_allowed_types(entity_type, include_internal=include_internal)
    if interaction_type not in allowed:
        raise ValidationError(
            f"invalid-interaction-type: {interaction_type} (allowed: {', '.join(allowed)})"
        )
    return entity_type, InteractionType(interaction_type)


class InteractionLedger:
    """Create, delete and query interactions with their cache projections."""

    def __init__(self, store: DocumentStore):
        self.store = store

    # Reads --------------------------------------------------------------------

    def find(
        self,
        uid: str,
        entity_type: EntityType,
        entity_id: str,
        interaction_type: InteractionType,
    ) -> List[Document]:
        return self.store.query(
            entity_type.collection_name,
            where=[
                ("user_id", "==", uid),
                ("entity_id", "==", entity_id),
                ("type", "==", interaction_type.value),
            ],
        )

    def exists(self, uid: str, entity_type: EntityType, entity_id: str, interaction_type: InteractionType) -> bool:
        return bool(self.find(uid, entity_type, entity_id, interaction_type))

    def sentiment(self, uid: str, entity_type: EntityType, entity_id: str) -> Sentiment:
        docs = self.store.query(
            entity_type.collection_name,
            where=[
                ("user_id", "==", uid),
                ("entity_id", "==", entity_id),
                ("type", "in", [InteractionType.LIKE.value, InteractionType.DISLIKE.value]),
            ],
        )
        return Sentiment.from_types(InteractionType(doc.get("type")) for doc in docs)

    def list_for_user(
        self,
        uid: str,
        entity_type: EntityType,
        interaction_type: Optional[InteractionType] = None,
    ) -> List[Interaction]:
        """The user's interactions, newest first."""
        where = [("user_id", "==", uid)]
        if interaction_type is not None:
            where.append(("type", "==", interaction_type.value))
        docs = self.store.query(entity_type.collection_name, where=where, order_by="timestamp", descending=True)
        return [
            Interaction(id=doc.id, entity_type=entity_type.value, **{k: v for k, v in doc.data.items() if k != "id"})
            for doc in docs
        ]

    # Mutations ----------------------------------------------------------------

    def create(
        self,
        uid: str,
        entity_type: EntityType,
        entity_id: str,
        interaction_type: InteractionType,
        follicle_id: str,
    ) -> CreateOutcome:
        """Record an interaction.

        Views are append-only events. Every other type exists at most once
        per (user, entity, type); creating a like removes a dislike and
        vice versa, in the same batch as the new record.
        """
        collection = entity_type.collection_name
        record = {
            "user_id": uid,
            "entity_id": entity_id,
            "follicle_id": follicle_id,
            "type": interaction_type.value,
            "timestamp": SERVER_TIMESTAMP,
        }

        if interaction_type is InteractionType.VIEW:
            self.store.set(collection, uuid.uuid4().hex, record)
            return CreateOutcome.CREATED

        if self.exists(uid, entity_type, entity_id, interaction_type):
            logger.debug(f"{interaction_type.value} on {entity_type.value} {entity_id} by {uid} already exists")
            return CreateOutcome.ALREADY_EXISTS

        batch = self.store.batch()
        batch.set(collection, interaction_doc_id(uid, entity_id, interaction_type), record)
        apply_interaction_delta(batch, uid, entity_type, entity_id, interaction_type, added=True)

        _, displaced = self.sentiment(uid, entity_type, entity_id).transition(interaction_type)
        if displaced is not None:
            for doc in self.find(uid, entity_type, entity_id, displaced):
                batch.delete(collection, doc.id)
            apply_interaction_delta(batch, uid, entity_type, entity_id, displaced, added=False)
            logger.info(f"{interaction_type.value} on {entity_type.value} {entity_id} replaces {displaced.value} for {uid}")

        batch.commit()
        logger.info(f"Recorded {interaction_type.value} on {entity_type.value} {entity_id} for {uid}")
        return CreateOutcome.CREATED

    def delete(self, uid: str, entity_type: EntityType, entity_id: str, interaction_type: InteractionType) -> int:
        """Remove an interaction; raises NotFound when absent."""
        docs = self.find(uid, entity_type, entity_id, interaction_type)
        if not docs:
            raise NotFound("interaction-not-found")

        batch = self.store.batch()
        for doc in docs:
            batch.delete(entity_type.collection_name, doc.id)
        apply_interaction_delta(batch, uid, entity_type, entity_id, interaction_type, added=False)
        batch.commit()
        logger.info(f"Deleted {interaction_type.value} on {entity_type.value} {entity_id} for {uid}")
        return len(docs)

    # Routine tracking ---------------------------------------------------------

    def track_routine_products(
        self,
        batch: WriteBatch,
        uid: str,
        routine_id: str,
        product_ids: Iterable[str],
        follicle_id: Optional[str],
    ) -> List[str]:
        """Stage one 'routine' product interaction per unique product."""
        tracked = list(dict.fromkeys(product_ids))
        for product_id in tracked:
            batch.set(
                EntityType.PRODUCT.collection_name,
                interaction_doc_id(uid, product_id, InteractionType.ROUTINE, routine_id),
                {
                    "user_id": uid,
                    "entity_id": product_id,
                    "follicle_id": follicle_id,
                    "type": InteractionType.ROUTINE.value,
                    "routine_id": routine_id,
                    "timestamp": SERVER_TIMESTAMP,
                },
            )
            apply_interaction_delta(batch, uid, EntityType.PRODUCT, product_id, InteractionType.ROUTINE, added=True)
        return tracked

    def untrack_routine_products(
        self,
        batch: WriteBatch,
        uid: str,
        routine_id: str,
        product_ids: Iterable[str],
    ) -> List[str]:
        """Stage removal of a routine's tracking for each unique product.

        A product stays in ``routine_products`` while another of the
        user's routines still uses it.
        """
        untracked = list(dict.fromkeys(product_ids))
        for product_id in untracked:
            docs = self.find(uid, EntityType.PRODUCT, product_id, InteractionType.ROUTINE)
            still_used = False
            for doc in docs:
                if doc.get("routine_id") == routine_id:
                    batch.delete(EntityType.PRODUCT.collection_name, doc.id)
                else:
                    still_used = True
            if not still_used:
                apply_interaction_delta(batch, uid, EntityType.PRODUCT, product_id, InteractionType.ROUTINE, added=False)
        return untracked

    def record_adapt(
        self,
        batch: WriteBatch,
        uid: str,
        source_routine_id: str,
        created_routine_id: str,
        follicle_id: Optional[str],
    ) -> str:
        """Stage the 'adapt' interaction against the source of a routine copy."""
        doc_id = interaction_doc_id(uid, source_routine_id, InteractionType.ADAPT, created_routine_id)
        batch.set(
            EntityType.ROUTINE.collection_name,
            doc_id,
            {
                "user_id": uid,
                "entity_id": source_routine_id,
                "follicle_id": follicle_id,
                "type": InteractionType.ADAPT.value,
                "created_routine_id": created_routine_id,
                "timestamp": SERVER_TIMESTAMP,
            },
        )
        apply_interaction_delta(batch, uid, EntityType.ROUTINE, source_routine_id, InteractionType.ADAPT, added=True)
        return doc_id

    def remove_routine_interactions(self, batch: WriteBatch, uid: str, routine_id: str) -> int:
        """Stage removal of the user's own interactions with a routine and its ownership entry."""
        docs = self.store.query(
            EntityType.ROUTINE.collection_name,
            where=[("user_id", "==", uid), ("entity_id", "==", routine_id)],
        )
        for doc in docs:
            batch.delete(EntityType.ROUTINE.collection_name, doc.id)
            if InteractionType.is_valid(doc.get("type")):
                apply_interaction_delta(
                    batch, uid, EntityType.ROUTINE, routine_id, InteractionType(doc.get("type")), added=False
                )
        batch.set(USERS_COLLECTION, uid, {CREATED_ROUTINES_FIELD: ArrayRemove(routine_id)}, merge=True)
        return len(docs)


class InteractionService:
    """Ledger mutations followed by best-effort rescoring of the entity."""

    def __init__(self, ledger: InteractionLedger, score_store, catalog_service):
        self.ledger = ledger
        self.score_store = score_store
        self.catalog_service = catalog_service

    def _require_entity(self, entity_type: EntityType, entity_id: str) -> None:
        if entity_type is EntityType.PRODUCT and self.catalog_service.get_product(entity_id) is None:
            raise NotFound("product-not-found")
        if entity_type is EntityType.ROUTINE and self.catalog_service.get_routine(entity_id) is None:
            raise NotFound("routine-not-found")

    def _refresh(self, uid: str, entity_type: EntityType, entity_id: str) -> Optional[Dict[str, Any]]:
        if entity_type is EntityType.INGREDIENT:
            self.score_store.invalidate(uid)
            return None
        report = self.score_store.rescore_entities(uid, entity_type.value, [entity_id])
        if report.failed_count:
            logger.warning(f"Rescore after interaction failed for {entity_type.value} {entity_id}: {report.to_dict()}")
        return self.score_store.get_score(uid, entity_type.value, entity_id)

    def record(self, uid: str, entity_path: str, entity_id: str, interaction_type: str) -> Dict[str, Any]:
        entity_type, itype = parse_types(entity_path, interaction_type)
        follicle_id = self.score_store.get_follicle_id(uid)
        if not follicle_id:
            raise ValidationError("hair-analysis-required")
        self._require_entity(entity_type, entity_id)

        outcome = self.ledger.create(uid, entity_type, entity_id, itype, follicle_id)
        if outcome is CreateOutcome.ALREADY_EXISTS:
            return {"outcome": outcome, "score": None}
        return {"outcome": outcome, "score": self._refresh(uid, entity_type, entity_id)}

    def remove(self, uid: str, entity_path: str, entity_id: str, interaction_type: str) -> Dict[str, Any]:
        entity_type, itype = parse_types(entity_path, interaction_type)
        self.ledger.delete(uid, entity_type, entity_id, itype)
        return {"score": self._refresh(uid, entity_type, entity_id)}

    def exists(self, uid: str, entity_path: str, entity_id: str, interaction_type: str) -> bool:
        entity_type, itype = parse_types(entity_path, interaction_type)
        return self.ledger.exists(uid, entity_type, entity_id, itype)

    def list_for_user(self, uid: str, entity_path: str, interaction_type: Optional[str] = None) -> List[Interaction]:
        entity_type, itype = parse_types(entity_path, interaction_type, include_internal=True)
        return self.ledger.list_for_user(uid, entity_type, itype)
