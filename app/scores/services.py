"""
Score store: persisted per-user match scores.

Score documents live at ``users/{uid}/product_scores/{pid}`` and
``users/{uid}/routine_scores/{rid}``. They are the only record of
"scored since the last profile change": a score set whose newest
``scored_at`` precedes the user's ``analysis_completed_at`` is stale and
reported as zero-complete.
"""
import logging
from concurrent.futures import Executor, Future
from typing import Any, Dict, Iterable, List, Optional

from match_service.cache import Cache
from match_service.matcher import ProductMatcher, RoutineMatcher
from match_service.models import MatchScore
from match_service.store import DocumentStore, parse_timestamp
from app.auth.services import USERS_COLLECTION
from app.catalog.services import CatalogService
from app.errors import NotFound, ValidationError
from .models import EntityKind, RescoreReport

logger = logging.getLogger(__name__)


def score_collection(uid: str, kind: EntityKind) -> str:
    return f"{USERS_COLLECTION}/{uid}/{kind.score_collection_name}"


def score_cache_key(uid: str, kind: EntityKind) -> str:
    return f"{kind.cache_key_prefix}-{uid}"


class ScoreStore:
    """Scores entities for users and persists the results."""

    def __init__(
        self,
        store: DocumentStore,
        catalog: CatalogService,
        product_matcher: ProductMatcher,
        routine_matcher: RoutineMatcher,
        cache: Cache,
        score_ttl_seconds: Optional[float] = None,
        write_batch_size: int = 500,
        executor: Optional[Executor] = None,
    ):
        self.store = store
        self.catalog = catalog
        self.product_matcher = product_matcher
        self.routine_matcher = routine_matcher
        self.cache = cache
        self.score_ttl_seconds = score_ttl_seconds
        self.write_batch_size = max(1, write_batch_size)
        self.executor = executor

    # Users --------------------------------------------------------------------

    def get_follicle_id(self, uid: str) -> Optional[str]:
        user = self.store.get(USERS_COLLECTION, uid)
        return user.get("follicle_id") if user else None

    def _require_follicle_id(self, uid: str) -> str:
        follicle_id = self.get_follicle_id(uid)
        if not follicle_id:
            raise ValidationError("hair-analysis-required")
        return follicle_id

    # Scoring ------------------------------------------------------------------

    def _score(self, kind: EntityKind, entity_id: str, follicle_id: str) -> MatchScore:
        if kind is EntityKind.PRODUCT:
            product = self.catalog.get_product(entity_id)
            if product is None:
                raise NotFound("product-not-found")
            return self.product_matcher.score(product, follicle_id)

        routine = self.catalog.get_routine(entity_id)
        if routine is None:
            raise NotFound("routine-not-found")
        return self.routine_matcher.score(routine, follicle_id)

    def score_and_persist(self, uid: str, entity_type: str, entity_id: str) -> MatchScore:
        """Score one entity for a user and write its score document."""
        kind = EntityKind.from_path(entity_type)
        match = self._score(kind, entity_id, self._require_follicle_id(uid))
        self.store.set(score_collection(uid, kind), entity_id, match.to_document())
        logger.info(
            f"Scored {kind.value} {entity_id} for {uid}: total={match.score:.3f} "
            f"content={match.breakdown.content_score:.3f} engagement={match.breakdown.engagement_score:.3f}"
        )
        return match

    def delete_score(self, uid: str, entity_type: str, entity_id: str) -> None:
        kind = EntityKind.from_path(entity_type)
        self.store.delete(score_collection(uid, kind), entity_id)

    # Reads --------------------------------------------------------------------

    def get_score(self, uid: str, entity_type: str, entity_id: str) -> Optional[Dict[str, Any]]:
        """Latest persisted score, read directly from the store."""
        kind = EntityKind.from_path(entity_type)
        doc = self.store.get(score_collection(uid, kind), entity_id)
        if doc is None:
            return None
        return {"entity_id": doc.id, **doc.data}

    def get_batch_scores(self, uid: str, entity_type: str, entity_ids: Iterable[str]) -> Dict[str, Dict[str, Any]]:
        """Scores for several entities; missing ones are left out."""
        scores = {}
        for entity_id in dict.fromkeys(entity_ids):
            score = self.get_score(uid, entity_type, entity_id)
            if score is not None:
                scores[entity_id] = score
        return scores

    def _load_scores(self, uid: str, kind: EntityKind) -> List[Dict[str, Any]]:
        docs = self.store.query(score_collection(uid, kind), order_by="score", descending=True)
        return [{"entity_id": doc.id, **doc.data} for doc in docs]

    def list_scores(self, uid: str, entity_type: str) -> List[Dict[str, Any]]:
        """All of a user's scores of one kind, highest first, via the read cache."""
        kind = EntityKind.from_path(entity_type)
        return self.cache.get_or_load(
            score_cache_key(uid, kind),
            lambda: self._load_scores(uid, kind),
            self.score_ttl_seconds,
        )

    def _entity_ids(self, kind: EntityKind) -> List[str]:
        if kind is EntityKind.PRODUCT:
            return [product.id for product in self.catalog.get_all_products()]
        return [routine.id for routine in self.catalog.get_public_routines()]

    def is_stale(self, uid: str, entity_type: str) -> bool:
        """True when no scores exist or the newest predates the latest analysis."""
        kind = EntityKind.from_path(entity_type)
        latest = self.store.query(score_collection(uid, kind), order_by="scored_at", descending=True, limit=1)
        if not latest:
            return True

        user = self.store.get(USERS_COLLECTION, uid)
        analysis_at = parse_timestamp(user.get("analysis_completed_at")) if user else None
        scored_at = parse_timestamp(latest[0].get("scored_at"))
        if analysis_at is None:
            return False
        return scored_at is None or scored_at < analysis_at

    def get_completion_status(self, uid: str, entity_type: str) -> Dict[str, Any]:
        """Scores plus progress of the current scoring pass.

        Only scores of entities in the current scoring set count towards
        completion; an empty set is complete. While incomplete the listing
        is read directly so pollers see progress; once complete it is
        served through the read cache.
        """
        kind = EntityKind.from_path(entity_type)
        entity_ids = set(self._entity_ids(kind))
        total = len(entity_ids)

        if total == 0:
            return {"scores": [], "count": 0, "total": 0, "is_complete": True}

        if self.is_stale(uid, kind.value):
            logger.debug(f"{kind.value} scores for {uid} are stale or missing")
            return {"scores": [], "count": 0, "total": total, "is_complete": False}

        scores = [score for score in self._load_scores(uid, kind) if score["entity_id"] in entity_ids]
        count = len(scores)
        is_complete = count >= total
        if is_complete:
            scores = [score for score in self.list_scores(uid, kind.value) if score["entity_id"] in entity_ids]
        return {"scores": scores, "count": count, "total": total, "is_complete": is_complete}

    # Rescoring ----------------------------------------------------------------

    def rescore_entities(self, uid: str, entity_type: str, entity_ids: Iterable[str]) -> RescoreReport:
        """Rescore entities one at a time; a failure never stops the rest."""
        kind = EntityKind.from_path(entity_type)
        report = RescoreReport(kind.value)
        for entity_id in dict.fromkeys(entity_ids):
            try:
                self.score_and_persist(uid, kind.value, entity_id)
            except Exception as exc:
                logger.warning(f"Failed to rescore {kind.value} {entity_id} for {uid}: {exc}")
                report.failed(entity_id, str(exc))
            else:
                report.ok(entity_id)
        self.invalidate(uid)
        return report

    def _clear_scores(self, uid: str, kind: EntityKind) -> int:
        collection = score_collection(uid, kind)
        docs = self.store.query(collection)
        for start in range(0, len(docs), self.write_batch_size):
            batch = self.store.batch()
            for doc in docs[start:start + self.write_batch_size]:
                batch.delete(collection, doc.id)
            batch.commit()
        return len(docs)

    def _rescore_kind(self, uid: str, kind: EntityKind, entity_ids: List[str], follicle_id: str) -> RescoreReport:
        collection = score_collection(uid, kind)
        report = RescoreReport(kind.value)
        batch = self.store.batch()

        for entity_id in entity_ids:
            try:
                match = self._score(kind, entity_id, follicle_id)
            except Exception as exc:
                logger.warning(f"Failed to score {kind.value} {entity_id} for {uid}: {exc}")
                report.failed(entity_id, str(exc))
                continue

            batch.set(collection, entity_id, match.to_document())
            report.ok(entity_id)
            if len(batch) >= self.write_batch_size:
                batch.commit()
                batch = self.store.batch()

        batch.commit()
        return report

    def rescore_all(self, uid: str) -> Dict[str, RescoreReport]:
        """Replace every score the user has with a fresh scoring pass."""
        follicle_id = self._require_follicle_id(uid)
        reports = {}

        product_ids = self._entity_ids(EntityKind.PRODUCT)
        routine_ids = self._entity_ids(EntityKind.ROUTINE)

        for kind, entity_ids in ((EntityKind.PRODUCT, product_ids), (EntityKind.ROUTINE, routine_ids)):
            removed = self._clear_scores(uid, kind)
            report = self._rescore_kind(uid, kind, entity_ids, follicle_id)
            logger.info(
                f"Rescored {kind.value}s for {uid}: {report.ok_count} ok, "
                f"{report.failed_count} failed ({removed} old scores removed)"
            )
            reports[kind.value] = report

        self.invalidate(uid)
        return reports

    def _rescore_all_logged(self, uid: str) -> Optional[Dict[str, RescoreReport]]:
        try:
            return self.rescore_all(uid)
        except Exception:
            logger.exception(f"Full rescore failed for {uid}")
            return None

    def submit_rescore_all(self, uid: str) -> Optional[Future]:
        """Run a full rescore on the executor, or inline when there is none."""
        if self.executor is None:
            self._rescore_all_logged(uid)
            return None
        logger.info(f"Scheduling full rescore for {uid}")
        return self.executor.submit(self._rescore_all_logged, uid)

    # Cache --------------------------------------------------------------------

    def invalidate(self, uid: str) -> List[str]:
        """Evict the user's score listings from the read cache."""
        keys = [score_cache_key(uid, kind) for kind in EntityKind]
        for key in keys:
            self.cache.invalidate(key)
        return keys
