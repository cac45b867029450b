"""
Engagement scoring.

Turns the interaction history on one entity into a 0-1 community score
for a requesting user. Every interaction is weighted by its type and by
how similar the actor's hair is to the requester's, so feedback from
people with identical hair counts most.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence

from .follicle import follicle_similarity, similarity_bucket
from .weights import (
    ENGAGEMENT_NORMALIZATION_OFFSET,
    ENGAGEMENT_NORMALIZATION_SPAN,
    ENGAGEMENT_REASON_VERBS,
    MIN_SIMILARITY_THRESHOLD,
    NEUTRAL_SCORE,
    SIMILARITY_TIER_LABELS,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Data structures
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class SimilarityBuckets:
    """How many retained interactions fell in each similarity band."""

    exact: int = 0
    very_high: int = 0
    high: int = 0
    medium: int = 0

    @property
    def total(self) -> int:
        return self.exact + self.very_high + self.high + self.medium

    def add(self, bucket: str) -> None:
        setattr(self, bucket, getattr(self, bucket) + 1)

    def to_dict(self) -> Dict[str, int]:
        return {
            "exact": self.exact,
            "very_high": self.very_high,
            "high": self.high,
            "medium": self.medium,
            "total_similar": self.total,
        }


@dataclass(slots=True)
class EngagementResult:
    """Engagement score plus the evidence behind it."""

    score: float
    reasons: List[str] = field(default_factory=list)
    buckets: SimilarityBuckets = field(default_factory=SimilarityBuckets)
    interactions_by_tier: Dict[str, Dict[str, int]] = field(default_factory=dict)
    sample_size: int = 0
    degraded: bool = False

    @classmethod
    def neutral(cls, sample_size: int = 0, degraded: bool = False) -> "EngagementResult":
        return cls(score=NEUTRAL_SCORE, sample_size=sample_size, degraded=degraded)


class InteractionSource(Protocol):
    """Read access to the interaction history of one entity kind."""

    def recent_interactions(self, entity_id: str, limit: int) -> Sequence[Mapping[str, Any]]:
        """Return at most ``limit`` interactions, most recent first."""


class StoreInteractionSource:
    """InteractionSource backed by a document store collection."""

    def __init__(self, store, collection: str):
        self.store = store
        self.collection = collection

    def recent_interactions(self, entity_id: str, limit: int) -> List[Dict[str, Any]]:
        docs = self.store.query(
            self.collection,
            where=[("entity_id", "==", entity_id)],
            order_by="timestamp",
            descending=True,
            limit=limit,
        )
        return [doc.data for doc in docs]


# ---------------------------------------------------------------------------
# Scorer
# ---------------------------------------------------------------------------


class EngagementScorer:
    """Similarity-weighted aggregation of interactions into a 0-1 score.

    The sample is capped at ``sample_limit`` of the most recent
    interactions, so very popular entities are scored on recent activity
    only.
    """

    def __init__(
        self,
        source: InteractionSource,
        interaction_weights: Mapping[str, float],
        sample_limit: int = 100,
        min_similarity: float = MIN_SIMILARITY_THRESHOLD,
        min_samples: int = 1,
        max_reasons: int = 5,
    ):
        self.source = source
        self.interaction_weights = dict(interaction_weights)
        self.sample_limit = max(1, sample_limit)
        self.min_similarity = min_similarity
        self.min_samples = max(1, min_samples)
        self.max_reasons = max(0, max_reasons)

    def score(self, entity_id: str, follicle_id: str) -> EngagementResult:
        """Score one entity for a requester; never raises on read failure."""
        try:
            interactions = self.source.recent_interactions(entity_id, self.sample_limit)
        except Exception as exc:
            logger.warning(f"Engagement read failed for {entity_id}, using neutral score: {exc}")
            return EngagementResult.neutral(degraded=True)

        return self.score_interactions(interactions, follicle_id)

    def score_interactions(
        self,
        interactions: Sequence[Mapping[str, Any]],
        follicle_id: str,
    ) -> EngagementResult:
        """Pure scoring pass over an already fetched sample."""
        sample = list(interactions)[: self.sample_limit]
        if not sample:
            return EngagementResult.neutral()

        buckets = SimilarityBuckets()
        by_tier: Dict[str, Dict[str, int]] = {tier: {} for tier in SIMILARITY_TIER_LABELS}
        weighted_sum = 0.0
        similarity_sum = 0.0
        retained = 0

        for interaction in sample:
            actor_follicle = interaction.get("follicle_id")
            if not actor_follicle:
                continue
            similarity = follicle_similarity(follicle_id, actor_follicle)
            if similarity < self.min_similarity:
                continue

            tier = similarity_bucket(similarity)
            buckets.add(tier)

            interaction_type = interaction.get("type", "")
            type_weight = self.interaction_weights.get(interaction_type, 0.0)
            if type_weight > 0:
                counts = by_tier[tier]
                counts[interaction_type] = counts.get(interaction_type, 0) + 1

            weighted_sum += type_weight * similarity
            similarity_sum += similarity
            retained += 1

        if retained < self.min_samples or similarity_sum <= 0:
            return EngagementResult.neutral(sample_size=len(sample))

        average = weighted_sum / similarity_sum
        normalized = (average + ENGAGEMENT_NORMALIZATION_OFFSET) / ENGAGEMENT_NORMALIZATION_SPAN
        final_score = max(0.0, min(1.0, normalized))

        return EngagementResult(
            score=final_score,
            reasons=self._build_reasons(by_tier),
            buckets=buckets,
            interactions_by_tier=by_tier,
            sample_size=len(sample),
        )

    def _build_reasons(self, by_tier: Dict[str, Dict[str, int]]) -> List[str]:
        """Reasons ordered by tier strength, then by interaction strength."""
        reasons: List[str] = []
        for tier, label in SIMILARITY_TIER_LABELS.items():
            counts = by_tier.get(tier, {})
            for interaction_type, verb in ENGAGEMENT_REASON_VERBS.items():
                count = counts.get(interaction_type, 0)
                if count <= 0:
                    continue
                noun = "person" if count == 1 else "people"
                reasons.append(f"{count} {noun} with {label} hair {verb}")
        return reasons[: self.max_reasons]


def build_engagement_scorer(
    source: InteractionSource,
    interaction_weights: Mapping[str, float],
    scoring_config: Optional[Any] = None,
) -> EngagementScorer:
    """Factory wiring ScoringConfig values into an EngagementScorer."""
    if scoring_config is None:
        return EngagementScorer(source, interaction_weights)
    return EngagementScorer(
        source,
        interaction_weights,
        sample_limit=scoring_config.engagement_sample_limit,
        min_similarity=scoring_config.min_similarity,
        min_samples=scoring_config.min_engagement_samples,
        max_reasons=scoring_config.max_engagement_reasons,
    )
