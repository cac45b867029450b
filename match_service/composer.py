"""
Score composition: blend content and engagement into one total score.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from itertools import chain
from typing import Dict, List, Sequence

from .weights import AlgorithmWeights


@dataclass(slots=True)
class ComposedScore:
    """Blended total with the sub-scores kept for display."""

    total_score: float
    breakdown: Dict[str, float] = field(default_factory=dict)
    match_reasons: List[str] = field(default_factory=list)


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, value))


def compose(content_score: float, engagement_score: float, weights: AlgorithmWeights) -> ComposedScore:
    """``weights.content * content + weights.engagement * engagement``, clamped to [0, 1]."""
    content = _clamp(content_score)
    engagement = _clamp(engagement_score)
    total = weights.content * content + weights.engagement * engagement
    return ComposedScore(
        total_score=_clamp(total),
        breakdown={"content_score": content, "engagement_score": engagement},
    )


def merge_reasons(
    engagement_reasons: Sequence[str],
    content_reasons: Sequence[str],
    limit: int,
) -> List[str]:
    """Engagement reasons first, then content reasons; de-duplicated, order-stable."""
    merged: List[str] = []
    seen = set()
    for reason in chain(engagement_reasons, content_reasons):
        if len(merged) >= limit:
            break
        if reason in seen:
            continue
        merged.append(reason)
        seen.add(reason)
    return merged


def compose_with_reasons(
    content_score: float,
    content_reasons: Sequence[str],
    engagement_score: float,
    engagement_reasons: Sequence[str],
    weights: AlgorithmWeights,
    max_reasons: int,
) -> ComposedScore:
    """Compose the total and attach the merged, truncated reason list."""
    composed = compose(content_score, engagement_score, weights)
    composed.match_reasons = merge_reasons(engagement_reasons, content_reasons, max_reasons)
    return composed
