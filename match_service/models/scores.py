"""
Match score data models.

Shape of the per-user score documents persisted under
users/{uid}/product_scores and users/{uid}/routine_scores.
"""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field


class ScoreBreakdown(BaseModel):
    """Sub-scores kept for display."""
    content_score: float = Field(ge=0.0, le=1.0, description="Intrinsic attribute score")
    engagement_score: float = Field(ge=0.0, le=1.0, description="Community engagement score")


class MatchScore(BaseModel):
    """Persisted match score for one (user, entity) pair."""
    entity_id: str = Field(description="Scored product or routine id")
    entity_type: str = Field(description="'product' or 'routine'")
    score: float = Field(ge=0.0, le=1.0, description="Blended total score")
    breakdown: ScoreBreakdown = Field(description="Content and engagement sub-scores")
    match_reasons: List[str] = Field(default_factory=list, description="Ordered human-readable reasons")
    interactions_by_tier: Optional[Dict[str, Dict[str, int]]] = Field(
        default=None, description="Positive interaction counts per similarity tier"
    )
    scored_at: str = Field(description="Scoring time (ISO format, UTC)")
    summary: Dict[str, Any] = Field(default_factory=dict, description="Denormalized entity fields for display")

    def to_document(self) -> Dict[str, Any]:
        """Flatten into the stored document layout."""
        doc = {
            "score": self.score,
            "breakdown": self.breakdown.model_dump(),
            "match_reasons": list(self.match_reasons),
            "interactions_by_tier": self.interactions_by_tier,
            "scored_at": self.scored_at,
        }
        doc.update(self.summary)
        return doc
