"""
Scoring weights and tunable constants.

Single place for every number the matchers depend on: follicle position
weights, similarity bands, interaction weights, composer weights, routine
step and frequency weights.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Mapping, Optional


# ---------------------------------------------------------------------------
# Follicle id
# ---------------------------------------------------------------------------

# Position order inside a follicle id: hair type, porosity, density,
# thickness, damage.
FOLLICLE_WEIGHTS: Dict[str, int] = {
    "hair_type": 3,
    "porosity": 2,
    "density": 1,
    "thickness": 2,
    "damage": 1,
}
TOTAL_FOLLICLE_WEIGHT = sum(FOLLICLE_WEIGHTS.values())

SIMILARITY_THRESHOLDS: Dict[str, float] = {
    "exact": 1.0,
    "very_high": 0.8,
    "high": 0.6,
    "medium": 0.4,
}
MIN_SIMILARITY_THRESHOLD = SIMILARITY_THRESHOLDS["medium"]

# Bucket key -> phrase used in match reasons, strongest signal first.
SIMILARITY_TIER_LABELS: Dict[str, str] = {
    "exact": "identical",
    "very_high": "nearly identical",
    "high": "very similar",
    "medium": "similar",
}


# ---------------------------------------------------------------------------
# Engagement
# ---------------------------------------------------------------------------

NEUTRAL_SCORE = 0.5

PRODUCT_ENGAGEMENT_WEIGHTS: Dict[str, float] = {
    "routine": 0.35,
    "save": 0.25,
    "like": 0.25,
    "dislike": -0.25,
    "view": 0.0,
}

ROUTINE_ENGAGEMENT_WEIGHTS: Dict[str, float] = {
    "adapt": 0.40,
    "save": 0.30,
    "like": 0.20,
    "dislike": -0.30,
    "view": 0.0,
}

# (avg + offset) / span maps the weighted average into [0, 1].
ENGAGEMENT_NORMALIZATION_OFFSET = 0.65
ENGAGEMENT_NORMALIZATION_SPAN = 1.3

ENGAGEMENT_REASON_VERBS: Dict[str, str] = {
    "adapt": "adapted this routine",
    "routine": "use this in their routine",
    "save": "saved this",
    "like": "liked this",
}


# ---------------------------------------------------------------------------
# Content scoring
# ---------------------------------------------------------------------------

BENEFICIAL_BONUS = 0.1
AVOID_PENALTY = -0.25
MAX_POSITION_BONUS = 0.2
MAX_BENEFICIAL_PER_CHARACTERISTIC = 10
MAX_AVOIDED_PER_CHARACTERISTIC = 10

INGREDIENT_CATEGORY_WEIGHTS: Dict[str, float] = {
    name: weight / TOTAL_FOLLICLE_WEIGHT for name, weight in FOLLICLE_WEIGHTS.items()
}

STEP_CATEGORY_WEIGHTS: Dict[str, float] = {
    # Core cleansing
    "Shampoos": 1.0,
    "Conditioners": 1.0,
    # Deep treatments
    "Hair Masks": 0.95,
    "Leave-in Treatments": 0.9,
    "Scalp Treatments": 0.9,
    # Maintenance
    "Leave-in Conditioners": 0.85,
    "Hair Oils": 0.8,
    "Hair Serums": 0.8,
    "Detanglers": 0.75,
    # Styling
    "Styling Creams & Sprays": 0.7,
    "Gel, Pomade & Wax": 0.7,
    "Mousse & Foam": 0.65,
    "Heat Protectants": 0.65,
    "Hair Sprays": 0.6,
    # Occasional use
    "Dry Shampoos": 0.6,
    "Scalp Scrubs": 0.7,
    "Styling Tools": 0.5,
    # Catch-alls
    "Other Hair Cleansers": 0.8,
    "Hair Loss": 0.85,
    "Other Haircare": 0.7,
    "Other Styling": 0.6,
}
DEFAULT_STEP_CATEGORY_WEIGHT = STEP_CATEGORY_WEIGHTS["Other Haircare"]

_TIMES_PER_MONTH = {"day": 30.0, "week": 4.0, "month": 1.0}


def get_step_category_weight(category: Optional[str]) -> float:
    """Importance of a routine step by product category (0.5 to 1.0)."""
    if not category:
        return DEFAULT_STEP_CATEGORY_WEIGHT
    return STEP_CATEGORY_WEIGHTS.get(category, DEFAULT_STEP_CATEGORY_WEIGHT)


def get_frequency_weight(interval: int, unit: str) -> float:
    """Weight a routine step by how often it is used.

    Daily use maps to 1.0; anything rarer than roughly three times a
    month bottoms out at 0.1.
    """
    if interval <= 0 or unit not in _TIMES_PER_MONTH:
        return 0.1
    times_per_month = _TIMES_PER_MONTH[unit] / interval
    normalized = min(times_per_month / 30.0, 1.0)
    return max(normalized, 0.1)


def get_position_score(position: int, total_ingredients: int) -> float:
    """Bonus for an ingredient listed early (higher concentration)."""
    if total_ingredients <= 0:
        return 0.0
    return MAX_POSITION_BONUS * (1 - (position + 1) / total_ingredients)


# ---------------------------------------------------------------------------
# Composer
# ---------------------------------------------------------------------------


@dataclass(slots=True, frozen=True)
class AlgorithmWeights:
    """Content/engagement blend for one entity kind."""

    content: float
    engagement: float

    def __post_init__(self) -> None:
        if abs(self.content + self.engagement - 1.0) > 0.001:
            raise ValueError(
                f"Algorithm weights must sum to 1.0, got {self.content + self.engagement:.3f}"
            )


PRODUCT_ALGORITHM_WEIGHTS = AlgorithmWeights(content=0.6, engagement=0.4)
ROUTINE_ALGORITHM_WEIGHTS = AlgorithmWeights(content=0.1, engagement=0.9)

# Per-category overrides for product scoring, e.g. {"Styling Tools": {"content": 0.2}}
CATEGORY_OVERRIDES: Dict[str, Dict[str, float]] = {}


def get_algorithm_weights(
    entity_type: str = "product",
    category: Optional[str] = None,
    overrides: Optional[Mapping[str, Mapping[str, float]]] = None,
) -> AlgorithmWeights:
    """Resolve the blend for an entity, honouring category overrides.

    An override may set only one side; the other side becomes its
    complement so the pair still sums to 1.
    """
    base = ROUTINE_ALGORITHM_WEIGHTS if entity_type == "routine" else PRODUCT_ALGORITHM_WEIGHTS
    table = CATEGORY_OVERRIDES if overrides is None else overrides
    override = table.get(category) if category else None
    if not override:
        return base

    if "content" in override and "engagement" in override:
        return AlgorithmWeights(content=override["content"], engagement=override["engagement"])
    if "content" in override:
        return AlgorithmWeights(content=override["content"], engagement=1.0 - override["content"])
    if "engagement" in override:
        return AlgorithmWeights(content=1.0 - override["engagement"], engagement=override["engagement"])
    return base
