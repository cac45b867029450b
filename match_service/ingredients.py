"""
Ingredient-based content scoring for products.

Each of the five hair characteristics is scored independently against a
profile of beneficial and avoided INCI names, then the characteristic
scores are blended with the follicle position weights.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from .follicle import decode_follicle_id, describe_follicle_id
from .weights import (
    AVOID_PENALTY,
    BENEFICIAL_BONUS,
    INGREDIENT_CATEGORY_WEIGHTS,
    MAX_AVOIDED_PER_CHARACTERISTIC,
    MAX_BENEFICIAL_PER_CHARACTERISTIC,
    NEUTRAL_SCORE,
    get_position_score,
)

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class IngredientProfile:
    """Ingredients that work well (or poorly) for one attribute value."""

    beneficial: Tuple[str, ...] = ()
    avoid: Tuple[str, ...] = ()


_SULFATES = ("sodium lauryl sulfate", "sodium laureth sulfate")
_DRYING_ALCOHOLS = ("alcohol denat", "isopropyl alcohol")

INGREDIENT_PROFILES: Dict[str, Dict[str, IngredientProfile]] = {
    "hair_type": {
        "straight": IngredientProfile(
            beneficial=(
                "hydrolyzed wheat protein", "panthenol", "biotin", "keratin",
                "hydrolyzed collagen", "niacinamide", "caffeine",
            ),
            avoid=("cocos nucifera oil", "butyrospermum parkii butter", "cera alba", "petrolatum"),
        ),
        "wavy": IngredientProfile(
            beneficial=(
                "maris sal", "glycerin", "aloe barbadensis leaf juice", "hydrolyzed rice protein",
                "panthenol", "polyquaternium-10", "polyquaternium-7",
            ),
            avoid=("dimethicone", "paraffinum liquidum", "petrolatum", "cera alba"),
        ),
        "curly": IngredientProfile(
            beneficial=(
                "butyrospermum parkii butter", "cocos nucifera oil", "argania spinosa kernel oil",
                "glycerin", "aloe barbadensis leaf juice", "simmondsia chinensis seed oil", "panthenol",
            ),
            avoid=_SULFATES + _DRYING_ALCOHOLS,
        ),
        "coily": IngredientProfile(
            beneficial=(
                "butyrospermum parkii butter", "ricinus communis seed oil", "cocos nucifera oil",
                "simmondsia chinensis seed oil", "glycerin", "mangifera indica seed butter",
                "persea gratissima oil",
            ),
            avoid=_SULFATES + _DRYING_ALCOHOLS + ("paraffinum liquidum", "petrolatum"),
        ),
        "protective": IngredientProfile(
            beneficial=(
                "cocos nucifera oil", "ricinus communis seed oil", "melaleuca alternifolia leaf oil",
                "mentha piperita oil", "argania spinosa kernel oil", "simmondsia chinensis seed oil",
            ),
            avoid=("dimethicone",) + _SULFATES + _DRYING_ALCOHOLS,
        ),
    },
    "porosity": {
        "low": IngredientProfile(
            beneficial=(
                "argania spinosa kernel oil", "simmondsia chinensis seed oil", "glycerin",
                "aloe barbadensis leaf juice", "panthenol", "sodium lactate",
            ),
            avoid=(
                "butyrospermum parkii butter", "hydrolyzed keratin", "hydrolyzed wheat protein",
                "dimethicone", "cetyl alcohol", "stearyl alcohol",
            ),
        ),
        "medium": IngredientProfile(
            beneficial=(
                "panthenol", "glycerin", "argania spinosa kernel oil", "cocos nucifera oil",
                "aloe barbadensis leaf juice", "hydrolyzed silk",
            ),
        ),
        "high": IngredientProfile(
            beneficial=(
                "butyrospermum parkii butter", "cocos nucifera oil", "hydrolyzed keratin",
                "hydrolyzed wheat protein", "ceramide np", "ceramide ap",
                "behentrimonium methosulfate", "cetyl alcohol",
            ),
            avoid=_DRYING_ALCOHOLS + _SULFATES,
        ),
    },
    "density": {
        "low": IngredientProfile(
            beneficial=(
                "hydrolyzed wheat protein", "hydrolyzed keratin", "biotin", "panthenol",
                "niacinamide", "caffeine", "polyquaternium-11",
            ),
            avoid=(
                "butyrospermum parkii butter", "ricinus communis seed oil", "dimethicone",
                "petrolatum", "cera alba",
            ),
        ),
        "medium": IngredientProfile(
            beneficial=("panthenol", "glycerin", "argania spinosa kernel oil", "aloe barbadensis leaf juice"),
        ),
        "high": IngredientProfile(
            beneficial=(
                "butyrospermum parkii butter", "cocos nucifera oil", "ricinus communis seed oil",
                "mangifera indica seed butter", "persea gratissima oil", "cetearyl alcohol",
            ),
        ),
    },
    "thickness": {
        "fine": IngredientProfile(
            beneficial=(
                "hydrolyzed keratin", "hydrolyzed wheat protein", "hydrolyzed silk", "panthenol",
                "biotin", "niacinamide", "polyquaternium-11",
            ),
            avoid=(
                "butyrospermum parkii butter", "ricinus communis seed oil", "dimethicone",
                "petrolatum", "cetyl alcohol", "stearyl alcohol",
            ),
        ),
        "medium": IngredientProfile(
            beneficial=(
                "panthenol", "glycerin", "argania spinosa kernel oil", "cocos nucifera oil",
                "aloe barbadensis leaf juice", "hydrolyzed silk",
            ),
        ),
        "coarse": IngredientProfile(
            beneficial=(
                "butyrospermum parkii butter", "cocos nucifera oil", "ricinus communis seed oil",
                "persea gratissima oil", "mangifera indica seed butter", "dimethicone",
                "behentrimonium methosulfate",
            ),
        ),
    },
    "damage": {
        "none": IngredientProfile(
            beneficial=("panthenol", "biotin", "tocopherol", "ascorbic acid", "niacinamide", "glycerin"),
            avoid=_SULFATES + _DRYING_ALCOHOLS,
        ),
        "some": IngredientProfile(
            beneficial=(
                "hydrolyzed keratin", "hydrolyzed wheat protein", "panthenol", "ceramide np",
                "ceramide ap", "arginine", "behentrimonium methosulfate", "quaternium-80",
            ),
            avoid=_SULFATES + _DRYING_ALCOHOLS,
        ),
        "severe": IngredientProfile(
            beneficial=(
                "hydrolyzed keratin", "hydrolyzed wheat protein", "ceramide np", "ceramide ap",
                "ceramide eop", "arginine", "cysteine", "methionine", "behentrimonium methosulfate",
                "bis-aminopropyl diglycol dimaleate", "maleic acid",
            ),
            avoid=_SULFATES + ("sodium c14-16 olefin sulfonate",) + _DRYING_ALCOHOLS,
        ),
    },
}


@dataclass(slots=True)
class ContentScore:
    """Content sub-score with its reasons and per-characteristic detail."""

    score: float
    reasons: List[str] = field(default_factory=list)
    characteristics: Dict[str, float] = field(default_factory=dict)


def _find_position(ingredients: Sequence[str], name: str) -> int:
    for index, ingredient in enumerate(ingredients):
        if ingredient and (name in ingredient or ingredient in name):
            return index
    return -1


def score_characteristic(
    ingredients: Sequence[str],
    profile: Optional[IngredientProfile],
    display_name: str,
    reasons: Optional[List[str]] = None,
) -> float:
    """Score one characteristic from the neutral 0.5 baseline.

    ``ingredients`` must already be lower-cased. Reasons are appended to
    ``reasons`` when it is given.
    """
    if profile is None:
        return NEUTRAL_SCORE

    total = len(ingredients)
    score = NEUTRAL_SCORE
    found_beneficial: List[Tuple[int, str]] = []
    found_avoid: List[str] = []

    for beneficial in profile.beneficial:
        position = _find_position(ingredients, beneficial.lower())
        if position >= 0:
            found_beneficial.append((position, beneficial))
            score += BENEFICIAL_BONUS + get_position_score(position, total)

    for avoid in profile.avoid:
        if _find_position(ingredients, avoid.lower()) >= 0:
            found_avoid.append(avoid)
            score += AVOID_PENALTY

    if reasons is not None:
        found_beneficial.sort(key=lambda item: item[0])
        if found_beneficial:
            top = ", ".join(name for _, name in found_beneficial[:MAX_BENEFICIAL_PER_CHARACTERISTIC])
            reasons.append(f"Contains {top} for {display_name}")
        avoided = found_avoid[:MAX_AVOIDED_PER_CHARACTERISTIC]
        if avoided:
            reasons.append(f"Contains {', '.join(avoided)} (not ideal for {display_name})")

    return max(0.0, min(1.0, score))


def score_ingredients(
    ingredients: Optional[Sequence[str]],
    follicle_id: str,
    include_reasons: bool = True,
) -> ContentScore:
    """Score a product ingredient list for a follicle id."""
    reasons: List[str] = []
    normalized = [str(ingredient).strip().lower() for ingredient in ingredients or []]
    normalized = [ingredient for ingredient in normalized if ingredient]
    if not normalized:
        if include_reasons:
            reasons.append("Ingredient data not available")
        return ContentScore(score=NEUTRAL_SCORE, reasons=reasons)

    attributes = decode_follicle_id(follicle_id)
    display = describe_follicle_id(follicle_id)
    if not attributes or not display:
        if include_reasons:
            reasons.append("Could not analyze hair profile")
        return ContentScore(score=NEUTRAL_SCORE, reasons=reasons)

    characteristics: Dict[str, float] = {}
    for name, weight in INGREDIENT_CATEGORY_WEIGHTS.items():
        profile = INGREDIENT_PROFILES[name].get(attributes[name])
        characteristics[name] = score_characteristic(
            normalized, profile, display[name], reasons if include_reasons else None
        )

    combined = sum(characteristics[name] * weight for name, weight in INGREDIENT_CATEGORY_WEIGHTS.items())
    return ContentScore(
        score=max(0.0, min(1.0, combined)),
        reasons=reasons,
        characteristics=characteristics,
    )
