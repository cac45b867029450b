"""
Product and routine matchers.

A matcher runs one full scoring pass for one entity and one requester:
content score, engagement score, composition, and the denormalized
summary stored alongside the score for display.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Mapping, Optional

from .composer import compose_with_reasons
from .engagement import EngagementScorer
from .ingredients import score_ingredients
from .models.catalog import Product, Routine
from .models.scores import MatchScore, ScoreBreakdown
from .store import utc_now_iso
from .weights import (
    NEUTRAL_SCORE,
    get_algorithm_weights,
    get_frequency_weight,
    get_step_category_weight,
)

logger = logging.getLogger(__name__)

ProductLookup = Callable[[str], Optional[Product]]


class ProductMatcher:
    """Ingredient content score blended with product engagement."""

    def __init__(
        self,
        engagement: EngagementScorer,
        max_reasons: int = 10,
        category_overrides: Optional[Mapping[str, Mapping[str, float]]] = None,
    ):
        self.engagement = engagement
        self.max_reasons = max_reasons
        self.category_overrides = category_overrides

    def score(self, product: Product, follicle_id: str) -> MatchScore:
        content = score_ingredients(product.ingredients_normalized, follicle_id)
        engagement = self.engagement.score(product.id, follicle_id)
        weights = get_algorithm_weights("product", product.category, self.category_overrides)

        composed = compose_with_reasons(
            content.score,
            content.reasons,
            engagement.score,
            engagement.reasons,
            weights,
            self.max_reasons,
        )

        return MatchScore(
            entity_id=product.id,
            entity_type="product",
            score=composed.total_score,
            breakdown=ScoreBreakdown(**composed.breakdown),
            match_reasons=composed.match_reasons,
            interactions_by_tier=engagement.interactions_by_tier or None,
            scored_at=utc_now_iso(),
            summary={
                "category": product.category,
                "product_name": product.name,
                "product_brand": product.brand,
                "product_image_url": product.image_url,
                "product_price": product.price,
                "ingredient_refs": list(product.ingredient_refs),
            },
        )


class RoutineMatcher:
    """Routine product quality blended with routine engagement."""

    def __init__(
        self,
        engagement: EngagementScorer,
        product_matcher: ProductMatcher,
        product_lookup: ProductLookup,
        max_reasons: int = 10,
    ):
        self.engagement = engagement
        self.product_matcher = product_matcher
        self.product_lookup = product_lookup
        self.max_reasons = max_reasons

    def score_products(self, routine: Routine, follicle_id: str) -> float:
        """Weighted average of the step products' total scores.

        Weight per step is category weight times frequency weight. Steps
        whose product cannot be found are skipped; 0.5 when nothing scored.
        """
        weighted_total = 0.0
        total_weight = 0.0
        product_scores: Dict[str, float] = {}

        for step in routine.ordered_steps():
            if step.product_id not in product_scores:
                product = self.product_lookup(step.product_id)
                if product is None:
                    logger.warning(f"Product {step.product_id} in routine {routine.id} not found")
                    continue
                product_scores[step.product_id] = self.product_matcher.score(product, follicle_id).score

            weight = get_step_category_weight(step.step_name) * get_frequency_weight(
                step.frequency.interval, step.frequency.unit
            )
            weighted_total += product_scores[step.product_id] * weight
            total_weight += weight

        return weighted_total / total_weight if total_weight > 0 else NEUTRAL_SCORE

    def score(self, routine: Routine, follicle_id: str) -> MatchScore:
        content_score = self.score_products(routine, follicle_id)
        engagement = self.engagement.score(routine.id, follicle_id)
        composed = compose_with_reasons(
            content_score,
            [],
            engagement.score,
            engagement.reasons,
            get_algorithm_weights("routine"),
            self.max_reasons,
        )

        return MatchScore(
            entity_id=routine.id,
            entity_type="routine",
            score=composed.total_score,
            breakdown=ScoreBreakdown(**composed.breakdown),
            match_reasons=composed.match_reasons,
            interactions_by_tier=engagement.interactions_by_tier or None,
            scored_at=utc_now_iso(),
            summary={
                "routine_name": routine.name,
                "routine_step_count": len(routine.steps),
                "routine_user_id": routine.user_id,
                "routine_is_public": routine.is_public,
                "routine_steps": self._preview_steps(routine),
            },
        )

    def _preview_steps(self, routine: Routine, limit: int = 3) -> List[Dict[str, Any]]:
        preview = []
        for step in routine.ordered_steps()[:limit]:
            product = self.product_lookup(step.product_id)
            preview.append({
                "order": step.order,
                "step_name": step.step_name,
                "product_id": step.product_id,
                "product_name": product.name if product else None,
                "product_brand": product.brand if product else None,
                "product_image_url": product.image_url if product else None,
            })
        return preview
