"""
Tests for content scoring, score composition and the matchers.
"""

import pytest

from match_service.composer import compose, compose_with_reasons, merge_reasons
from match_service.engagement import EngagementScorer
from match_service.ingredients import IngredientProfile, score_characteristic, score_ingredients
from match_service.matcher import ProductMatcher, RoutineMatcher
from match_service.models import Product, Routine
from match_service.weights import (
    PRODUCT_ENGAGEMENT_WEIGHTS,
    ROUTINE_ENGAGEMENT_WEIGHTS,
    AlgorithmWeights,
    get_algorithm_weights,
    get_frequency_weight,
    get_step_category_weight,
)

CURLY_HIGH_POROSITY = "CU-H-M-F-N"


class StaticSource:
    def __init__(self, interactions=None):
        self.interactions = interactions or {}

    def recent_interactions(self, entity_id, limit):
        return self.interactions.get(entity_id, [])[:limit]


class TestIngredientScoring:
    """Test the per-characteristic ingredient scorer."""

    def test_no_ingredients(self):
        """Test the neutral fallback without ingredient data."""
        result = score_ingredients([], CURLY_HIGH_POROSITY)
        assert result.score == 0.5
        assert result.reasons == ["Ingredient data not available"]

    def test_invalid_follicle(self):
        """Test the neutral fallback for an undecodable profile."""
        result = score_ingredients(["glycerin"], "bogus")
        assert result.score == 0.5
        assert result.reasons == ["Could not analyze hair profile"]

    def test_beneficial_ingredients_raise_score(self):
        """Test that curl-friendly ingredients score above neutral."""
        result = score_ingredients(
            ["aqua", "glycerin", "butyrospermum parkii butter", "cocos nucifera oil"],
            CURLY_HIGH_POROSITY,
        )
        assert result.score > 0.5
        assert any(reason.endswith("for curly hair") for reason in result.reasons)
        assert result.characteristics["hair_type"] > 0.5

    def test_case_insensitive(self):
        """Test that ingredient matching ignores case."""
        lower = score_ingredients(["aqua", "glycerin"], CURLY_HIGH_POROSITY)
        upper = score_ingredients(["AQUA", "Glycerin"], CURLY_HIGH_POROSITY)
        assert lower.score == upper.score

    def test_score_bounds(self):
        """Test that the content score stays in [0, 1]."""
        result = score_ingredients(
            ["sodium lauryl sulfate", "alcohol denat", "isopropyl alcohol", "petrolatum", "dimethicone"],
            "WV-L-L-F-V",
        )
        assert 0.0 <= result.score <= 1.0

    def test_without_reasons(self):
        """Test that reasons can be skipped."""
        result = score_ingredients(["glycerin"], CURLY_HIGH_POROSITY, include_reasons=False)
        assert result.reasons == []

    def test_blank_ingredients_ignored(self):
        """Test that whitespace-only entries never match a profile ingredient."""
        profile = IngredientProfile(beneficial=("glycerin",), avoid=("petrolatum",))
        reasons = []
        assert score_characteristic(["aqua", ""], profile, "curly hair", reasons) == 0.5
        assert reasons == []

        padded = score_ingredients(["aqua", "   ", "glycerin"], CURLY_HIGH_POROSITY)
        clean = score_ingredients(["aqua", "glycerin"], CURLY_HIGH_POROSITY)
        assert padded.score == clean.score
        assert padded.reasons == clean.reasons

        blank = score_ingredients(["  ", ""], CURLY_HIGH_POROSITY)
        assert blank.reasons == ["Ingredient data not available"]


class TestComposer:
    """Test score composition."""

    @pytest.mark.parametrize("content", [0.0, 0.25, 0.5, 1.0])
    @pytest.mark.parametrize("engagement", [0.0, 0.5, 0.9, 1.0])
    def test_output_in_range(self, content, engagement):
        """Test that composition stays inside [0, 1]."""
        for weights in (get_algorithm_weights("product"), get_algorithm_weights("routine")):
            assert 0.0 <= compose(content, engagement, weights).total_score <= 1.0

    def test_weighted_sum(self):
        """Test the product blend."""
        composed = compose(0.8, 0.5, get_algorithm_weights("product"))
        assert composed.total_score == pytest.approx(0.6 * 0.8 + 0.4 * 0.5)
        assert composed.breakdown == {"content_score": 0.8, "engagement_score": 0.5}

    def test_weights_must_sum_to_one(self):
        """Test weight validation."""
        with pytest.raises(ValueError):
            AlgorithmWeights(content=0.7, engagement=0.4)

    def test_category_override_complement(self):
        """Test a one-sided category override."""
        weights = get_algorithm_weights("product", "Styling Tools", {"Styling Tools": {"content": 0.2}})
        assert weights.content == 0.2
        assert weights.engagement == pytest.approx(0.8)
        assert get_algorithm_weights("product", "Shampoos", {"Styling Tools": {"content": 0.2}}).content == 0.6

    def test_merge_reasons_engagement_first(self):
        """Test that engagement reasons lead and duplicates are dropped."""
        merged = merge_reasons(["social", "dup"], ["dup", "content-a", "content-b"], limit=3)
        assert merged == ["social", "dup", "content-a"]

    def test_compose_with_reasons(self):
        """Test the reason limit in a full composition."""
        composed = compose_with_reasons(0.5, ["c"] * 3 + ["d"], 0.5, ["e1", "e2"], get_algorithm_weights("routine"), 3)
        assert composed.match_reasons == ["e1", "e2", "c"]


class TestRoutineWeights:
    """Test step category and frequency weights."""

    def test_category_weights(self):
        """Test known and unknown step categories."""
        assert get_step_category_weight("Shampoos") == 1.0
        assert get_step_category_weight("Styling Tools") == 0.5
        assert get_step_category_weight("Unknown") == 0.7
        assert get_step_category_weight(None) == 0.7

    def test_frequency_weights(self):
        """Test daily, weekly and monthly use."""
        assert get_frequency_weight(1, "day") == 1.0
        assert get_frequency_weight(1, "week") == pytest.approx(4 / 30)
        assert get_frequency_weight(1, "month") == 0.1
        assert get_frequency_weight(2, "day") == 0.5


def make_product(product_id, ingredients, category="Shampoos"):
    return Product(id=product_id, name=f"Product {product_id}", brand="Acme", category=category,
                   ingredients_normalized=ingredients)


def make_routine(routine_id, steps):
    return Routine(
        id=routine_id,
        user_id="owner",
        name="Wash day",
        follicle_id=CURLY_HIGH_POROSITY,
        steps=[
            {"order": order, "product_id": pid, "step_name": step_name,
             "frequency": {"interval": 1, "unit": unit}}
            for order, (pid, step_name, unit) in enumerate(steps)
        ],
    )


class TestMatchers:
    """Test product and routine matchers."""

    def setup_method(self):
        """Set up matchers over static interaction sources."""
        self.products = {
            "p1": make_product("p1", ["aqua", "glycerin", "cocos nucifera oil"]),
            "p2": make_product("p2", [], category="Hair Oils"),
        }
        self.product_source = StaticSource({
            "p1": [{"type": "like", "follicle_id": CURLY_HIGH_POROSITY}] * 3,
        })
        self.routine_source = StaticSource()
        self.product_matcher = ProductMatcher(EngagementScorer(self.product_source, PRODUCT_ENGAGEMENT_WEIGHTS))
        self.routine_matcher = RoutineMatcher(
            EngagementScorer(self.routine_source, ROUTINE_ENGAGEMENT_WEIGHTS),
            self.product_matcher,
            self.products.get,
        )

    def test_product_score(self):
        """Test a product score document."""
        match = self.product_matcher.score(self.products["p1"], CURLY_HIGH_POROSITY)
        doc = match.to_document()

        assert match.entity_type == "product"
        assert match.match_reasons[0] == "3 people with identical hair liked this"
        assert doc["product_name"] == "Product p1"
        assert doc["category"] == "Shampoos"
        assert set(doc["breakdown"]) == {"content_score", "engagement_score"}
        expected = 0.6 * match.breakdown.content_score + 0.4 * match.breakdown.engagement_score
        assert doc["score"] == pytest.approx(expected)

    def test_routine_content_is_weighted_product_average(self):
        """Test the step-weighted average of product totals."""
        routine = make_routine("r1", [("p1", "Shampoos", "day"), ("p2", "Hair Oils", "day")])
        p1 = self.product_matcher.score(self.products["p1"], CURLY_HIGH_POROSITY).score
        p2 = self.product_matcher.score(self.products["p2"], CURLY_HIGH_POROSITY).score

        content = self.routine_matcher.score_products(routine, CURLY_HIGH_POROSITY)
        assert content == pytest.approx((p1 * 1.0 + p2 * 0.8) / 1.8)

    def test_routine_missing_products(self):
        """Test that missing products are skipped, and all-missing is neutral."""
        routine = make_routine("r1", [("missing", "Shampoos", "day")])
        assert self.routine_matcher.score_products(routine, CURLY_HIGH_POROSITY) == 0.5

    def test_routine_score_document(self):
        """Test the routine score summary fields."""
        routine = make_routine("r1", [("p1", "Shampoos", "day"), ("p2", "Hair Oils", "week")])
        doc = self.routine_matcher.score(routine, CURLY_HIGH_POROSITY).to_document()

        assert doc["routine_name"] == "Wash day"
        assert doc["routine_step_count"] == 2
        assert doc["routine_steps"][0]["product_name"] == "Product p1"
        # no routine engagement: 0.1 * content + 0.9 * 0.5
        assert doc["breakdown"]["engagement_score"] == 0.5
        assert doc["score"] == pytest.approx(0.1 * doc["breakdown"]["content_score"] + 0.45)
