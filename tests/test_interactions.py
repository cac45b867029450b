"""
Tests for the interaction ledger and its routes.
"""

import pytest

from match_service.store import DocumentStore
from match_service.weights import PRODUCT_ENGAGEMENT_WEIGHTS, ROUTINE_ENGAGEMENT_WEIGHTS
from app.interactions.models import CreateOutcome, EntityType, InteractionType, Sentiment
from app.interactions.services import InteractionLedger, apply_interaction_delta, interaction_doc_id
from conftest import CURLY_FOLLICLE


class TestSentiment:
    """Test the like/dislike state machine."""

    def test_transitions(self):
        """Test which interaction each transition displaces."""
        assert Sentiment.NONE.transition(InteractionType.LIKE) == (Sentiment.LIKED, None)
        assert Sentiment.DISLIKED.transition(InteractionType.LIKE) == (Sentiment.LIKED, InteractionType.DISLIKE)
        assert Sentiment.LIKED.transition(InteractionType.DISLIKE) == (Sentiment.DISLIKED, InteractionType.LIKE)
        assert Sentiment.LIKED.transition(InteractionType.LIKE) == (Sentiment.LIKED, None)
        assert Sentiment.LIKED.transition(InteractionType.SAVE) == (Sentiment.LIKED, None)

    def test_from_types(self):
        """Test deriving the state from present interactions."""
        assert Sentiment.from_types([]) is Sentiment.NONE
        assert Sentiment.from_types([InteractionType.DISLIKE, InteractionType.SAVE]) is Sentiment.DISLIKED


class TestEngagementWeights:
    """Test that engagement weights only name interactions users can create."""

    @pytest.mark.parametrize("entity_type, weights", [
        (EntityType.PRODUCT, PRODUCT_ENGAGEMENT_WEIGHTS),
        (EntityType.ROUTINE, ROUTINE_ENGAGEMENT_WEIGHTS),
    ])
    def test_weights_match_allowed_types(self, entity_type, weights):
        allowed = InteractionType.get_allowed_types(entity_type, include_internal=True)
        assert set(weights) <= set(allowed)


class TestInteractionLedger:
    """Test ledger state transitions against the store."""

    def setup_method(self):
        """Set up a ledger over an empty store."""
        self.store = DocumentStore()
        self.ledger = InteractionLedger(self.store)

    def user(self):
        return self.store.get("users", "u1").data

    def test_create_is_idempotent(self):
        """Test that a repeated create is a distinct no-op."""
        first = self.ledger.create("u1", EntityType.PRODUCT, "p1", InteractionType.SAVE, CURLY_FOLLICLE)
        second = self.ledger.create("u1", EntityType.PRODUCT, "p1", InteractionType.SAVE, CURLY_FOLLICLE)

        assert first is CreateOutcome.CREATED
        assert second is CreateOutcome.ALREADY_EXISTS
        assert self.store.count("product_interactions") == 1
        assert self.user()["saved_products"] == ["p1"]

    def test_deterministic_document_id(self):
        """Test the document id of non-view interactions."""
        self.ledger.create("u1", EntityType.ROUTINE, "r1", InteractionType.ADAPT, CURLY_FOLLICLE)
        doc = self.store.get("routine_interactions", interaction_doc_id("u1", "r1", InteractionType.ADAPT))
        assert doc.get("follicle_id") == CURLY_FOLLICLE
        assert doc.get("timestamp")
        assert self.user()["adapted_routines"] == ["r1"]

    def test_like_replaces_dislike(self):
        """Test the atomic swap of dislike for like."""
        self.ledger.create("u1", EntityType.PRODUCT, "p1", InteractionType.DISLIKE, CURLY_FOLLICLE)
        assert self.user()["disliked_products"] == ["p1"]

        self.ledger.create("u1", EntityType.PRODUCT, "p1", InteractionType.LIKE, CURLY_FOLLICLE)

        assert not self.ledger.exists("u1", EntityType.PRODUCT, "p1", InteractionType.DISLIKE)
        assert self.ledger.exists("u1", EntityType.PRODUCT, "p1", InteractionType.LIKE)
        assert "p1" not in self.user()["disliked_products"]
        assert self.user()["liked_products"] == ["p1"]

    def test_dislike_replaces_like(self):
        """Test the symmetric swap."""
        self.ledger.create("u1", EntityType.ROUTINE, "r1", InteractionType.LIKE, CURLY_FOLLICLE)
        self.ledger.create("u1", EntityType.ROUTINE, "r1", InteractionType.DISLIKE, CURLY_FOLLICLE)
        assert self.ledger.sentiment("u1", EntityType.ROUTINE, "r1") is Sentiment.DISLIKED
        assert self.user()["liked_routines"] == []
        assert self.user()["disliked_routines"] == ["r1"]

    def test_views_are_append_only(self):
        """Test that views are never deduplicated and have no cache field."""
        for _ in range(3):
            assert self.ledger.create(
                "u1", EntityType.PRODUCT, "p1", InteractionType.VIEW, CURLY_FOLLICLE
            ) is CreateOutcome.CREATED
        assert self.store.count("product_interactions") == 3
        assert self.store.get("users", "u1") is None

    def test_delete(self):
        """Test present -> absent and NotFound when absent."""
        from app.errors import NotFound

        self.ledger.create("u1", EntityType.INGREDIENT, "i1", InteractionType.AVOID, CURLY_FOLLICLE)
        assert self.ledger.delete("u1", EntityType.INGREDIENT, "i1", InteractionType.AVOID) == 1
        assert self.user()["avoid_ingredients"] == []

        with pytest.raises(NotFound):
            self.ledger.delete("u1", EntityType.INGREDIENT, "i1", InteractionType.AVOID)

    def test_apply_interaction_delta(self):
        """Test the cache projection on its own."""
        batch = self.store.batch()
        assert apply_interaction_delta(batch, "u1", EntityType.PRODUCT, "p1", InteractionType.LIKE, True) == "liked_products"
        assert apply_interaction_delta(batch, "u1", EntityType.PRODUCT, "p1", InteractionType.VIEW, True) is None
        batch.commit()
        assert self.user() == {"liked_products": ["p1"]}

    def test_routine_products_kept_while_shared(self):
        """Test that membership survives while another routine uses the product."""
        batch = self.store.batch()
        self.ledger.track_routine_products(batch, "u1", "r1", ["p1", "p2"], CURLY_FOLLICLE)
        self.ledger.track_routine_products(batch, "u1", "r2", ["p1"], CURLY_FOLLICLE)
        batch.commit()

        batch = self.store.batch()
        self.ledger.untrack_routine_products(batch, "u1", "r1", ["p1", "p2"])
        batch.commit()

        assert self.user()["routine_products"] == ["p1"]
        remaining = self.ledger.find("u1", EntityType.PRODUCT, "p1", InteractionType.ROUTINE)
        assert [doc.get("routine_id") for doc in remaining] == ["r2"]


class TestInteractionRoutes:
    """Test the interaction HTTP surface."""

    def test_requires_auth(self, client):
        """Test 401 without a bearer token."""
        response = client.post("/interactions/products/p1/like")
        assert response.status_code == 401
        assert "error" in response.get_json()

        bad = client.post("/interactions/products/p1/like", headers={"Authorization": "Bearer nope"})
        assert bad.status_code == 401

    def test_create_then_already_exists(self, client, make_user):
        """Test 200 on create and 208 on repeat."""
        headers = make_user("alice")
        first = client.post("/interactions/products/p1/save", headers=headers)
        assert first.status_code == 200
        body = first.get_json()
        assert body["success"] is True
        assert body["already_exists"] is False
        assert body["score"]["score"] is not None

        second = client.post("/interactions/products/p1/save", headers=headers)
        assert second.status_code == 208
        assert second.get_json() == {"success": True, "already_exists": True}

    def test_exists_and_list(self, client, make_user):
        """Test the existence check and the per-user listing."""
        headers = make_user("alice")
        assert client.get("/interactions/products/p1/like", headers=headers).get_json() == {
            "success": True, "exists": False,
        }
        client.post("/interactions/products/p1/like", headers=headers)
        client.post("/interactions/products/p2/save", headers=headers)
        assert client.get("/interactions/products/p1/like", headers=headers).get_json()["exists"] is True

        listed = client.get("/interactions/products", headers=headers).get_json()["interactions"]
        assert {item["entity_id"] for item in listed} == {"p1", "p2"}
        likes = client.get("/interactions/products?type=like", headers=headers).get_json()["interactions"]
        assert [item["entity_id"] for item in likes] == ["p1"]

    def test_like_after_dislike_updates_user_cache(self, client, make_user, services):
        """Test the swap through the HTTP surface."""
        headers = make_user("alice")
        client.post("/interactions/products/p1/dislike", headers=headers)
        client.post("/interactions/products/p1/like", headers=headers)

        user = client.get("/users/me", headers=headers).get_json()["user"]
        assert "p1" not in user.get("disliked_products", [])
        assert user["liked_products"] == ["p1"]

    def test_delete_missing_is_404(self, client, make_user):
        """Test NotFound for absent interactions."""
        headers = make_user("alice")
        assert client.delete("/interactions/products/p1/like", headers=headers).status_code == 404

        client.post("/interactions/products/p1/like", headers=headers)
        assert client.delete("/interactions/products/p1/like", headers=headers).status_code == 200

    def test_validation(self, client, make_user):
        """Test 400 for bad entity types, bad interaction types and missing analysis."""
        headers = make_user("alice")
        assert client.post("/interactions/widgets/p1/like", headers=headers).status_code == 400
        assert client.post("/interactions/products/p1/adapt", headers=headers).status_code == 400
        assert client.post("/interactions/products/p1/routine", headers=headers).status_code == 400

        no_profile = make_user("bob", analysis=None)
        response = client.post("/interactions/products/p1/like", headers=no_profile)
        assert response.status_code == 400
        assert response.get_json()["error"] == "hair-analysis-required"

    def test_unknown_product_is_404(self, client, make_user):
        """Test interactions on entities that do not exist."""
        headers = make_user("alice")
        assert client.post("/interactions/products/nope/like", headers=headers).status_code == 404

    def test_ingredient_interactions(self, client, make_user):
        """Test ingredient interactions update the user cache only."""
        headers = make_user("alice")
        response = client.post("/interactions/ingredients/glycerin/allergic", headers=headers)
        assert response.status_code == 200
        assert response.get_json()["score"] is None
        user = client.get("/users/me", headers=headers).get_json()["user"]
        assert user["allergic_ingredients"] == ["glycerin"]

    def test_interaction_rescored_with_engagement(self, client, make_user):
        """Test that the refreshed score reflects the new interaction."""
        other = make_user("bob")
        client.post("/interactions/products/p1/like", headers=other)

        headers = make_user("alice")
        before = client.get("/products/p1/score", headers=headers).get_json()["score"]
        response = client.post("/interactions/products/p1/save", headers=headers)
        after = response.get_json()["score"]

        assert after["breakdown"]["engagement_score"] >= before["breakdown"]["engagement_score"]
        assert "1 person with identical hair saved this" in after["match_reasons"]
