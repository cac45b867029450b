"""
Tests for authentication, user profiles and the catalog routes.
"""

from unittest.mock import patch

import pytest
from itsdangerous import URLSafeTimedSerializer

from match_service.store import DocumentStore
from app.auth.services import AuthService
from app.errors import Unauthorized, ValidationError
from conftest import CURLY_FOLLICLE, PASSWORD, PRODUCTS


class TestAuthService:
    """Test password hashing and bearer tokens."""

    def setup_method(self):
        """Set up an auth service over an empty store."""
        self.store = DocumentStore()
        self.auth = AuthService(self.store, "secret", token_max_age_seconds=60, bcrypt_rounds=4)

    def test_register_and_token(self):
        """Test the full credential flow."""
        self.auth.register("alice", PASSWORD)
        stored = self.store.get("users", "alice").get("password_hash")
        assert stored and stored != PASSWORD

        token = self.auth.issue_token("alice", PASSWORD)
        assert self.auth.verify_token(token) == "alice"

    def test_register_twice_fails(self):
        """Test that an existing user cannot be re-registered."""
        self.auth.register("alice", PASSWORD)
        with pytest.raises(ValidationError):
            self.auth.register("alice", "other")

    def test_wrong_password(self):
        """Test that bad credentials are rejected."""
        self.auth.register("alice", PASSWORD)
        with pytest.raises(Unauthorized):
            self.auth.issue_token("alice", "wrong")
        with pytest.raises(Unauthorized):
            self.auth.issue_token("nobody", PASSWORD)

    def test_token_from_other_secret(self):
        """Test that tokens signed with another key are rejected."""
        forged = URLSafeTimedSerializer("other-secret", salt="match-service-auth").dumps("alice")
        with pytest.raises(Unauthorized) as exc_info:
            self.auth.verify_token(forged)
        assert exc_info.value.message == "invalid-token"

    def test_expired_token(self):
        """Test max-age enforcement."""
        token = self.auth._serializer.dumps("alice")
        with patch.object(self.auth, "token_max_age_seconds", -1):
            with pytest.raises(Unauthorized) as exc_info:
                self.auth.verify_token(token)
        assert exc_info.value.message == "token-expired"


class TestUserRoutes:
    """Test the user profile routes."""

    def test_me(self, client, make_user):
        """Test the profile read without secrets."""
        headers = make_user("alice")
        user = client.get("/users/me", headers=headers).get_json()["user"]

        assert user["uid"] == "alice"
        assert user["follicle_id"] == CURLY_FOLLICLE
        assert user["follicle_description"]["porosity"] == "high porosity"
        assert user["analysis_completed_at"]
        assert "password_hash" not in user

    def test_me_requires_auth(self, client):
        """Test 401 without credentials."""
        assert client.get("/users/me").status_code == 401

    def test_register_validation(self, client):
        """Test 400 for missing credentials and duplicate users."""
        assert client.post("/auth/register", json={"uid": "alice"}).status_code == 400
        assert client.post("/auth/register", json={"uid": "alice", "password": PASSWORD}).status_code == 201
        assert client.post("/auth/register", json={"uid": "alice", "password": PASSWORD}).status_code == 400
        assert client.post("/auth/token", json={"uid": "alice", "password": "nope"}).status_code == 401


class TestCatalogRoutes:
    """Test products, ingredients and the health endpoint."""

    def test_list_products_cached(self, client, services, store):
        """Test that the product list is served from the reference cache."""
        first = client.get("/products").get_json()["products"]
        assert {p["id"] for p in first} == set(PRODUCTS)

        store.set("products", "sneaky", {"name": "Direct write"})
        assert len(client.get("/products").get_json()["products"]) == len(PRODUCTS)

    def test_add_product_evicts_cache(self, client, make_user):
        """Test that adding a product refreshes the cached list."""
        headers = make_user("alice")
        client.get("/products")
        response = client.post("/products", json={
            "id": "p4", "name": "Mask", "category": "Hair Masks",
            "ingredients_normalized": [" Glycerin ", "AQUA"],
        }, headers=headers)

        assert response.status_code == 201
        assert response.get_json()["product"]["ingredients_normalized"] == ["glycerin", "aqua"]
        assert "p4" in {p["id"] for p in client.get("/products").get_json()["products"]}

    def test_add_product_admin_only(self, config, store):
        """Test that configured admins restrict catalog writes."""
        from app.main import create_app

        config._config["app"]["admin_user_ids"] = ["root"]
        client = create_app(config, store=store, run_in_background=False).test_client()
        client.post("/auth/register", json={"uid": "alice", "password": PASSWORD})
        token = client.post("/auth/token", json={"uid": "alice", "password": PASSWORD}).get_json()["token"]

        response = client.post("/products", json={"id": "p9", "name": "X"}, headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 403

    def test_add_product_validation(self, client, make_user):
        """Test 400 for invalid products."""
        headers = make_user("alice")
        response = client.post("/products", json={"name": "No price", "price": "free"}, headers=headers)
        assert response.status_code == 400

    def test_ingredients(self, client, store):
        """Test the ingredient list."""
        store.set("ingredients", "glycerin", {"name": "Glycerin", "inci_name": "glycerin"})
        ingredients = client.get("/ingredients").get_json()["ingredients"]
        assert ingredients == [{"id": "glycerin", "name": "Glycerin", "inci_name": "glycerin"}]

    def test_health(self, client):
        """Test the liveness endpoint."""
        response = client.get("/actuator/health")
        assert response.status_code == 200
        assert response.get_json()["status"] == "UP"

    def test_unknown_route_is_json(self, client):
        """Test that HTTP errors are returned as JSON."""
        response = client.get("/nothing-here")
        assert response.status_code == 404
        assert response.get_json() == {"error": "not-found"}
