"""
Shared fixtures for the web application tests.
"""

import pytest

from config_manager import ConfigManager
from match_service.cache import ReferenceCache
from match_service.store import DocumentStore
from app.main import create_app

PASSWORD = "correct-horse-battery"

CURLY_ANALYSIS = {
    "hair_type": "curly",
    "porosity": "high",
    "density": "medium",
    "thickness": "fine",
    "damage": "none",
}
CURLY_FOLLICLE = "CU-H-M-F-N"

PRODUCTS = {
    "p1": {"name": "Curl Cream", "brand": "Acme", "category": "Styling Creams & Sprays",
           "ingredients_normalized": ["aqua", "glycerin", "butyrospermum parkii butter"]},
    "p2": {"name": "Gentle Shampoo", "brand": "Acme", "category": "Shampoos",
           "ingredients_normalized": ["aqua", "cocamidopropyl betaine", "panthenol"]},
    "p3": {"name": "Argan Oil", "brand": "Oleo", "category": "Hair Oils",
           "ingredients_normalized": ["argania spinosa kernel oil"]},
}


@pytest.fixture
def config(tmp_path):
    manager = ConfigManager(str(tmp_path / "config.json"))
    manager._config["auth"]["secret_key"] = "test-secret"
    manager._config["auth"]["bcrypt_rounds"] = 4
    manager._config["paths"]["data_dir"] = str(tmp_path / "data")
    manager._config["app"]["admin_user_ids"] = []
    return manager


@pytest.fixture
def store():
    store = DocumentStore()
    for product_id, product in PRODUCTS.items():
        store.set("products", product_id, product)
    return store


@pytest.fixture
def app(config, store):
    return create_app(config, store=store, cache=ReferenceCache(), run_in_background=False)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def services(app):
    return app.extensions["match_service"]


@pytest.fixture
def make_user(client):
    """Register a user, issue a token and optionally save a hair analysis."""
    def _make_user(uid, analysis=CURLY_ANALYSIS):
        client.post("/auth/register", json={"uid": uid, "password": PASSWORD})
        token = client.post("/auth/token", json={"uid": uid, "password": PASSWORD}).get_json()["token"]
        headers = {"Authorization": f"Bearer {token}"}
        if analysis:
            response = client.put("/users/me/analysis", json=analysis, headers=headers)
            assert response.status_code == 200
        return headers
    return _make_user


def routine_payload(*product_ids, name="Wash day", is_public=True):
    return {
        "name": name,
        "description": "",
        "is_public": is_public,
        "steps": [
            {"order": order, "product_id": pid, "step_name": "Shampoos", "frequency": {"interval": 1, "unit": "week"}}
            for order, pid in enumerate(product_ids)
        ],
    }
