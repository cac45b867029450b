"""
Factory for creating the catalog module.
"""
from typing import Iterable, Optional

from match_service.cache import Cache
from match_service.store import DocumentStore
from app.auth.services import AuthService
from .routes import create_catalog_blueprint
from .services import CatalogService


def create_catalog_module(
    store: DocumentStore,
    cache: Cache,
    auth_service: AuthService,
    reference_ttl_seconds: Optional[float] = None,
    admin_user_ids: Optional[Iterable[str]] = None,
) -> dict:
    """Create catalog module with service and routes.

    Returns:
        Dictionary containing the service and blueprint
    """
    catalog_service = CatalogService(store, cache, reference_ttl_seconds)
    blueprint = create_catalog_blueprint(catalog_service, auth_service, admin_user_ids)

    return {
        "service": catalog_service,
        "blueprint": blueprint
    }
