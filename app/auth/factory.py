"""
Factory for creating the auth module.
"""
from typing import Optional

from match_service.store import DocumentStore
from .routes import create_auth_blueprint
from .services import AuthService


def create_auth_module(
    store: DocumentStore,
    secret_key: str,
    token_max_age_seconds: int,
    bcrypt_rounds: Optional[int] = None,
) -> dict:
    """Create auth module with service and routes.

    Returns:
        Dictionary containing the service and blueprint
    """
    auth_service = AuthService(store, secret_key, token_max_age_seconds, bcrypt_rounds)
    blueprint = create_auth_blueprint(auth_service)

    return {
        "service": auth_service,
        "blueprint": blueprint
    }
