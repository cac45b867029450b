"""
Factory for creating the users module.
"""
from match_service.store import DocumentStore
from app.auth.services import AuthService
from app.scores.services import ScoreStore
from .routes import create_users_blueprint
from .services import UserService


def create_users_module(store: DocumentStore, score_store: ScoreStore, auth_service: AuthService) -> dict:
    """Create users module with service and routes.

    Returns:
        Dictionary containing the service and blueprint
    """
    user_service = UserService(store, score_store)
    blueprint = create_users_blueprint(user_service, auth_service)

    return {
        "service": user_service,
        "blueprint": blueprint
    }
