"""
Factory for creating the routines module.
"""
from match_service.store import DocumentStore
from app.auth.services import AuthService
from app.catalog.services import CatalogService
from app.interactions.services import InteractionLedger
from app.scores.services import ScoreStore
from .routes import create_routines_blueprint
from .services import RoutineService


def create_routines_module(
    store: DocumentStore,
    catalog_service: CatalogService,
    ledger: InteractionLedger,
    score_store: ScoreStore,
    auth_service: AuthService,
) -> dict:
    """Create routines module with service and routes.

    Returns:
        Dictionary containing the service and blueprint
    """
    routine_service = RoutineService(store, catalog_service, ledger, score_store)
    blueprint = create_routines_blueprint(routine_service, auth_service)

    return {
        "service": routine_service,
        "blueprint": blueprint
    }
