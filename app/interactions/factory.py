"""
Factory for creating the interactions module.
"""
from match_service.store import DocumentStore
from app.auth.services import AuthService
from app.catalog.services import CatalogService
from app.scores.services import ScoreStore
from .routes import create_interactions_blueprint
from .services import InteractionLedger, InteractionService


def create_interactions_module(
    store: DocumentStore,
    score_store: ScoreStore,
    catalog_service: CatalogService,
    auth_service: AuthService,
) -> dict:
    """Create interactions module with ledger, service and routes.

    Returns:
        Dictionary containing the ledger, service and blueprint
    """
    ledger = InteractionLedger(store)
    interaction_service = InteractionService(ledger, score_store, catalog_service)
    blueprint = create_interactions_blueprint(interaction_service, auth_service)

    return {
        "ledger": ledger,
        "service": interaction_service,
        "blueprint": blueprint
    }
