"""
Factory for creating the scores module.
"""
from concurrent.futures import Executor
from typing import Optional

from match_service.cache import Cache
from match_service.engagement import StoreInteractionSource, build_engagement_scorer
from match_service.matcher import ProductMatcher, RoutineMatcher
from match_service.store import DocumentStore
from match_service.weights import PRODUCT_ENGAGEMENT_WEIGHTS, ROUTINE_ENGAGEMENT_WEIGHTS
from app.interactions.models import EntityType
from app.auth.services import AuthService
from app.catalog.services import CatalogService
from .routes import create_scores_blueprint
from .services import ScoreStore


def create_scores_module(
    store: DocumentStore,
    cache: Cache,
    catalog_service: CatalogService,
    auth_service: AuthService,
    scoring_config,
    score_ttl_seconds: Optional[float] = None,
    executor: Optional[Executor] = None,
) -> dict:
    """Create scores module with matchers, score store and routes.

    Returns:
        Dictionary containing the service and blueprint
    """
    product_engagement = build_engagement_scorer(
        StoreInteractionSource(store, EntityType.PRODUCT.collection_name), PRODUCT_ENGAGEMENT_WEIGHTS, scoring_config
    )
    routine_engagement = build_engagement_scorer(
        StoreInteractionSource(store, EntityType.ROUTINE.collection_name), ROUTINE_ENGAGEMENT_WEIGHTS, scoring_config
    )

    product_matcher = ProductMatcher(product_engagement, max_reasons=scoring_config.max_match_reasons)
    routine_matcher = RoutineMatcher(
        routine_engagement,
        product_matcher,
        catalog_service.get_product,
        max_reasons=scoring_config.max_match_reasons,
    )

    score_store = ScoreStore(
        store,
        catalog_service,
        product_matcher,
        routine_matcher,
        cache,
        score_ttl_seconds=score_ttl_seconds,
        write_batch_size=scoring_config.write_batch_size,
        executor=executor,
    )
    blueprint = create_scores_blueprint(score_store, auth_service)

    return {
        "service": score_store,
        "blueprint": blueprint
    }
