# Match service package: hair-profile similarity, scoring and score storage primitives

from .follicle import (
    generate_follicle_id,
    decode_follicle_id,
    describe_follicle_id,
    format_follicle_id,
    follicle_similarity,
    similarity_bucket,
)
from .engagement import (
    EngagementScorer,
    EngagementResult,
    SimilarityBuckets,
    InteractionSource,
    StoreInteractionSource,
    build_engagement_scorer,
)
from .ingredients import ContentScore, score_ingredients, INGREDIENT_PROFILES
from .composer import ComposedScore, compose, merge_reasons, compose_with_reasons
from .matcher import ProductMatcher, RoutineMatcher
from .cache import Cache, ReferenceCache, NullCache, build_cache
from .store import (
    DocumentStore,
    JsonDocumentStore,
    WriteBatch,
    Document,
    ArrayUnion,
    ArrayRemove,
    SERVER_TIMESTAMP,
    utc_now_iso,
    parse_timestamp,
)
from .logging_config import (
    setup_logging,
    stop_logging,
    get_logger,
    ThreadSafeLoggingConfig,
)

__all__ = [
    "generate_follicle_id",
    "decode_follicle_id",
    "describe_follicle_id",
    "format_follicle_id",
    "follicle_similarity",
    "similarity_bucket",
    "EngagementScorer",
    "EngagementResult",
    "SimilarityBuckets",
    "InteractionSource",
    "StoreInteractionSource",
    "build_engagement_scorer",
    "ContentScore",
    "score_ingredients",
    "INGREDIENT_PROFILES",
    "ComposedScore",
    "compose",
    "merge_reasons",
    "compose_with_reasons",
    "ProductMatcher",
    "RoutineMatcher",
    "Cache",
    "ReferenceCache",
    "NullCache",
    "build_cache",
    "DocumentStore",
    "JsonDocumentStore",
    "WriteBatch",
    "Document",
    "ArrayUnion",
    "ArrayRemove",
    "SERVER_TIMESTAMP",
    "utc_now_iso",
    "parse_timestamp",
    "setup_logging",
    "stop_logging",
    "get_logger",
    "ThreadSafeLoggingConfig",
]
