"""
Interactions module: the interaction ledger and its user-document projections.
"""

from .models import (
    CACHE_FIELD_MAP,
    CREATED_ROUTINES_FIELD,
    CreateOutcome,
    EntityType,
    InteractionType,
    Sentiment,
)
from .services import InteractionLedger, InteractionService, apply_interaction_delta, interaction_doc_id
from .factory import create_interactions_module

__all__ = [
    'CACHE_FIELD_MAP',
    'CREATED_ROUTINES_FIELD',
    'CreateOutcome',
    'EntityType',
    'InteractionType',
    'Sentiment',
    'InteractionLedger',
    'InteractionService',
    'apply_interaction_delta',
    'interaction_doc_id',
    'create_interactions_module',
]
