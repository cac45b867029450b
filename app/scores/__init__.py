"""
Scores module: persisted per-user match scores and completion polling.
"""

from .models import EntityKind, RescoreItem, RescoreOutcome, RescoreReport
from .services import ScoreStore, score_cache_key, score_collection
from .factory import create_scores_module

__all__ = [
    'EntityKind',
    'RescoreItem',
    'RescoreOutcome',
    'RescoreReport',
    'ScoreStore',
    'score_cache_key',
    'score_collection',
    'create_scores_module',
]
