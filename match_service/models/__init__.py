"""
Data models for the match service.

Pydantic models shared by the scoring library and the web layer.
"""

from .profile import HairAnalysis, CORE_ANALYSIS_FIELDS
from .catalog import Product, Ingredient, Frequency, RoutineStep, Routine
from .interaction import Interaction
from .scores import ScoreBreakdown, MatchScore

__all__ = [
    "HairAnalysis",
    "CORE_ANALYSIS_FIELDS",
    "Product",
    "Ingredient",
    "Frequency",
    "RoutineStep",
    "Routine",
    "Interaction",
    "ScoreBreakdown",
    "MatchScore",
]
