"""
Routines module: routine mutations and their ledger bookkeeping.
"""

from .models import RoutinePayload
from .services import RoutineService, diff_routine_products
from .factory import create_routines_module

__all__ = [
    'RoutinePayload',
    'RoutineService',
    'diff_routine_products',
    'create_routines_module',
]
