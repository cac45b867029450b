"""
Users module: profiles and hair analysis.
"""

from .services import UserService
from .factory import create_users_module

__all__ = ['UserService', 'create_users_module']
