"""
Auth Subsystem

Bearer-token authentication for the JSON API.
"""

from .services import AuthService

__all__ = ['AuthService']
