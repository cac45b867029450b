"""
Catalog Subsystem

Reference data (products, ingredients) and routine lookups.
"""

from .services import CatalogService

__all__ = ['CatalogService']
