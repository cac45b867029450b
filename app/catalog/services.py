"""
Catalog services: reference collections and routine lookups.

Products and ingredients change rarely and are read through the
reference cache; routines are user content and always read directly.
"""
import logging
import uuid
from typing import Any, Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError

from match_service.cache import Cache
from match_service.models import Ingredient, Product, Routine
from match_service.store import DocumentStore
from app.errors import validation_error_from_pydantic

logger = logging.getLogger(__name__)

PRODUCTS_COLLECTION = "products"
INGREDIENTS_COLLECTION = "ingredients"
ROUTINES_COLLECTION = "routines"

PRODUCTS_CACHE_KEY = "reference:products"
INGREDIENTS_CACHE_KEY = "reference:ingredients"


class CatalogService:
    """Read access to products, ingredients and routines."""

    def __init__(self, store: DocumentStore, cache: Cache, reference_ttl_seconds: Optional[float] = None):
        self.store = store
        self.cache = cache
        self.reference_ttl_seconds = reference_ttl_seconds

    # Products -----------------------------------------------------------------

    def _load_products(self) -> List[Product]:
        docs = self.store.query(PRODUCTS_COLLECTION)
        logger.info(f"Loaded {len(docs)} products from store")
        return [Product(id=doc.id, **{k: v for k, v in doc.data.items() if k != "id"}) for doc in docs]

    def get_all_products(self) -> List[Product]:
        """Full product list, cached for the reference TTL."""
        return self.cache.get_or_load(PRODUCTS_CACHE_KEY, self._load_products, self.reference_ttl_seconds)

    def get_product(self, product_id: str) -> Optional[Product]:
        """Single product read straight from the store."""
        doc = self.store.get(PRODUCTS_COLLECTION, product_id)
        if doc is None:
            return None
        return Product(id=doc.id, **{k: v for k, v in doc.data.items() if k != "id"})

    def add_product(self, payload: Dict[str, Any]) -> Product:
        """Validate and store a new product, then evict the cached list."""
        data = dict(payload)
        data.setdefault("id", uuid.uuid4().hex)
        data["ingredients_normalized"] = [
            str(name).strip().lower() for name in data.get("ingredients_normalized") or [] if str(name).strip()
        ]
        try:
            product = Product(**data)
        except PydanticValidationError as exc:
            raise validation_error_from_pydantic(exc)

        self.store.set(PRODUCTS_COLLECTION, product.id, product.model_dump(exclude={"id"}))
        self.cache.invalidate(PRODUCTS_CACHE_KEY)
        logger.info(f"Added product {product.id} ({product.name})")
        return product

    # Ingredients --------------------------------------------------------------

    def _load_ingredients(self) -> List[Ingredient]:
        docs = self.store.query(INGREDIENTS_COLLECTION)
        return [Ingredient(id=doc.id, **{k: v for k, v in doc.data.items() if k != "id"}) for doc in docs]

    def get_all_ingredients(self) -> List[Ingredient]:
        """Full ingredient list, cached for the reference TTL."""
        return self.cache.get_or_load(INGREDIENTS_CACHE_KEY, self._load_ingredients, self.reference_ttl_seconds)

    # Routines -----------------------------------------------------------------

    def get_routine(self, routine_id: str, include_deleted: bool = False) -> Optional[Routine]:
        doc = self.store.get(ROUTINES_COLLECTION, routine_id)
        if doc is None:
            return None
        routine = Routine(id=doc.id, **{k: v for k, v in doc.data.items() if k != "id"})
        if routine.is_deleted and not include_deleted:
            return None
        return routine

    def get_public_routines(self) -> List[Routine]:
        """Public routines that have not been soft-deleted."""
        docs = self.store.query(ROUTINES_COLLECTION, where=[("is_public", "==", True)])
        return [
            Routine(id=doc.id, **{k: v for k, v in doc.data.items() if k != "id"})
            for doc in docs
            if not doc.get("deleted_at")
        ]
