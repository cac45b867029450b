"""
Catalog routes.
"""
import logging
from typing import Iterable, Optional

from flask import Blueprint, request, jsonify

from app.auth.services import AuthService
from app.errors import ApiError, Forbidden
from .services import CatalogService

logger = logging.getLogger(__name__)


def create_catalog_blueprint(
    catalog_service: CatalogService,
    auth_service: AuthService,
    admin_user_ids: Optional[Iterable[str]] = None,
) -> Blueprint:
    """Create catalog routes."""
    bp = Blueprint('catalog', __name__)
    admins = set(admin_user_ids or [])

    @bp.route("/products", methods=["GET"])
    def list_products():
        """List all products (served from the reference cache)."""
        products = catalog_service.get_all_products()
        return jsonify({"success": True, "products": [p.model_dump() for p in products]})

    @bp.route("/products", methods=["POST"])
    def add_product():
        """Add a product to the catalog."""
        uid, error = auth_service.require_auth_json()
        if error:
            return jsonify(error), 401
        if admins and uid not in admins:
            return Forbidden("admin-only").to_response()
        try:
            product = catalog_service.add_product(request.get_json(silent=True) or {})
        except ApiError as exc:
            return exc.to_response()
        logger.info(f"User {uid} added product {product.id}")
        return jsonify({"success": True, "product": product.model_dump()}), 201

    @bp.route("/ingredients", methods=["GET"])
    def list_ingredients():
        """List all ingredients (served from the reference cache)."""
        ingredients = catalog_service.get_all_ingredients()
        return jsonify({"success": True, "ingredients": [i.model_dump() for i in ingredients]})

    return bp
