# Overview: Flask API routes for products and categories; parses input and returns JSON responses.

# backend/billing/routes/products.py
"""
Catalog routes: categories, products and the low-stock list.
"""
from flask import Blueprint, request, jsonify, current_app

from ..models import Product
from ..services import products_service
from ..services.stock_service import list_low_stock
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    ValidationError,
    ConflictError,
)

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields=set(products_service.PRODUCT_MUTABLE_FIELDS),
    required_on_create={"name", "selling_price"},
    non_negative_fields={"purchase_price", "selling_price", "low_stock_alert", "gst_rate"},
)

products_bp = Blueprint("products", __name__, url_prefix="/api/products")
categories_bp = Blueprint("categories", __name__, url_prefix="/api/categories")


@categories_bp.get("")
def list_categories():
    return jsonify(products_service.list_categories()), 200


@categories_bp.post("")
def create_category_route():
    payload = request.get_json(silent=True) or {}
    try:
        products_service.create_category(payload.get("name"))
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to create category")
        return jsonify({"error": "Failed to create category"}), 500

    return jsonify({"success": True}), 201


@products_bp.get("")
def list_products():
    """
    List products ordered by name.

    Query params:
    - search: name / SKU substring
    - category: exact category
    """
    return jsonify(products_service.list_products(
        search=request.args.get("search") or None,
        category=request.args.get("category") or None,
    )), 200


@products_bp.get("/low-stock")
def low_stock_route():
    """Products at or below their low-stock threshold."""
    return jsonify([p.to_dict() for p in list_low_stock()]), 200


@products_bp.post("")
def create_product_route():
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    try:
        created = products_service.create_product(patch=patch)
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409

    return jsonify(created), 201


@products_bp.get("/<int:product_id>")
def get_product_route(product_id: int):
    product = products_service.get_product(product_id)
    if product is None:
        return jsonify({"error": "Not found"}), 404
    return jsonify(product.to_dict()), 200


@products_bp.put("/<int:product_id>")
def update_product_route(product_id: int):
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=True)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    try:
        updated = products_service.update_product(product_id=product_id, patch=patch)
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409

    if not updated:
        return jsonify({"error": "Not found"}), 404

    return jsonify(updated), 200


@products_bp.delete("/<int:product_id>")
def delete_product_route(product_id: int):
    try:
        deleted = products_service.delete_product(product_id=product_id)
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409

    if not deleted:
        return jsonify({"error": "Not found"}), 404

    return jsonify({"success": True}), 200
