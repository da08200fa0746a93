# backend/billing/services/products_service.py
"""
Catalog Service: categories and products.

Stock levels are normally changed by the invoice engine (stock_service);
direct edits here overwrite the quantity, for stock-taking and receiving.
"""
from __future__ import annotations

import logging

from sqlalchemy import or_

from ..extensions import db
from ..models import Category, InvoiceItem, Product
from ..validation import ConflictError, ValidationError


logger = logging.getLogger(__name__)

PRODUCT_MUTABLE_FIELDS = {
    "name", "sku", "category", "hsn_code", "purchase_price", "selling_price",
    "quantity", "unit", "low_stock_alert", "gst_rate", "description",
}

DEFAULT_CATEGORIES = [
    "Grocery", "Dairy", "Beverages", "Snacks", "Personal Care",
    "Household", "Spices", "Pulses", "Rice & Flour", "Oil & Ghee",
]


# =============================================================================
# CATEGORIES
# =============================================================================

def list_categories() -> list[dict]:
    rows = db.session.query(Category).order_by(Category.name.asc()).all()
    return [c.to_dict() for c in rows]


def create_category(name: str | None) -> dict:
    name = (name or "").strip()
    if not name:
        raise ValidationError("Name required")
    if db.session.query(Category).filter_by(name=name).first():
        raise ConflictError(f"Category '{name}' already exists")

    category = Category(name=name)
    db.session.add(category)
    db.session.commit()
    return category.to_dict()


def seed_default_categories() -> int:
    existing = {name for (name,) in db.session.query(Category.name).all()}
    to_add = [name for name in DEFAULT_CATEGORIES if name not in existing]
    for name in to_add:
        db.session.add(Category(name=name))
    if to_add:
        db.session.flush()
    return len(to_add)


# =============================================================================
# PRODUCTS
# =============================================================================

def apply_product_patch(p: Product, patch: dict) -> None:
    for k, v in patch.items():
        if k not in PRODUCT_MUTABLE_FIELDS:
            continue
        if k == "sku":
            # Blank SKU means "no SKU" so the unique index does not collide on ""
            v = v or None
        elif v is None:
            continue
        setattr(p, k, v)


def _ensure_sku_free(sku: str | None, product_id: int | None = None) -> None:
    if not sku:
        return
    q = db.session.query(Product).filter(Product.sku == sku)
    if product_id is not None:
        q = q.filter(Product.id != product_id)
    if q.first():
        raise ConflictError("SKU already exists.")


def list_products(search: str | None = None, category: str | None = None) -> list[dict]:
    """
    Product listing ordered by name.

    Args:
        search: substring match on name or SKU
        category: exact category label
    """
    query = db.session.query(Product)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(or_(Product.name.ilike(pattern), Product.sku.ilike(pattern)))
    if category:
        query = query.filter(Product.category == category)

    products = query.order_by(Product.name.asc(), Product.id.asc()).all()
    return [p.to_dict() for p in products]


def get_product(product_id: int) -> Product | None:
    return db.session.get(Product, product_id)


def create_product(*, patch: dict) -> dict:
    """
    Create product using a validated patch dict.

    Raises:
        ConflictError: If SKU already exists
    """
    _ensure_sku_free(patch.get("sku"))

    p = Product()
    apply_product_patch(p, patch)

    db.session.add(p)
    db.session.commit()
    logger.info("Created product %s (id=%s)", p.name, p.id)
    return p.to_dict()


def update_product(*, product_id: int, patch: dict) -> dict | None:
    """
    Update a product.

    Returns:
        Updated product dict, or None if not found

    Raises:
        ConflictError: If new SKU already exists
    """
    p = db.session.get(Product, product_id)
    if not p:
        return None

    if "sku" in patch and patch["sku"] != p.sku:
        _ensure_sku_free(patch["sku"], product_id=p.id)

    apply_product_patch(p, patch)
    db.session.commit()
    return p.to_dict()


def delete_product(*, product_id: int) -> bool:
    """
    Delete a product.

    Products that appear on any invoice are kept: invoice items reference
    them and reversal restocks them.

    Returns:
        True if deleted, False if not found

    Raises:
        ConflictError: If the product is referenced by invoice items
    """
    p = db.session.get(Product, product_id)
    if not p:
        return False

    in_use = db.session.query(InvoiceItem.id).filter_by(product_id=product_id).first()
    if in_use:
        raise ConflictError("Product appears on invoices and cannot be deleted")

    db.session.delete(p)
    db.session.commit()
    logger.info("Deleted product %s (id=%s)", p.name, product_id)
    return True
