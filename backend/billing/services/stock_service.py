# Overview: Product quantity adjustments tied to invoice line items.

from __future__ import annotations

from decimal import Decimal

from ..extensions import db
from ..models import Product
from ..numbers import to_quantity
from ..time_utils import utcnow
from .concurrency import lock_for_update


"""
Stock invariants

- adjust_stock never opens or commits a transaction; it always runs inside
  the invoice engine's unit of work.
- There is no floor: overselling drives quantity negative and the
  UI shows a soft warning instead.
- Creation applies -quantity per product line, reversal applies +quantity,
  so create followed by delete restores the exact prior quantity.
"""


class StockError(Exception):
    """Raised when a stock adjustment cannot be applied."""
    pass


def adjust_stock(product_id: int, delta) -> Product:
    """Apply quantity += delta and touch updated_at."""
    product = lock_for_update(db.session.query(Product).filter_by(id=product_id)).first()
    if not product:
        raise StockError(f"Product {product_id} not found")

    product.quantity = Decimal(product.quantity) + to_quantity(delta)
    product.updated_at = utcnow()
    db.session.flush()
    return product


def list_low_stock() -> list[Product]:
    """Products at or below their low-stock threshold, emptiest first."""
    return (
        db.session.query(Product)
        .filter(Product.quantity <= Product.low_stock_alert)
        .order_by(Product.quantity.asc(), Product.name.asc())
        .all()
    )
