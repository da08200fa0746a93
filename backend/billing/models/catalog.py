from __future__ import annotations

from ..extensions import db
from ..numbers import as_number
from ..time_utils import to_utc_z


class Category(db.Model):
    """Product category (free-text label referenced by Product.category)."""
    __tablename__ = "categories"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), nullable=False, unique=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "created_at": to_utc_z(self.created_at),
        }


class Product(db.Model):
    """
    Product / inventory row.

    QUANTITY: fixed-point with 3 places so loose goods (kg, litre) can be sold
    in fractions. There is no floor: invoices may oversell and drive the
    quantity negative, the UI only warns.

    HISTORY: invoice_items snapshot name/unit/price at sale time, so editing a
    product never rewrites past invoices. A product that appears on any
    invoice cannot be deleted.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.Index("ix_products_name", "name"),
        db.Index("ix_products_category", "category"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    name = db.Column(db.String(255), nullable=False)
    # Optional, unique when present (NULLs do not collide)
    sku = db.Column(db.String(64), nullable=True, unique=True)
    category = db.Column(db.String(128), nullable=False, default="")
    hsn_code = db.Column(db.String(32), nullable=False, default="")

    purchase_price = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    selling_price = db.Column(db.Numeric(12, 2), nullable=False, default=0)

    quantity = db.Column(db.Numeric(14, 3), nullable=False, default=0)
    unit = db.Column(db.String(16), nullable=False, default="pcs")
    low_stock_alert = db.Column(db.Numeric(14, 3), nullable=False, default=10)

    gst_rate = db.Column(db.Numeric(5, 2), nullable=False, default=0)
    description = db.Column(db.Text, nullable=False, default="")

    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Product id={self.id} sku={self.sku!r} name={self.name!r} quantity={self.quantity}>"

    @property
    def is_low_stock(self) -> bool:
        return self.quantity <= self.low_stock_alert

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "sku": self.sku,
            "category": self.category,
            "hsn_code": self.hsn_code,
            "purchase_price": as_number(self.purchase_price),
            "selling_price": as_number(self.selling_price),
            "quantity": as_number(self.quantity),
            "unit": self.unit,
            "low_stock_alert": as_number(self.low_stock_alert),
            "gst_rate": as_number(self.gst_rate),
            "description": self.description,
            "is_low_stock": self.is_low_stock,
            "version_id": self.version_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
