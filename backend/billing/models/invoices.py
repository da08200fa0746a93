from __future__ import annotations

from decimal import Decimal

from ..extensions import db
from ..numbers import as_number
from ..time_utils import to_utc_z

WALK_IN_CUSTOMER_NAME = "Walk-in Customer"

PAYMENT_STATUS_PAID = "paid"
PAYMENT_STATUS_UNPAID = "unpaid"
PAYMENT_STATUS_PARTIAL = "partial"
PAYMENT_STATUSES = (PAYMENT_STATUS_PAID, PAYMENT_STATUS_UNPAID, PAYMENT_STATUS_PARTIAL)


class Invoice(db.Model):
    """
    Invoice (bill) header.

    IMMUTABLE: created together with its items and removed only through the
    reversal procedure; there is no edit operation.

    SNAPSHOT: customer_name / customer_phone are copied at creation time so the
    printed bill does not change when the customer record is edited.

    TOTALS: total_amount = subtotal - discount_amount + gst_amount
            balance_due  = total_amount - amount_paid
    """
    __tablename__ = "invoices"
    __table_args__ = (
        db.Index("ix_invoices_created_at", "created_at"),
        db.Index("ix_invoices_status_created", "payment_status", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # Human-readable number (e.g., "GKS-00001"), never reused
    invoice_number = db.Column(db.String(64), nullable=False, unique=True)

    # NULL for walk-in sales
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=True, index=True)
    customer_name = db.Column(db.String(255), nullable=False, default=WALK_IN_CUSTOMER_NAME)
    customer_phone = db.Column(db.String(32), nullable=False, default="")

    subtotal = db.Column(db.Numeric(14, 2), nullable=False, default=0)
    discount_amount = db.Column(db.Numeric(14, 2), nullable=False, default=0)
    gst_enabled = db.Column(db.Boolean, nullable=False, default=False)
    gst_amount = db.Column(db.Numeric(14, 2), nullable=False, default=0)
    gst_rate = db.Column(db.Numeric(5, 2), nullable=False, default=0)
    total_amount = db.Column(db.Numeric(14, 2), nullable=False, default=0)
    amount_paid = db.Column(db.Numeric(14, 2), nullable=False, default=0)

    payment_method = db.Column(db.String(32), nullable=False, default="cash")
    payment_status = db.Column(db.String(16), nullable=False, default=PAYMENT_STATUS_PAID, index=True)
    notes = db.Column(db.Text, nullable=False, default="")

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    customer = db.relationship("Customer", backref=db.backref("invoices", lazy=True))
    items = db.relationship(
        "InvoiceItem",
        backref="invoice",
        lazy=True,
        order_by="InvoiceItem.id",
        cascade="all, delete-orphan",
    )

    @property
    def balance_due(self) -> Decimal:
        return Decimal(self.total_amount or 0) - Decimal(self.amount_paid or 0)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "invoice_number": self.invoice_number,
            "customer_id": self.customer_id,
            "customer_name": self.customer_name,
            "customer_phone": self.customer_phone,
            "subtotal": as_number(self.subtotal),
            "discount_amount": as_number(self.discount_amount),
            "gst_enabled": self.gst_enabled,
            "gst_amount": as_number(self.gst_amount),
            "gst_rate": as_number(self.gst_rate),
            "total_amount": as_number(self.total_amount),
            "amount_paid": as_number(self.amount_paid),
            "balance_due": as_number(self.balance_due),
            "payment_method": self.payment_method,
            "payment_status": self.payment_status,
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
        }


class InvoiceItem(db.Model):
    """
    Line item on an invoice.

    product_id is NULL for ad-hoc (custom) items. product_name/unit/price are
    copies taken at sale time and never follow later product edits.
    total = quantity * price - discount
    """
    __tablename__ = "invoice_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    invoice_id = db.Column(
        db.Integer,
        db.ForeignKey("invoices.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    # NULL for ad-hoc items; referenced products cannot be deleted
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=True, index=True)

    product_name = db.Column(db.String(255), nullable=False)
    quantity = db.Column(db.Numeric(14, 3), nullable=False, default=1)
    unit = db.Column(db.String(16), nullable=False, default="pcs")
    price = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    discount = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    total = db.Column(db.Numeric(14, 2), nullable=False, default=0)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "invoice_id": self.invoice_id,
            "product_id": self.product_id,
            "product_name": self.product_name,
            "quantity": as_number(self.quantity),
            "unit": self.unit,
            "price": as_number(self.price),
            "discount": as_number(self.discount),
            "total": as_number(self.total),
        }
