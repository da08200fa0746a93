# Overview: Invoice engine; atomic creation, reversal and read access for invoices.

"""
Invoice Engine

WHY: An invoice touches five things at once: the invoice header, its items,
product stock, the customer's running balance and the invoice counter. All
of them commit together or none do.

CREATE (one transaction):
1. Allocate invoice number (prefix + zero-padded counter)
2. Insert header with resolved amount_paid
3. Insert items, decrement stock for product lines
4. Advance the counter
5. Add total_amount - amount_paid to the customer's balance
6. Commit

DELETE (one transaction, exact inverse of CREATE):
restore stock, subtract balance_due from the customer, delete items and
header. The counter is NOT rolled back: numbers are never reused.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from sqlalchemy import or_

from ..extensions import db
from ..models import Customer, Invoice, InvoiceItem, Product
from ..models.invoices import (
    PAYMENT_STATUSES,
    PAYMENT_STATUS_PAID,
    PAYMENT_STATUS_UNPAID,
    WALK_IN_CUSTOMER_NAME,
)
from ..numbers import MONEY_PLACES, QUANTITY_PLACES, as_number
from ..validation import ValidationError, NotFoundError, parse_decimal
from ..time_utils import day_bounds, parse_iso_date
from .balance_service import apply_balance_delta
from .concurrency import atomic
from .sequence_service import allocate_invoice_number, commit_invoice_counter
from .settings_service import SettingsRepository
from .stock_service import adjust_stock


logger = logging.getLogger(__name__)

DEFAULT_PAYMENT_METHOD = "cash"
DEFAULT_UNIT = "pcs"


@dataclass
class InvoiceLine:
    """A validated, fully-resolved line item ready to persist."""
    product_id: int | None
    product_name: str
    quantity: Decimal
    unit: str
    price: Decimal
    discount: Decimal
    total: Decimal


@dataclass
class InvoiceRequest:
    """A validated invoice payload. Built by parse_invoice_request()."""
    customer_id: int | None
    customer_name: str
    customer_phone: str
    lines: list[InvoiceLine]
    subtotal: Decimal
    discount_amount: Decimal
    gst_enabled: bool
    gst_rate: Decimal
    gst_amount: Decimal
    total_amount: Decimal
    amount_paid: Decimal | None
    payment_method: str
    payment_status: str
    notes: str = ""

    def resolve_amount_paid(self) -> Decimal:
        """
        Explicit amount_paid wins; otherwise unpaid -> 0, anything else -> total.

        The reversal math subtracts total_amount - amount_paid, so this
        precedence must stay stable for stored invoices to reverse exactly.
        """
        if self.amount_paid is not None:
            return self.amount_paid
        if self.payment_status == PAYMENT_STATUS_UNPAID:
            return Decimal("0.00")
        return self.total_amount


# =============================================================================
# PAYLOAD PARSING
# =============================================================================

def _money(payload: dict, key: str, default: str = "0") -> Decimal:
    raw = payload.get(key)
    if raw is None or raw == "":
        raw = default
    return parse_decimal(key, raw, places=MONEY_PLACES)


def _text(payload: dict, key: str, default: str = "") -> str:
    raw = payload.get(key)
    if raw is None:
        return default
    return str(raw).strip()


def _parse_line(index: int, raw: dict) -> InvoiceLine:
    label = f"items[{index}]"
    if not isinstance(raw, dict):
        raise ValidationError(f"{label} must be an object")

    if raw.get("quantity") in (None, ""):
        raise ValidationError(f"{label}.quantity is required")
    quantity = parse_decimal(f"{label}.quantity", raw["quantity"], places=QUANTITY_PLACES)
    if quantity <= 0:
        raise ValidationError(f"{label}.quantity must be > 0")

    product_id = raw.get("product_id") or None
    product = None
    if product_id is not None:
        if isinstance(product_id, bool) or not str(product_id).isdigit():
            raise ValidationError(f"{label}.product_id must be an integer")
        product_id = int(product_id)
        product = db.session.get(Product, product_id)
        if product is None:
            raise ValidationError(f"{label}: product {product_id} not found")

    name = _text(raw, "product_name") or (product.name if product else "")
    if not name:
        raise ValidationError(f"{label}.product_name is required")

    unit = _text(raw, "unit") or (product.unit if product else "") or DEFAULT_UNIT

    if raw.get("price") in (None, ""):
        if product is None:
            raise ValidationError(f"{label}.price is required")
        price = Decimal(product.selling_price).quantize(MONEY_PLACES)
    else:
        price = parse_decimal(f"{label}.price", raw["price"], places=MONEY_PLACES)
    if product is not None and price <= 0:
        raise ValidationError(f"{label}.price must be > 0 for stocked products")

    discount = _money(raw, "discount")
    if discount < 0:
        raise ValidationError(f"{label}.discount must be >= 0")

    expected_total = (quantity * price - discount).quantize(MONEY_PLACES)
    if raw.get("total") in (None, ""):
        total = expected_total
    else:
        total = parse_decimal(f"{label}.total", raw["total"], places=MONEY_PLACES)
        if total != expected_total:
            raise ValidationError(
                f"{label}.total {total} does not equal quantity * price - discount ({expected_total})"
            )

    return InvoiceLine(
        product_id=product_id,
        product_name=name,
        quantity=quantity,
        unit=unit,
        price=price,
        discount=discount,
        total=total,
    )


def parse_invoice_request(payload: dict) -> InvoiceRequest:
    """
    Validate an invoice payload and resolve snapshots and defaults.

    Read-only: nothing is written, so a ValidationError leaves the counter,
    stock and balances untouched.
    """
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    items = payload.get("items")
    if not items or not isinstance(items, list):
        raise ValidationError("At least one item is required")

    lines = [_parse_line(i, raw) for i, raw in enumerate(items)]

    customer_id = payload.get("customer_id") or None
    customer = None
    if customer_id is not None:
        if isinstance(customer_id, bool) or not str(customer_id).isdigit():
            raise ValidationError("customer_id must be an integer")
        customer_id = int(customer_id)
        customer = db.session.get(Customer, customer_id)
        if customer is None:
            raise ValidationError(f"Customer {customer_id} not found")

    customer_name = _text(payload, "customer_name") or (customer.name if customer else WALK_IN_CUSTOMER_NAME)
    customer_phone = _text(payload, "customer_phone") or (customer.phone if customer else "")

    if payload.get("subtotal") in (None, ""):
        subtotal = sum((line.total for line in lines), Decimal("0.00"))
    else:
        subtotal = _money(payload, "subtotal")
    discount_amount = _money(payload, "discount_amount")
    gst_enabled = bool(payload.get("gst_enabled"))
    gst_rate = _money(payload, "gst_rate")
    gst_amount = _money(payload, "gst_amount")
    if discount_amount < 0 or gst_amount < 0:
        raise ValidationError("discount_amount and gst_amount must be >= 0")

    expected_total = subtotal - discount_amount + gst_amount
    if payload.get("total_amount") in (None, ""):
        total_amount = expected_total
    else:
        total_amount = _money(payload, "total_amount")
        if total_amount != expected_total:
            raise ValidationError(
                f"total_amount {total_amount} does not equal subtotal - discount_amount + gst_amount ({expected_total})"
            )

    payment_status = _text(payload, "payment_status", PAYMENT_STATUS_PAID).lower() or PAYMENT_STATUS_PAID
    if payment_status not in PAYMENT_STATUSES:
        raise ValidationError(f"payment_status must be one of: {', '.join(PAYMENT_STATUSES)}")

    amount_paid = None
    if payload.get("amount_paid") not in (None, ""):
        amount_paid = _money(payload, "amount_paid")
        if amount_paid < 0:
            raise ValidationError("amount_paid must be >= 0")

    return InvoiceRequest(
        customer_id=customer_id,
        customer_name=customer_name,
        customer_phone=customer_phone,
        lines=lines,
        subtotal=subtotal,
        discount_amount=discount_amount,
        gst_enabled=gst_enabled,
        gst_rate=gst_rate,
        gst_amount=gst_amount,
        total_amount=total_amount,
        amount_paid=amount_paid,
        payment_method=_text(payload, "payment_method", DEFAULT_PAYMENT_METHOD) or DEFAULT_PAYMENT_METHOD,
        payment_status=payment_status,
        notes=_text(payload, "notes"),
    )


# =============================================================================
# CREATE / DELETE
# =============================================================================

def create_invoice(payload: dict, *, settings: SettingsRepository | None = None) -> dict:
    """
    Create an invoice with its items in one transaction.

    Returns {"invoice": ..., "items": [...], "warnings": [...]}.

    Raises:
        ValidationError: empty item list or malformed payload (nothing written)
        Any storage error: transaction rolled back in full (number, stock,
        counter and balance effects are all discarded)
    """
    request = parse_invoice_request(payload)
    settings = settings or SettingsRepository()

    with atomic():
        invoice_number, counter = allocate_invoice_number(settings)
        amount_paid = request.resolve_amount_paid()

        invoice = Invoice(
            invoice_number=invoice_number,
            customer_id=request.customer_id,
            customer_name=request.customer_name,
            customer_phone=request.customer_phone,
            subtotal=request.subtotal,
            discount_amount=request.discount_amount,
            gst_enabled=request.gst_enabled,
            gst_amount=request.gst_amount,
            gst_rate=request.gst_rate,
            total_amount=request.total_amount,
            amount_paid=amount_paid,
            payment_method=request.payment_method,
            payment_status=request.payment_status,
            notes=request.notes,
        )
        db.session.add(invoice)
        db.session.flush()

        sold: dict[int, tuple[Product, Decimal]] = {}
        for line in request.lines:
            db.session.add(InvoiceItem(
                invoice_id=invoice.id,
                product_id=line.product_id,
                product_name=line.product_name,
                quantity=line.quantity,
                unit=line.unit,
                price=line.price,
                discount=line.discount,
                total=line.total,
            ))
            if line.product_id is not None:
                product = adjust_stock(line.product_id, -line.quantity)
                _, qty = sold.get(line.product_id, (product, Decimal(0)))
                sold[line.product_id] = (product, qty + line.quantity)

        commit_invoice_counter(counter, settings)

        balance_due = request.total_amount - amount_paid
        if request.customer_id is not None and balance_due != 0:
            apply_balance_delta(request.customer_id, balance_due)

        # Oversell is allowed; surface it as a soft warning read under the write lock
        warnings = [
            f"{product.name}: selling {as_number(qty)} with only "
            f"{as_number(product.quantity + qty)} {product.unit} in stock"
            for product, qty in sold.values()
            if product.quantity < 0
        ]

        # Serialized before commit so a rendering failure rolls the invoice back
        result = get_invoice(invoice.id)
        result["warnings"] = warnings

    logger.info(
        "Created invoice %s (id=%s, total=%s, paid=%s, customer=%s)",
        invoice_number, result["invoice"]["id"], request.total_amount, amount_paid, request.customer_id,
    )
    return result


def delete_invoice(invoice_id: int) -> dict:
    """
    Reverse an invoice's stock and balance effects, then delete it.

    Idempotent: an unknown id is a successful no-op.
    """
    with atomic():
        invoice = db.session.get(Invoice, invoice_id)
        if invoice is None:
            logger.info("Invoice %s already absent; nothing to reverse", invoice_id)
            return {"success": True, "reversed": False}

        items = db.session.query(InvoiceItem).filter_by(invoice_id=invoice.id).all()

        for item in items:
            if item.product_id is not None:
                adjust_stock(item.product_id, item.quantity)

        if invoice.customer_id is not None:
            balance_due = Decimal(invoice.total_amount) - Decimal(invoice.amount_paid or 0)
            if balance_due != 0:
                apply_balance_delta(invoice.customer_id, -balance_due)

        for item in items:
            db.session.delete(item)
        db.session.flush()
        db.session.delete(invoice)
        invoice_number = invoice.invoice_number

    logger.info("Reversed and deleted invoice %s (id=%s)", invoice_number, invoice_id)
    return {"success": True, "reversed": True, "message": "Invoice reversed and deleted."}


# =============================================================================
# READ
# =============================================================================

def get_invoice(invoice_id: int) -> dict:
    invoice = db.session.get(Invoice, invoice_id)
    if invoice is None:
        raise NotFoundError("Invoice not found")

    items = (
        db.session.query(InvoiceItem)
        .filter_by(invoice_id=invoice_id)
        .order_by(InvoiceItem.id.asc())
        .all()
    )
    return {
        "invoice": invoice.to_dict(),
        "items": [item.to_dict() for item in items],
    }


def list_invoices(
    search: str | None = None,
    status: str | None = None,
    date_from: str | date | None = None,
    date_to: str | date | None = None,
    customer_id: int | None = None,
) -> list[dict]:
    """
    Newest-first invoice listing.

    Filters:
    - search: substring of invoice_number or customer_name
    - status: payment_status
    - date_from / date_to: inclusive creation-date range ("YYYY-MM-DD")
    - customer_id: restrict to one customer (purchase history)
    """
    try:
        start = date_from if isinstance(date_from, date) else parse_iso_date(date_from)
        end = date_to if isinstance(date_to, date) else parse_iso_date(date_to)
    except ValueError:
        raise ValidationError("from/to must be dates in YYYY-MM-DD format")

    query = db.session.query(Invoice)

    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(or_(
            Invoice.invoice_number.ilike(pattern),
            Invoice.customer_name.ilike(pattern),
        ))
    if status:
        query = query.filter(Invoice.payment_status == status.strip().lower())
    if customer_id is not None:
        query = query.filter(Invoice.customer_id == customer_id)

    lower, upper = day_bounds(start, end)
    if lower is not None:
        query = query.filter(Invoice.created_at >= lower)
    if upper is not None:
        query = query.filter(Invoice.created_at < upper)

    invoices = query.order_by(Invoice.created_at.desc(), Invoice.id.desc()).all()
    return [inv.to_dict() for inv in invoices]
