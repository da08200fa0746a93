# backend/billing/services/customers_service.py
"""
Customer maintenance.

Contact fields are editable here; the balance is not. It only moves through
the invoice engine and balance_service.settle_payment.
"""
from __future__ import annotations

from sqlalchemy import or_

from ..extensions import db
from ..models import Customer, Invoice
from ..validation import ConflictError
from .invoice_service import list_invoices

CUSTOMER_MUTABLE_FIELDS = {"name", "phone", "email", "address", "gstin"}


def apply_customer_patch(c: Customer, patch: dict) -> None:
    for k, v in patch.items():
        if k not in CUSTOMER_MUTABLE_FIELDS:
            continue
        setattr(c, k, "" if v is None else v)


def list_customers(search: str | None = None) -> list[dict]:
    query = db.session.query(Customer)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(or_(
            Customer.name.ilike(pattern),
            Customer.phone.ilike(pattern),
            Customer.email.ilike(pattern),
        ))
    customers = query.order_by(Customer.name.asc(), Customer.id.asc()).all()
    return [c.to_dict() for c in customers]


def get_customer(customer_id: int, *, with_history: bool = False) -> dict | None:
    customer = db.session.get(Customer, customer_id)
    if not customer:
        return None
    if not with_history:
        return customer.to_dict()
    return {
        "customer": customer.to_dict(),
        "invoices": list_invoices(customer_id=customer_id),
    }


def create_customer(*, patch: dict) -> dict:
    c = Customer(balance=0)
    apply_customer_patch(c, patch)
    db.session.add(c)
    db.session.commit()
    return c.to_dict()


def update_customer(*, customer_id: int, patch: dict) -> dict | None:
    c = db.session.get(Customer, customer_id)
    if not c:
        return None
    apply_customer_patch(c, patch)
    db.session.commit()
    return c.to_dict()


def delete_customer(*, customer_id: int) -> bool:
    """
    Delete a customer without invoices.

    Raises:
        ConflictError: invoices still reference the customer (their balance
        effects would be orphaned)
    """
    c = db.session.get(Customer, customer_id)
    if not c:
        return False

    if db.session.query(Invoice.id).filter_by(customer_id=customer_id).first():
        raise ConflictError("Customer has invoices and cannot be deleted")

    db.session.delete(c)
    db.session.commit()
    return True
