# Overview: Customer running-balance maintenance and manual payment settlement.

"""
Balance Settlement

BALANCE RULES:
- Invoice with a customer: balance += total_amount - amount_paid
- Invoice reversal:        balance -= total_amount - amount_paid
- Manual settlement:       balance -= amount

Settlements are ledger-only: they do not touch invoice rows, and the balance
may go below zero (the store owes the customer).
"""

from __future__ import annotations

import logging
from decimal import Decimal

from ..extensions import db
from ..models import Customer
from ..numbers import MONEY_PLACES
from ..validation import NotFoundError, ValidationError, parse_decimal
from .concurrency import atomic, lock_for_update


logger = logging.getLogger(__name__)


def apply_balance_delta(customer_id: int, delta) -> Customer:
    """
    Add delta to a customer's balance inside the caller's transaction.
    """
    customer = lock_for_update(db.session.query(Customer).filter_by(id=customer_id)).first()
    if not customer:
        raise NotFoundError(f"Customer {customer_id} not found")

    customer.balance = Decimal(customer.balance) + Decimal(delta).quantize(MONEY_PLACES)
    db.session.flush()
    return customer


def settle_payment(customer_id: int, amount) -> Customer:
    """
    Record a manual payment against a customer's aggregate balance.

    Raises:
        ValidationError: amount missing or not > 0
        NotFoundError: unknown customer
    """
    if amount is None:
        raise ValidationError("Valid amount is required")
    value = parse_decimal("amount", amount, places=MONEY_PLACES)
    if value <= 0:
        raise ValidationError("amount must be > 0")

    with atomic():
        customer = apply_balance_delta(customer_id, -value)

    logger.info("Settled payment of %s for customer %s", value, customer_id)
    return customer
