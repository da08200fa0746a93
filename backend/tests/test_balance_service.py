"""
Customer balance settlement tests.
"""

from decimal import Decimal

import pytest

from billing.models import Customer
from billing.services.balance_service import apply_balance_delta, settle_payment
from billing.validation import NotFoundError, ValidationError


class TestSettlePayment:

    def test_reduces_balance(self, make_customer, reload):
        customer = make_customer(balance="30")
        settle_payment(customer.id, 20)
        assert reload(Customer, customer.id).balance == Decimal("10")

    def test_accepts_string_amounts(self, make_customer, reload):
        customer = make_customer(balance="100")
        settle_payment(customer.id, "25.50")
        assert reload(Customer, customer.id).balance == Decimal("74.50")

    def test_may_go_negative(self, make_customer, reload):
        customer = make_customer(balance="10")
        settle_payment(customer.id, 25)
        assert reload(Customer, customer.id).balance == Decimal("-15")

    @pytest.mark.parametrize("amount", [None, 0, -5, "0", "abc", ""])
    def test_rejects_non_positive_or_missing(self, customer, amount, reload):
        with pytest.raises(ValidationError):
            settle_payment(customer.id, amount)
        assert reload(Customer, customer.id).balance == Decimal("0")

    def test_unknown_customer(self, db_session):
        with pytest.raises(NotFoundError):
            settle_payment(999, 10)


class TestApplyBalanceDelta:

    def test_delta_is_applied_within_caller_transaction(self, customer, db_session, reload):
        apply_balance_delta(customer.id, Decimal("12.5"))
        db_session.rollback()
        assert reload(Customer, customer.id).balance == Decimal("0")

        apply_balance_delta(customer.id, Decimal("12.5"))
        db_session.commit()
        assert reload(Customer, customer.id).balance == Decimal("12.50")
