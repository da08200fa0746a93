"""
Stock adjustment tests.
"""

from decimal import Decimal

import pytest

from billing.models import Product
from billing.services.stock_service import StockError, adjust_stock, list_low_stock


def test_adjust_stock_has_no_floor(product, db_session, reload):
    adjust_stock(product.id, -60)
    db_session.commit()
    assert reload(Product, product.id).quantity == Decimal("-10")


def test_adjust_stock_fractional(product, db_session, reload):
    adjust_stock(product.id, "-0.250")
    adjust_stock(product.id, Decimal("0.125"))
    db_session.commit()
    assert reload(Product, product.id).quantity == Decimal("49.875")


def test_adjust_stock_touches_updated_at(product, db_session, reload):
    before = reload(Product, product.id).updated_at
    adjust_stock(product.id, 1)
    db_session.commit()
    assert reload(Product, product.id).updated_at >= before


def test_adjust_unknown_product(db_session):
    with pytest.raises(StockError):
        adjust_stock(4242, 1)


def test_list_low_stock(make_product):
    make_product(name="Sugar", quantity="3", low_stock_alert=Decimal("5"))
    make_product(name="Salt", quantity="5", low_stock_alert=Decimal("5"))
    make_product(name="Atta", quantity="40", low_stock_alert=Decimal("5"))
    make_product(name="Ghee", quantity="-2")

    names = [p.name for p in list_low_stock()]
    assert names == ["Ghee", "Sugar", "Salt"]
