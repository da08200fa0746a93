"""
Pytest fixtures for the billing backend tests.

Provides an in-memory application, a per-test clean database, a test client
and small factories for products and customers.
"""

from decimal import Decimal

import pytest
from billing import create_app
from billing.extensions import db
from billing.models import Customer, Product
from billing.services.settings_service import SettingsRepository


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'LOG_LEVEL': 'DEBUG',
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def settings(db_session):
    """Default settings seeded (invoice_prefix=GKS, invoice_counter=1)."""
    repo = SettingsRepository()
    repo.seed_defaults()
    db_session.commit()
    return repo


@pytest.fixture(scope='function')
def make_product(db_session):
    def _make(name="Toor Dal", quantity="50", selling_price="10", unit="kg", sku=None, **extra):
        product = Product(
            name=name,
            sku=sku,
            quantity=Decimal(quantity),
            selling_price=Decimal(selling_price),
            unit=unit,
            **extra,
        )
        db_session.add(product)
        db_session.commit()
        return product
    return _make


@pytest.fixture(scope='function')
def make_customer(db_session):
    def _make(name="Ramesh Kumar", phone="9876543210", balance="0", **extra):
        customer = Customer(name=name, phone=phone, balance=Decimal(balance), **extra)
        db_session.add(customer)
        db_session.commit()
        return customer
    return _make


@pytest.fixture(scope='function')
def product(make_product):
    return make_product()


@pytest.fixture(scope='function')
def customer(make_customer):
    return make_customer()


@pytest.fixture(scope='function')
def reload(db_session):
    """Re-read a row from the database (drops identity-map state)."""
    def _reload(model, pk):
        db_session.expire_all()
        return db_session.get(model, pk)
    return _reload
