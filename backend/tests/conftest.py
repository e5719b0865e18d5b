"""
Pytest fixtures for StorePOS backend tests.

Provides an in-memory database, a per-test clean slate, the Flask test
client and small factories for staff, categories and products.
"""

from decimal import Decimal

import pytest
from storepos import create_app
from storepos.extensions import db
from storepos.models import User, Category
from storepos.schemas import CreateProductInput
from storepos.services import products_service


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'BCRYPT_ROUNDS': 4,
        'POS_ALLOW_UNDERPAYMENT': False,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


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
def client(app, db_session):
    """Create test client."""
    return app.test_client()


def _make_user(session, username: str, role: str) -> User:
    user = User(
        username=username,
        email=f"{username}@store.test",
        password_hash="x",
        full_name=username.replace("_", " ").title(),
        role=role,
        is_active=True,
    )
    session.add(user)
    session.commit()
    return user


@pytest.fixture(scope='function')
def cashier(db_session):
    return _make_user(db_session, "test_cashier", "cashier")


@pytest.fixture(scope='function')
def stock_manager(db_session):
    return _make_user(db_session, "stock_manager", "stock_manager")


@pytest.fixture(scope='function')
def category(db_session):
    cat = Category(name="Test Category", description="Category for testing")
    db_session.add(cat)
    db_session.commit()
    return cat


@pytest.fixture(scope='function')
def make_product(db_session, category, stock_manager):
    """
    Factory creating products through the service, so initial stock is
    backed by an "in" movement exactly like production data.
    """
    counter = {"n": 0}

    def _make(**overrides):
        counter["n"] += 1
        n = counter["n"]
        fields = {
            "name": f"Test Product {n}",
            "sku": f"TEST{n:03d}",
            "barcode": None,
            "category_id": category.id,
            "selling_price": Decimal("10.00"),
            "cost_price": Decimal("5.00"),
            "initial_stock": 100,
            "min_stock_level": 10,
            "created_by": stock_manager.id,
        }
        fields.update(overrides)
        return products_service.create_product(CreateProductInput(**fields))

    return _make
