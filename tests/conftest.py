"""Pytest fixtures for storefront tests."""

import pytest
import structlog

from storefront.config import Settings
from storefront.database import Database
from storefront.models import Market
from storefront.service import OrderService


@pytest.fixture(autouse=True)
def reset_logging():
    """Undo any structlog configuration a test (e.g. the CLI) installed."""
    yield
    structlog.reset_defaults()


@pytest.fixture
def db():
    """An empty database with two markets and no products."""
    database = Database()
    database.markets.add_market(Market(id="market-m", name="Market M", admin_id="admin-m"))
    database.markets.add_market(Market(id="market-n", name="Market N", admin_id="admin-n"))
    return database


@pytest.fixture
def product_p(db):
    """Product P: stock 10, price 20.00, discount 10%, in market M."""
    return db.catalog.create(
        market_id="market-m", name="Product P", price=20.00, stock=10, discount=10
    )


@pytest.fixture
def settings():
    return Settings(reservation_attempts=3, order_timeout=None)


@pytest.fixture
def orders(db, settings):
    return OrderService(db, settings)


@pytest.fixture
def seeded_db():
    return Database.seeded()


@pytest.fixture
def stock_of(db):
    """Read a product's current stock straight from the catalog."""

    def read(product_id):
        return db.catalog.get_by_id(product_id).stock

    return read
