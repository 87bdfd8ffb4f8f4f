"""
Pytest configuration and fixtures for backend tests.
"""

from decimal import Decimal
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from rest_api.dependencies import get_notification_service, get_tax_service
from rest_api.main import app
from rest_api.models import (
    Base,
    Order,
    OrderItem,
    Product,
    ProductVariant,
    Table,
)
from rest_api.services.domain import TaxService
from rest_api.services.events import NotificationService
from shared.config.settings import TaxRate
from shared.infrastructure.db import get_db
from shared.security.rate_limit import limiter


# SQLite in-memory database for testing
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db_session():
    """
    Create a fresh database session for each test.
    Uses SQLite in-memory for isolation.
    """
    Base.metadata.create_all(bind=engine)

    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def tax_service():
    """14% VAT, the default configuration."""
    return TaxService([TaxRate(name="VAT", rate=Decimal("0.14"))])


@pytest.fixture
def redis_client():
    """Stand-in for the Redis client; publish() returns one subscriber."""
    client = MagicMock()
    client.publish.return_value = 1
    return client


@pytest.fixture
def notifier(redis_client):
    return NotificationService(lambda: redis_client, enabled=True)


@pytest.fixture(scope="function")
def client(db_session, tax_service, notifier):
    """
    Create a test client with database, tax and notifier overrides.

    The client is not entered as a context manager so the application
    lifespan (PostgreSQL table creation) does not run.
    """
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_tax_service] = lambda: tax_service
    app.dependency_overrides[get_notification_service] = lambda: notifier
    limiter.enabled = False

    yield TestClient(app)

    limiter.enabled = True
    app.dependency_overrides.clear()


# =============================================================================
# Seed data
# =============================================================================


@pytest.fixture
def seed_tables(db_session):
    """Tables 5, 7 and 12, all available."""
    tables = [
        Table(table_number="5", capacity=4, status="available"),
        Table(table_number="7", capacity=2, status="available"),
        Table(table_number="12", capacity=6, status="available"),
    ]
    db_session.add_all(tables)
    db_session.commit()
    return {t.table_number: t for t in tables}


@pytest.fixture
def seed_catalog(db_session):
    """
    A small menu:
    burger 1000 (food), fries 500 (food), cola 300 (beverage),
    coffee 250 (beverage), pizza 1200 (food) with a large variant at 1500.
    """
    burger = Product(name="Burger", price_cents=1000, kitchen="food")
    fries = Product(name="Fries", price_cents=500, kitchen="food")
    cola = Product(name="Cola", price_cents=300, kitchen="beverage")
    coffee = Product(name="Coffee", price_cents=250, kitchen="beverage")
    pizza = Product(name="Pizza", price_cents=1200, kitchen="food")
    db_session.add_all([burger, fries, cola, coffee, pizza])
    db_session.flush()

    large = ProductVariant(product_id=pizza.id, name="Large", price_cents=1500)
    db_session.add(large)
    db_session.commit()

    return {
        "burger": burger,
        "fries": fries,
        "cola": cola,
        "coffee": coffee,
        "pizza": pizza,
        "pizza_large": large,
    }


def make_order(
    db,
    table_number="5",
    kitchen_type="food",
    status="processing",
    items=None,
    food_ready=False,
    beverage_ready=False,
    session_id="session_5_1700000000",
    order_type="dinein",
    tax_cents=0,
):
    """
    Insert an order directly, bypassing submission.

    items: list of (name, kitchen, quantity, base_price_cents[, addons]) tuples.
    """
    items = items or [("Burger", "food", 1, 1000)]
    order_items = []
    for entry in items:
        name, kitchen, quantity, base_price = entry[:4]
        addons = entry[4] if len(entry) > 4 else []
        addon_total = sum(a["price_cents"] * a.get("quantity", 1) for a in addons)
        line_total = (base_price + addon_total) * quantity
        order_items.append(
            OrderItem(
                product_name=name,
                kitchen=kitchen,
                quantity=quantity,
                addons=addons,
                base_price_cents=base_price,
                subtotal_cents=line_total,
                total_cents=line_total,
            )
        )
    subtotal = sum(i.subtotal_cents for i in order_items)
    order = Order(
        table_number=table_number,
        order_type=order_type,
        status=status,
        kitchen_type=kitchen_type,
        food_ready=food_ready,
        beverage_ready=beverage_ready,
        subtotal_cents=subtotal,
        tax_cents=tax_cents,
        total_cents=subtotal + tax_cents,
        tax_deferred=bool(table_number),
        session_id=session_id if table_number else None,
        items=order_items,
    )
    db.add(order)
    db.commit()
    return order
