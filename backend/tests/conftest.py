"""
Pytest configuration and fixtures for backend tests.
"""

import os

# Must be set before the application modules read their settings
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["OUTBOX_PROCESSOR_ENABLED"] = "false"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["REDIS_PUBLISH_RETRY_DELAY"] = "0.01"
os.environ["ENVIRONMENT"] = "test"

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from pos_api.main import app
from pos_api.models import (
    Base,
    InventoryRecord,
    Item,
    Outlet,
    OutletSettings,
    Table,
    User,
)
from pos_shared.infrastructure.db import engine, get_db
from pos_shared.security.auth import sign_jwt
from pos_shared.security.password import hash_password

TEST_PASSWORD = "testpass123"

# In-memory SQLite shared through a StaticPool (see build_engine)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db_session():
    """
    Create a fresh database session for each test.
    """
    Base.metadata.create_all(bind=engine)

    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db_session):
    """
    Create a test client with database session override.
    """
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


# =============================================================================
# Outlet data
# =============================================================================


@pytest.fixture
def seed_outlet(db_session):
    outlet = Outlet(name="Spice House", address="12 Park Street")
    db_session.add(outlet)
    db_session.commit()
    db_session.refresh(outlet)
    return outlet


@pytest.fixture
def seed_other_outlet(db_session):
    outlet = Outlet(name="Spice House Annex")
    db_session.add(outlet)
    db_session.commit()
    db_session.refresh(outlet)
    return outlet


@pytest.fixture
def seed_settings(db_session, seed_outlet):
    """GST 18% (9 + 9), both order types allowed."""
    outlet_settings = OutletSettings(
        outlet_id=seed_outlet.id,
        gst_enabled=True,
        gst_percentage=Decimal("18"),
        cgst_percentage=Decimal("9"),
        sgst_percentage=Decimal("9"),
        business_name="Spice House",
        gstin="29ABCDE1234F1Z5",
        address_line1="12 Park Street",
        city="Kolkata",
    )
    db_session.add(outlet_settings)
    db_session.commit()
    db_session.refresh(outlet_settings)
    return outlet_settings


@pytest.fixture
def seed_table(db_session, seed_outlet):
    table = Table(outlet_id=seed_outlet.id, name="T1", capacity=4)
    db_session.add(table)
    db_session.commit()
    db_session.refresh(table)
    return table


@pytest.fixture
def seed_fixed_item(db_session, seed_outlet):
    item = Item(
        outlet_id=seed_outlet.id,
        name="Masala Dosa",
        category="Mains",
        pricing_mode="FIXED",
        price=Decimal("120"),
    )
    db_session.add(item)
    db_session.commit()
    db_session.refresh(item)
    return item


@pytest.fixture
def seed_manual_item(db_session, seed_outlet):
    """QUANTITY_MANUAL item: half 150, full 280."""
    item = Item(
        outlet_id=seed_outlet.id,
        name="Mutton Curry",
        category="Mains",
        pricing_mode="QUANTITY_MANUAL",
        price=Decimal("280"),
        half_price=Decimal("150"),
        full_price=Decimal("280"),
    )
    db_session.add(item)
    db_session.commit()
    db_session.refresh(item)
    return item


@pytest.fixture
def seed_auto_item(db_session, seed_outlet):
    """QUANTITY_AUTO item with base price 400."""
    item = Item(
        outlet_id=seed_outlet.id,
        name="Chicken Biryani",
        category="Mains",
        pricing_mode="QUANTITY_AUTO",
        price=Decimal("400"),
        base_price=Decimal("400"),
        requires_quantity=True,
        available_quantity_types=["QUARTER", "HALF", "THREE_QUARTER", "FULL"],
    )
    db_session.add(item)
    db_session.commit()
    db_session.refresh(item)
    return item


@pytest.fixture
def seed_inventory(db_session, seed_outlet, seed_manual_item):
    """Stock of 5 for the manual item, threshold 2."""
    record = InventoryRecord(
        outlet_id=seed_outlet.id,
        item_id=seed_manual_item.id,
        stock=Decimal("5"),
        low_stock_threshold=Decimal("2"),
    )
    db_session.add(record)
    db_session.commit()
    db_session.refresh(record)
    return record


# =============================================================================
# Users and tokens
# =============================================================================


def _make_user(db_session, outlet, name, email, role):
    user = User(
        name=name,
        email=email,
        password=hash_password(TEST_PASSWORD, rounds=4),
        role=role,
        outlet_id=outlet.id,
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


def token_headers(user) -> dict[str, str]:
    token = sign_jwt({
        "sub": str(user.id),
        "role": user.role,
        "outlet_id": str(user.effective_outlet_id) if user.effective_outlet_id else None,
        "email": user.email,
    })
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def seed_admin_user(db_session, seed_outlet):
    return _make_user(db_session, seed_outlet, "Asha Admin", "admin@spicehouse.in", "admin")


@pytest.fixture
def seed_cashier_user(db_session, seed_outlet):
    return _make_user(db_session, seed_outlet, "Chetan Cashier", "cashier@spicehouse.in", "cashier")


@pytest.fixture
def seed_staff_user(db_session, seed_outlet):
    return _make_user(db_session, seed_outlet, "Sam Staff", "staff@spicehouse.in", "staff")


@pytest.fixture
def admin_headers(seed_admin_user):
    return token_headers(seed_admin_user)


@pytest.fixture
def cashier_headers(seed_cashier_user):
    return token_headers(seed_cashier_user)


@pytest.fixture
def staff_headers(seed_staff_user):
    return token_headers(seed_staff_user)


@pytest.fixture
def headers_for():
    """Build Authorization headers for an arbitrary user."""
    return token_headers
