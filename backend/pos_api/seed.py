"""
Seed data for development and demos.
Creates one outlet with settings, staff accounts, a small menu, tables and stock.
Idempotent: skips when the outlet already exists.
"""

from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from pos_api.models import (
    InventoryLogEntry,
    InventoryRecord,
    Item,
    Outlet,
    OutletSettings,
    Table,
    User,
)
from pos_shared.config.constants import REASON_INITIAL_STOCK, PricingMode, Roles
from pos_shared.config.logging import get_logger
from pos_shared.security.password import hash_password

logger = get_logger(__name__)

SEED_OUTLET_NAME = "Main Outlet"
DEFAULT_SEED_PASSWORD = "changeme123"
TABLE_COUNT = 6
INITIAL_STOCK = Decimal("50")

STAFF = [
    ("Admin", "admin@outletpos.in", Roles.ADMIN),
    ("Cashier", "cashier@outletpos.in", Roles.CASHIER),
    ("Waiter", "staff@outletpos.in", Roles.STAFF),
]

MENU = [
    {
        "name": "Masala Chai",
        "category": "Beverages",
        "pricing_mode": PricingMode.FIXED.value,
        "price": Decimal("40"),
    },
    {
        "name": "Paneer Tikka",
        "category": "Starters",
        "pricing_mode": PricingMode.FIXED.value,
        "price": Decimal("220"),
    },
    {
        "name": "Chicken Biryani",
        "category": "Mains",
        "pricing_mode": PricingMode.QUANTITY_AUTO.value,
        "price": Decimal("400"),
        "base_price": Decimal("400"),
        "requires_quantity": True,
        "available_quantity_types": ["QUARTER", "HALF", "THREE_QUARTER", "FULL"],
    },
    {
        "name": "Mutton Curry",
        "category": "Mains",
        "pricing_mode": PricingMode.QUANTITY_MANUAL.value,
        "price": Decimal("280"),
        "half_price": Decimal("150"),
        "full_price": Decimal("280"),
        "available_quantity_types": ["HALF", "FULL"],
    },
]


def seed(db: Session, password: str = DEFAULT_SEED_PASSWORD) -> Outlet:
    """Create the demo outlet and everything it needs. Returns the outlet."""
    existing = db.scalar(select(Outlet).where(Outlet.name == SEED_OUTLET_NAME))
    if existing is not None:
        logger.info("Seed outlet already exists, skipping", outlet_id=str(existing.id))
        return existing

    outlet = Outlet(name=SEED_OUTLET_NAME, address="1 MG Road, Bengaluru")
    db.add(outlet)
    db.flush()

    db.add(
        OutletSettings(
            outlet_id=outlet.id,
            gst_enabled=True,
            gst_percentage=Decimal("18"),
            cgst_percentage=Decimal("9"),
            sgst_percentage=Decimal("9"),
            business_name="Main Outlet Restaurant",
            address_line1="1 MG Road",
            city="Bengaluru",
            state="Karnataka",
            pincode="560001",
            receipt_footer="Thank you, visit again!",
        )
    )

    hashed = hash_password(password)
    for name, email, role in STAFF:
        db.add(User(name=name, email=email, password=hashed, role=role.value, outlet_id=outlet.id))

    for number in range(1, TABLE_COUNT + 1):
        db.add(Table(outlet_id=outlet.id, name=f"T{number}", capacity=4))

    for entry in MENU:
        item = Item(outlet_id=outlet.id, **entry)
        db.add(item)
        db.flush()
        db.add(InventoryRecord(outlet_id=outlet.id, item_id=item.id, stock=INITIAL_STOCK, low_stock_threshold=Decimal("10")))
        db.add(
            InventoryLogEntry(
                outlet_id=outlet.id,
                item_id=item.id,
                change=INITIAL_STOCK,
                reason=REASON_INITIAL_STOCK,
            )
        )

    db.commit()
    logger.info(
        "Seed data created",
        outlet_id=str(outlet.id),
        users=len(STAFF),
        tables=TABLE_COUNT,
        items=len(MENU),
    )
    return outlet
