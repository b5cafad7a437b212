"""
Domain constants shared by models, schemas and services.

Enums subclass str so they compare equal to the raw values stored in the
database and sent over the wire.
"""

from decimal import Decimal
from enum import Enum


class Roles(str, Enum):
    ADMIN = "admin"
    CASHIER = "cashier"
    STAFF = "staff"


class OrderStatus(str, Enum):
    NEW = "NEW"
    PREPARING = "PREPARING"
    READY = "READY"
    SERVED = "SERVED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


TERMINAL_ORDER_STATUSES = frozenset({OrderStatus.COMPLETED, OrderStatus.CANCELLED})


class OrderType(str, Enum):
    DINE_IN = "DINE_IN"
    TAKEAWAY = "TAKEAWAY"


class PaymentMethod(str, Enum):
    CASH = "CASH"
    UPI = "UPI"
    CARD = "CARD"


class TableStatus(str, Enum):
    EMPTY = "EMPTY"
    OCCUPIED = "OCCUPIED"
    BILLED = "BILLED"


# Tables in these states can take a new dine-in order
AVAILABLE_TABLE_STATUSES = frozenset({TableStatus.EMPTY, TableStatus.BILLED})


class PricingMode(str, Enum):
    FIXED = "FIXED"
    QUANTITY_AUTO = "QUANTITY_AUTO"
    QUANTITY_MANUAL = "QUANTITY_MANUAL"


class QuantityType(str, Enum):
    QUARTER = "QUARTER"                # 250gm
    HALF = "HALF"                      # 500gm
    THREE_QUARTER = "THREE_QUARTER"    # 750gm
    FULL = "FULL"                      # 1kg
    CUSTOM = "CUSTOM"


QUANTITY_MULTIPLIERS: dict[QuantityType, Decimal] = {
    QuantityType.QUARTER: Decimal("0.25"),
    QuantityType.HALF: Decimal("0.5"),
    QuantityType.THREE_QUARTER: Decimal("0.75"),
    QuantityType.FULL: Decimal("1.0"),
    QuantityType.CUSTOM: Decimal("1.0"),
}

QUANTITY_LABELS: dict[QuantityType, str] = {
    QuantityType.QUARTER: "250gm (Quarter)",
    QuantityType.HALF: "500gm (Half)",
    QuantityType.THREE_QUARTER: "750gm (Three Quarter)",
    QuantityType.FULL: "1kg (Full)",
    QuantityType.CUSTOM: "Custom",
}

MONEY_QUANTUM = Decimal("0.01")

# Inventory log reasons
REASON_MANUAL_ADJUSTMENT = "Manual adjustment"
REASON_INITIAL_STOCK = "Initial stock"


def order_completed_reason(order_id: object) -> str:
    return f"Order {order_id} completed"
