"""
Event type constants for the realtime push channel.
"""

# Orders
ORDER_CREATED = "ORDER_CREATED"
ORDER_UPDATED = "ORDER_UPDATED"
ORDER_STATUS_CHANGED = "ORDER_STATUS_CHANGED"

# Billing
BILL_GENERATED = "BILL_GENERATED"

# Tables
TABLE_STATUS_CHANGED = "TABLE_STATUS_CHANGED"

# Inventory
INVENTORY_UPDATED = "INVENTORY_UPDATED"
LOW_STOCK = "LOW_STOCK"


TABLE_EVENTS = frozenset({TABLE_STATUS_CHANGED})
INVENTORY_EVENTS = frozenset({INVENTORY_UPDATED, LOW_STOCK})

# Maximum serialized size of one event (bytes)
MAX_EVENT_SIZE = 64 * 1024
