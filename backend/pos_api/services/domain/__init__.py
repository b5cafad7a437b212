"""
Domain Services - application layer.

Structure:
    Router (thin controller)
        ↓
    Service (business logic)  ← YOU ARE HERE
        ↓
    Model (entity)

Usage:
    from pos_api.services.domain import OrderService

    # In router
    service = OrderService(db)
    order = service.create(outlet_id, body, user_id=user_id, actor_role=role)
"""

from .tax_service import TaxService
from .table_service import TableService
from .inventory_service import InventoryService
from .order_service import OrderService
from .billing_service import BillingService
from .catalog_service import CatalogService
from .settings_service import SettingsService
from .analytics_service import AnalyticsService
from .outlet_service import OutletService

__all__ = [
    "TaxService",
    "TableService",
    "InventoryService",
    "OrderService",
    "BillingService",
    "CatalogService",
    "SettingsService",
    "AnalyticsService",
    "OutletService",
]
