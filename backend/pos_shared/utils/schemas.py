"""
Shared Pydantic schemas for request bodies and responses.

Money values are Decimal and serialize as strings ("354.00") so no
precision is lost on the wire.
"""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, EmailStr, Field, model_validator


# =============================================================================
# Common Types
# =============================================================================

Role = Literal["admin", "cashier", "staff"]
OrderStatus = Literal["NEW", "PREPARING", "READY", "SERVED", "COMPLETED", "CANCELLED"]
OrderType = Literal["DINE_IN", "TAKEAWAY"]
PaymentMethod = Literal["CASH", "UPI", "CARD"]
TableStatus = Literal["EMPTY", "OCCUPIED", "BILLED"]
PricingMode = Literal["FIXED", "QUANTITY_AUTO", "QUANTITY_MANUAL"]
QuantityType = Literal["QUARTER", "HALF", "THREE_QUARTER", "FULL", "CUSTOM"]


# =============================================================================
# Authentication Schemas
# =============================================================================


class LoginRequest(BaseModel):
    """Login request body."""

    email: EmailStr
    password: str = Field(min_length=1)


class UserInfo(BaseModel):
    """Basic user information included in auth responses."""

    id: uuid.UUID
    name: str
    email: str
    role: Role
    outlet_id: uuid.UUID | None = None


class LoginResponse(BaseModel):
    """Login response with JWT token."""

    access_token: str
    token_type: str = "Bearer"
    expires_in: int  # seconds
    user: UserInfo


# =============================================================================
# Order Schemas
# =============================================================================


class OrderLineInput(BaseModel):
    """A line submitted when creating an order or adding to one."""

    item_id: uuid.UUID
    quantity: int = Field(ge=1, le=999)
    quantity_type: QuantityType | None = None
    notes: str | None = Field(default=None, max_length=500)


class CreateOrderRequest(BaseModel):
    outlet_id: uuid.UUID
    table_id: uuid.UUID | None = None
    order_type: OrderType
    items: list[OrderLineInput] = Field(min_length=1)

    @model_validator(mode="after")
    def _dine_in_needs_table(self) -> "CreateOrderRequest":
        if self.order_type == "DINE_IN" and self.table_id is None:
            raise ValueError("Table ID is required for dine-in orders")
        return self


class OrderLineUpdate(BaseModel):
    """Field update of an existing line. Price is never editable."""

    order_item_id: uuid.UUID
    quantity: int | None = Field(default=None, ge=1, le=999)
    notes: str | None = Field(default=None, max_length=500)


class UpdateOrderItemsRequest(BaseModel):
    items_to_add: list[OrderLineInput] = Field(default_factory=list)
    items_to_update: list[OrderLineUpdate] = Field(default_factory=list)
    items_to_remove: list[uuid.UUID] = Field(default_factory=list)


class UpdateOrderStatusRequest(BaseModel):
    status: OrderStatus
    cancellation_reason: str | None = Field(default=None, max_length=500)


class OrderLineOutput(BaseModel):
    id: uuid.UUID
    item_id: uuid.UUID
    item_name: str | None = None
    quantity: int
    quantity_type: QuantityType | None = None
    price: Decimal
    line_total: Decimal
    notes: str | None = None

    class Config:
        from_attributes = True


class OrderOutput(BaseModel):
    id: uuid.UUID
    outlet_id: uuid.UUID
    table_id: uuid.UUID | None = None
    table_name: str | None = None
    user_id: uuid.UUID | None = None
    status: OrderStatus
    order_type: OrderType
    payment_method: PaymentMethod | None = None
    subtotal: Decimal
    tax: Decimal
    total: Decimal
    tax_rate: Decimal
    cancellation_reason: str | None = None
    billed_at: datetime | None = None
    created_at: datetime
    updated_at: datetime | None = None
    items: list[OrderLineOutput] = Field(default_factory=list)

    class Config:
        from_attributes = True


# =============================================================================
# Billing Schemas
# =============================================================================


class GenerateBillRequest(BaseModel):
    order_id: uuid.UUID
    payment_method: PaymentMethod


class ReprintBillRequest(BaseModel):
    order_id: uuid.UUID


class BillLineOutput(BaseModel):
    name: str
    quantity: int
    quantity_type: QuantityType | None = None
    quantity_label: str | None = None
    unit_price: Decimal
    line_total: Decimal
    notes: str | None = None


class BillHeaderOutput(BaseModel):
    """Receipt header details taken from outlet settings."""

    business_name: str | None = None
    gstin: str | None = None
    address: str | None = None
    phone: str | None = None
    receipt_header: str | None = None
    receipt_footer: str | None = None
    currency_symbol: str = "₹"
    currency_code: str = "INR"


class BillOutput(BaseModel):
    order_id: uuid.UUID
    outlet_id: uuid.UUID
    order_type: OrderType
    status: OrderStatus
    table_name: str | None = None
    subtotal: Decimal
    tax_rate: Decimal
    tax: Decimal
    cgst: Decimal
    sgst: Decimal
    total: Decimal
    payment_method: PaymentMethod | None = None
    items: list[BillLineOutput]
    header: BillHeaderOutput
    created_at: datetime
    billed_at: datetime | None = None


# =============================================================================
# Table Schemas
# =============================================================================


class TableCreateRequest(BaseModel):
    outlet_id: uuid.UUID | None = None
    name: str = Field(min_length=1, max_length=50)
    capacity: int | None = Field(default=None, ge=1, le=100)
    status: TableStatus = "EMPTY"


class TableUpdateRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=50)
    capacity: int | None = Field(default=None, ge=1, le=100)
    status: TableStatus | None = None


class TableOutput(BaseModel):
    id: uuid.UUID
    outlet_id: uuid.UUID
    name: str
    status: TableStatus
    display_status: TableStatus
    capacity: int | None = None
    created_at: datetime

    class Config:
        from_attributes = True


# =============================================================================
# Inventory Schemas
# =============================================================================


class SetStockRequest(BaseModel):
    outlet_id: uuid.UUID | None = None
    item_id: uuid.UUID
    stock: Decimal = Field(ge=0)
    low_stock_threshold: Decimal | None = Field(default=None, ge=0)


class InventoryOutput(BaseModel):
    id: uuid.UUID
    outlet_id: uuid.UUID
    item_id: uuid.UUID
    item_name: str | None = None
    stock: Decimal
    low_stock_threshold: Decimal
    low_stock: bool
    updated_at: datetime | None = None

    class Config:
        from_attributes = True


class InventoryLogOutput(BaseModel):
    id: uuid.UUID
    outlet_id: uuid.UUID
    item_id: uuid.UUID
    item_name: str | None = None
    change: Decimal
    reason: str
    created_by: uuid.UUID | None = None
    created_at: datetime

    class Config:
        from_attributes = True


# =============================================================================
# Menu Schemas
# =============================================================================


class ItemCreateRequest(BaseModel):
    """
    Create a menu item. outlet_ids creates one copy per outlet;
    otherwise outlet_id (or the caller's outlet) is used.
    """

    outlet_id: uuid.UUID | None = None
    outlet_ids: list[uuid.UUID] | None = None
    name: str = Field(min_length=1, max_length=200)
    description: str | None = None
    category: str | None = Field(default=None, max_length=100)
    available: bool = True
    pricing_mode: PricingMode = "FIXED"
    price: Decimal = Field(gt=0)
    base_price: Decimal | None = Field(default=None, ge=0)
    quarter_price: Decimal | None = Field(default=None, ge=0)
    half_price: Decimal | None = Field(default=None, ge=0)
    three_quarter_price: Decimal | None = Field(default=None, ge=0)
    full_price: Decimal | None = Field(default=None, ge=0)
    requires_quantity: bool = False
    available_quantity_types: list[QuantityType] | None = None


class ItemUpdateRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    category: str | None = Field(default=None, max_length=100)
    available: bool | None = None
    pricing_mode: PricingMode | None = None
    price: Decimal | None = Field(default=None, gt=0)
    base_price: Decimal | None = Field(default=None, ge=0)
    quarter_price: Decimal | None = Field(default=None, ge=0)
    half_price: Decimal | None = Field(default=None, ge=0)
    three_quarter_price: Decimal | None = Field(default=None, ge=0)
    full_price: Decimal | None = Field(default=None, ge=0)
    requires_quantity: bool | None = None
    available_quantity_types: list[QuantityType] | None = None


class ItemOutput(BaseModel):
    id: uuid.UUID
    outlet_id: uuid.UUID
    name: str
    description: str | None = None
    category: str | None = None
    available: bool
    pricing_mode: PricingMode
    price: Decimal
    base_price: Decimal | None = None
    quarter_price: Decimal | None = None
    half_price: Decimal | None = None
    three_quarter_price: Decimal | None = None
    full_price: Decimal | None = None
    requires_quantity: bool
    available_quantity_types: list[QuantityType] | None = None
    created_at: datetime

    class Config:
        from_attributes = True


# =============================================================================
# Settings Schemas
# =============================================================================

class SettingsUpdateRequest(BaseModel):
    """Any subset of outlet settings. Unset fields are left unchanged."""

    outlet_id: uuid.UUID | None = None
    gst_enabled: bool | None = None
    gst_percentage: Decimal | None = Field(default=None, ge=0, le=100)
    cgst_percentage: Decimal | None = Field(default=None, ge=0, le=100)
    sgst_percentage: Decimal | None = Field(default=None, ge=0, le=100)
    business_name: str | None = Field(default=None, max_length=200)
    gstin: str | None = Field(default=None, max_length=15)
    address_line1: str | None = Field(default=None, max_length=255)
    address_line2: str | None = Field(default=None, max_length=255)
    city: str | None = Field(default=None, max_length=100)
    state: str | None = Field(default=None, max_length=100)
    pincode: str | None = Field(default=None, max_length=10)
    phone: str | None = Field(default=None, max_length=20)
    email: EmailStr | None = None
    receipt_header: str | None = None
    receipt_footer: str | None = None
    show_gstin_on_bill: bool | None = None
    show_address_on_bill: bool | None = None
    default_order_type: OrderType | None = None
    allow_takeaway: bool | None = None
    allow_dine_in: bool | None = None
    currency_symbol: str | None = Field(default=None, max_length=5)
    currency_code: str | None = Field(default=None, min_length=3, max_length=3)


class SettingsOutput(BaseModel):
    outlet_id: uuid.UUID
    gst_enabled: bool = True
    gst_percentage: Decimal | None = Decimal("18")
    cgst_percentage: Decimal = Decimal("9")
    sgst_percentage: Decimal = Decimal("9")
    business_name: str | None = None
    gstin: str | None = None
    address_line1: str | None = None
    address_line2: str | None = None
    city: str | None = None
    state: str | None = None
    pincode: str | None = None
    phone: str | None = None
    email: str | None = None
    receipt_header: str | None = None
    receipt_footer: str | None = None
    show_gstin_on_bill: bool = True
    show_address_on_bill: bool = True
    default_order_type: OrderType = "DINE_IN"
    allow_takeaway: bool = True
    allow_dine_in: bool = True
    currency_symbol: str = "₹"
    currency_code: str = "INR"
    # Rate that orders in this outlet are currently taxed at
    effective_tax_rate: Decimal

    class Config:
        from_attributes = True


# =============================================================================
# Analytics Schemas
# =============================================================================


class SalesSummaryOutput(BaseModel):
    total_sales: Decimal
    total_orders: int
    completed_orders: int
    cancelled_orders: int
    average_order_value: Decimal
    cancellation_rate: Decimal  # percentage of all orders


class PaymentBreakdownEntry(BaseModel):
    payment_method: PaymentMethod
    total: Decimal
    count: int


class ItemSalesEntry(BaseModel):
    item_id: uuid.UUID
    name: str
    quantity: int
    revenue: Decimal


class TopItemsOutput(BaseModel):
    top: list[ItemSalesEntry]  # highest revenue first
    low: list[ItemSalesEntry]  # lowest revenue first


SalesTrendPeriod = Literal["today", "week", "month", "year"]


class SalesTrendPoint(BaseModel):
    date: str  # YYYY-MM-DD, or YYYY-MM for the year view
    time: str | None = None  # HH:00 for the today view
    sales: Decimal
    order_count: int


class SalesTrendOutput(BaseModel):
    period: SalesTrendPeriod
    data: list[SalesTrendPoint]
    total_orders: int
    total_sales: Decimal


class PeakHourEntry(BaseModel):
    hour: int  # 0-23, UTC
    orders: int


class StaffPerformanceEntry(BaseModel):
    user_id: uuid.UUID
    name: str
    orders: int
    sales: Decimal


class OrderListLine(BaseModel):
    name: str
    quantity: int
    price: Decimal


class OrderListEntry(BaseModel):
    id: uuid.UUID
    order_number: str
    total: Decimal
    status: OrderStatus
    order_type: OrderType
    payment_method: PaymentMethod | None = None
    staff_name: str | None = None
    created_at: datetime
    items: list[OrderListLine]


class OrderListGroup(BaseModel):
    date: str
    orders: list[OrderListEntry]
    total_sales: Decimal
    order_count: int


class OrdersListOutput(BaseModel):
    orders: list[OrderListEntry] | None = None
    grouped: list[OrderListGroup] | None = None
    total_orders: int
    total_sales: Decimal


# =============================================================================
# Report Schemas
# =============================================================================


class DailyReportOutput(BaseModel):
    date: str
    total_sales: Decimal
    total_orders: int
    orders: list[OrderListEntry]


class ItemwiseReportOutput(BaseModel):
    start_date: str
    end_date: str
    items: list[ItemSalesEntry]  # highest revenue first


# =============================================================================
# Outlet Schemas
# =============================================================================


class OutletCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    address: str | None = None


class OutletOutput(BaseModel):
    id: uuid.UUID
    name: str
    address: str | None = None
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True


class OutletSwitchRequest(BaseModel):
    outlet_id: uuid.UUID


class OutletSwitchResponse(BaseModel):
    """The new token carries the switched-to outlet as its outlet_id claim."""

    outlet: OutletOutput
    message: str
    access_token: str
    token_type: str = "Bearer"
    expires_in: int  # seconds


class OutletSummaryOutput(BaseModel):
    outlet: OutletOutput
    period_days: int
    total_sales: Decimal
    total_orders: int  # completed orders only
    average_order_value: Decimal
    payment_breakdown: dict[str, Decimal]  # CASH, UPI, CARD, zero when unused
