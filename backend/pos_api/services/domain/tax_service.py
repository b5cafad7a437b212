"""
Tax configuration.

Resolves an outlet's GST rate from its settings and turns a subtotal into
tax and total. The rate is a percentage (18 means 18%).
"""

import uuid
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from pos_api.models import Order, OutletSettings
from pos_shared.config.constants import MONEY_QUANTUM
from pos_shared.config.logging import get_logger
from pos_shared.config.settings import settings

logger = get_logger(__name__)

ZERO = Decimal("0")


def default_tax_rate() -> Decimal:
    return Decimal(str(settings.default_gst_percentage))


def rate_from_settings(outlet_settings: OutletSettings | None, outlet_id: uuid.UUID | None = None) -> Decimal:
    """
    Rate for a settings row (or its absence).

    - no settings row: default rate, WARNING
    - gst disabled: 0, whatever gst_percentage holds
    - gst_percentage NULL: default rate, WARNING
    """
    if outlet_settings is None:
        logger.warning("Tax settings missing, using default", outlet_id=str(outlet_id), rate=str(default_tax_rate()))
        return default_tax_rate()

    if not outlet_settings.gst_enabled:
        return ZERO

    if outlet_settings.gst_percentage is None:
        logger.warning(
            "GST percentage not set, using default",
            outlet_id=str(outlet_settings.outlet_id),
            rate=str(default_tax_rate()),
        )
        return default_tax_rate()

    return Decimal(outlet_settings.gst_percentage)


def compute_totals(subtotal: Decimal, rate: Decimal) -> tuple[Decimal, Decimal]:
    """
    Tax and total for a subtotal.

    tax = subtotal x rate / 100, rounded half-up to 0.01; total = subtotal + tax.
    """
    subtotal = Decimal(subtotal).quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP)
    tax = (subtotal * Decimal(rate) / Decimal("100")).quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP)
    return tax, subtotal + tax


def split_tax(tax: Decimal, cgst_percentage: Decimal | None, sgst_percentage: Decimal | None) -> tuple[Decimal, Decimal]:
    """
    Split tax into CGST and SGST in proportion to their configured rates.
    Both zero (or unset) splits half and half. The parts always sum to tax.
    """
    cgst_rate = Decimal(cgst_percentage or 0)
    sgst_rate = Decimal(sgst_percentage or 0)
    combined = cgst_rate + sgst_rate

    if combined == 0:
        cgst = (tax / 2).quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP)
    else:
        cgst = (tax * cgst_rate / combined).quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP)
    return cgst, tax - cgst


class TaxService:
    """
    Reads outlet tax configuration and applies the order tax-rate policy.

    Policy (TAX_RATE_POLICY):
    - "current": every computation reads the outlet's current rate
    - "snapshot": the rate stored on the order at creation is reused
    """

    def __init__(self, db: Session, policy: str | None = None):
        self._db = db
        self._policy = policy or settings.tax_rate_policy

    @property
    def policy(self) -> str:
        return self._policy

    def get_settings(self, outlet_id: uuid.UUID) -> OutletSettings | None:
        return self._db.scalar(
            select(OutletSettings).where(OutletSettings.outlet_id == outlet_id)
        )

    def resolve_tax_rate(self, outlet_id: uuid.UUID) -> Decimal:
        """Current GST percentage of an outlet."""
        return rate_from_settings(self.get_settings(outlet_id), outlet_id)

    def rate_for_order(self, order: Order) -> Decimal:
        """
        Rate to use when recomputing an existing order's totals.
        """
        if self._policy == "snapshot" and order.tax_rate is not None:
            return Decimal(order.tax_rate)
        return self.resolve_tax_rate(order.outlet_id)

    def apply_totals(self, order: Order, subtotal: Decimal, rate: Decimal) -> None:
        """Write subtotal, tax, total and the rate used onto the order."""
        tax, total = compute_totals(subtotal, rate)
        order.subtotal = Decimal(subtotal).quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP)
        order.tax = tax
        order.total = total
        order.tax_rate = rate
