"""
Pricing Engine.

Computes the effective price of an order line from the item's pricing mode
and the requested portion. Pure apart from logging: missing prices fall back
(to base price, full price or zero) and emit a WARNING so degraded pricing
shows up in the logs.
"""

from decimal import ROUND_HALF_UP, Decimal

from pos_api.models import Item
from pos_shared.config.constants import (
    MONEY_QUANTUM,
    QUANTITY_MULTIPLIERS,
    PricingMode,
    QuantityType,
)
from pos_shared.config.logging import get_logger
from pos_shared.utils.exceptions import ValidationError

logger = get_logger(__name__)

ZERO = Decimal("0")

_MANUAL_PORTION_COLUMNS = {
    QuantityType.QUARTER: "quarter_price",
    QuantityType.HALF: "half_price",
    QuantityType.THREE_QUARTER: "three_quarter_price",
}


def to_money(value: Decimal | int | float | str) -> Decimal:
    """Round a value to currency precision, half-up."""
    return Decimal(str(value)).quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP)


def _as_quantity_type(quantity_type: QuantityType | str | None) -> QuantityType | None:
    if quantity_type is None:
        return None
    return QuantityType(quantity_type)


def quantity_multiplier(quantity_type: QuantityType | str | None) -> Decimal:
    """Multiplier of a portion size. CUSTOM and no portion count as a full unit."""
    qt = _as_quantity_type(quantity_type)
    if qt is None:
        return Decimal("1.0")
    return QUANTITY_MULTIPLIERS[qt]


def _fallback(item: Item, field: str, used: str) -> None:
    logger.warning(
        "Pricing fallback: missing price",
        item_id=str(item.id),
        item_name=item.name,
        pricing_mode=item.pricing_mode,
        missing=field,
        used=used,
    )


def unit_price(item: Item, quantity_type: QuantityType | str | None = None) -> Decimal:
    """
    Effective price of one unit of the given portion. The result is exact:
    portions of an AUTO item are not rounded (half of 99.99 is 49.995);
    rounding happens once, on the order subtotal and tax.

    - FIXED: item.price; the portion is ignored.
    - QUANTITY_AUTO: base_price (or price) x portion multiplier.
    - QUANTITY_MANUAL: the portion's own price; FULL, CUSTOM and no portion
      use full_price, then price. A missing portion price counts as zero.
    """
    mode = PricingMode(item.pricing_mode)
    qt = _as_quantity_type(quantity_type)

    if mode == PricingMode.FIXED:
        if item.price is None:
            _fallback(item, "price", "0")
            return ZERO
        return Decimal(item.price)

    if mode == PricingMode.QUANTITY_AUTO:
        base = item.base_price
        if base is None:
            base = item.price if item.price is not None else ZERO
            _fallback(item, "base_price", "price")
        return Decimal(base) * quantity_multiplier(qt)

    # QUANTITY_MANUAL
    column = _MANUAL_PORTION_COLUMNS.get(qt) if qt is not None else None
    if column is not None:
        portion_price = getattr(item, column)
        if portion_price is None:
            _fallback(item, column, "0")
            return ZERO
        return Decimal(portion_price)

    if item.full_price is not None:
        return Decimal(item.full_price)
    _fallback(item, "full_price", "price")
    return Decimal(item.price) if item.price is not None else ZERO


def effective_price(
    item: Item,
    quantity: int,
    quantity_type: QuantityType | str | None = None,
) -> Decimal:
    """Unit price x quantity for one order line."""
    return unit_price(item, quantity_type) * quantity


def validate_line(item: Item, quantity_type: QuantityType | str | None) -> QuantityType | None:
    """
    Check a requested portion against the item's rules.

    Returns the portion to price with: a non-FIXED item ordered without a
    portion is priced as FULL.

    Raises:
        ValidationError: portion required but missing, or not offered for the item.
    """
    qt = _as_quantity_type(quantity_type)

    if item.requires_quantity and qt is None:
        raise ValidationError(
            f"Quantity type is required for item '{item.name}'",
            item_id=str(item.id),
        )

    allowed = item.available_quantity_types or []
    if qt is not None and allowed and qt.value not in allowed:
        raise ValidationError(
            f"Quantity type {qt.value} is not available for item '{item.name}'",
            item_id=str(item.id),
            allowed=allowed,
        )

    if qt is None and item.pricing_mode != PricingMode.FIXED.value:
        logger.warning(
            "Quantity type missing for portion-priced item, pricing as FULL",
            item_id=str(item.id),
            pricing_mode=item.pricing_mode,
        )
        return QuantityType.FULL

    return qt


def lines_subtotal(lines) -> Decimal:
    """Sum of frozen unit price x quantity over order lines."""
    return sum((Decimal(line.price) * line.quantity for line in lines), ZERO)
