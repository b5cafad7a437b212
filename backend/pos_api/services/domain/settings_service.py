"""
Outlet Settings Domain Service.

Read with defaults and partial upsert of per-outlet tax and receipt settings.
"""

import uuid
from decimal import Decimal
from typing import Any

from sqlalchemy.orm import Session

from pos_api.models import Outlet, OutletSettings
from pos_api.services.domain.tax_service import TaxService, rate_from_settings
from pos_shared.config.logging import get_logger
from pos_shared.infrastructure.db import safe_commit
from pos_shared.utils.exceptions import NotFoundError
from pos_shared.utils.schemas import SettingsOutput, SettingsUpdateRequest

logger = get_logger(__name__)

# Returned when an outlet has no settings row yet
DEFAULT_SETTINGS: dict[str, Any] = {
    "gst_enabled": True,
    "gst_percentage": Decimal("18"),
    "cgst_percentage": Decimal("9"),
    "sgst_percentage": Decimal("9"),
    "show_gstin_on_bill": True,
    "show_address_on_bill": True,
    "default_order_type": "DINE_IN",
    "allow_takeaway": True,
    "allow_dine_in": True,
    "currency_symbol": "₹",
    "currency_code": "INR",
}

_SETTINGS_FIELDS = tuple(
    name for name in SettingsOutput.model_fields if name not in {"outlet_id", "effective_tax_rate"}
)

# Columns that cannot hold NULL; an explicit null in a request leaves them unchanged
_REQUIRED_FIELDS = frozenset({
    "gst_enabled",
    "cgst_percentage",
    "sgst_percentage",
    "show_gstin_on_bill",
    "show_address_on_bill",
    "default_order_type",
    "allow_takeaway",
    "allow_dine_in",
    "currency_symbol",
    "currency_code",
})


class SettingsService:
    def __init__(self, db: Session):
        self._db = db
        self._tax = TaxService(db)

    def get(self, outlet_id: uuid.UUID) -> SettingsOutput:
        """Settings merged over the defaults."""
        row = self._tax.get_settings(outlet_id)
        if row is None:
            return SettingsOutput(
                outlet_id=outlet_id,
                effective_tax_rate=rate_from_settings(None, outlet_id),
                **DEFAULT_SETTINGS,
            )

        values = {name: getattr(row, name) for name in _SETTINGS_FIELDS}
        return SettingsOutput(
            outlet_id=outlet_id,
            effective_tax_rate=rate_from_settings(row, outlet_id),
            **values,
        )

    def update(
        self,
        outlet_id: uuid.UUID,
        data: SettingsUpdateRequest,
        user_id: uuid.UUID | str | None = None,
    ) -> SettingsOutput:
        """
        Upsert the fields present in the request.

        Raises:
            NotFoundError: unknown outlet.
        """
        if self._db.get(Outlet, outlet_id) is None:
            raise NotFoundError("Outlet", outlet_id)

        changes = {
            key: value
            for key, value in data.model_dump(exclude_unset=True, exclude={"outlet_id"}).items()
            if value is not None or key not in _REQUIRED_FIELDS
        }

        row = self._tax.get_settings(outlet_id)
        if row is None:
            row = OutletSettings(outlet_id=outlet_id, **DEFAULT_SETTINGS)
            self._db.add(row)

        for key, value in changes.items():
            setattr(row, key, value)

        safe_commit(self._db)
        self._db.refresh(row)

        logger.info(
            "Outlet settings updated",
            outlet_id=str(outlet_id),
            fields=sorted(changes),
            user_id=str(user_id) if user_id else None,
        )
        return self.get(outlet_id)
