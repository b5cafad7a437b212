"""
Menu catalog service.

Catalog edits only touch Item rows; order lines keep the price they were
created with.
"""

import uuid

from sqlalchemy import select
from sqlalchemy.orm import Session

from pos_api.models import Item, Outlet
from pos_shared.config.logging import get_logger
from pos_shared.infrastructure.db import safe_commit
from pos_shared.utils.exceptions import ItemNotFoundError, NotFoundError, ValidationError
from pos_shared.utils.schemas import ItemCreateRequest, ItemUpdateRequest

logger = get_logger(__name__)

_ITEM_FIELDS = (
    "name",
    "description",
    "category",
    "available",
    "pricing_mode",
    "price",
    "base_price",
    "quarter_price",
    "half_price",
    "three_quarter_price",
    "full_price",
    "requires_quantity",
    "available_quantity_types",
)

# Columns that cannot hold NULL
_REQUIRED_FIELDS = frozenset({"name", "available", "pricing_mode", "price", "requires_quantity"})


class CatalogService:
    def __init__(self, db: Session):
        self._db = db

    def get(self, item_id: uuid.UUID, outlet_id: uuid.UUID | None = None) -> Item:
        item = self._db.get(Item, item_id)
        if item is None or (outlet_id is not None and item.outlet_id != outlet_id):
            raise ItemNotFoundError(item_id)
        return item

    def list_items(
        self,
        outlet_id: uuid.UUID,
        category: str | None = None,
        available: bool | None = None,
    ) -> list[Item]:
        stmt = select(Item).where(Item.outlet_id == outlet_id).order_by(Item.category, Item.name)
        if category:
            stmt = stmt.where(Item.category == category)
        if available is not None:
            stmt = stmt.where(Item.available == available)
        return list(self._db.scalars(stmt).all())

    def create(self, outlet_ids: list[uuid.UUID], data: ItemCreateRequest) -> list[Item]:
        """
        Create the item once per outlet.

        Raises:
            ValidationError: no outlet given.
            NotFoundError: an outlet does not exist.
        """
        if not outlet_ids:
            raise ValidationError("Outlet ID is required")

        values = data.model_dump(include=set(_ITEM_FIELDS))
        values["name"] = values["name"].strip()

        created = []
        for outlet_id in dict.fromkeys(outlet_ids):
            if self._db.get(Outlet, outlet_id) is None:
                raise NotFoundError("Outlet", outlet_id)
            item = Item(outlet_id=outlet_id, **values)
            self._db.add(item)
            created.append(item)

        safe_commit(self._db)
        for item in created:
            self._db.refresh(item)

        logger.info(
            "Menu item created",
            name=values["name"],
            pricing_mode=values["pricing_mode"],
            outlets=[str(i.outlet_id) for i in created],
        )
        return created

    def update(self, item_id: uuid.UUID, data: ItemUpdateRequest, outlet_id: uuid.UUID | None = None) -> Item:
        item = self.get(item_id, outlet_id)

        changes = {
            key: value
            for key, value in data.model_dump(exclude_unset=True).items()
            if value is not None or key not in _REQUIRED_FIELDS
        }
        for key, value in changes.items():
            setattr(item, key, value)

        safe_commit(self._db)
        self._db.refresh(item)
        logger.info("Menu item updated", item_id=str(item.id), fields=sorted(changes))
        return item
