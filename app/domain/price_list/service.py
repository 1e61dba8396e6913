"""Price list service"""

import logging
from itertools import groupby

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...currency import to_kobo
from ...models import Booking, Creator, PriceListItem
from .repository import PriceListRepository
from .schemas import PriceListItemCreate, PriceListItemUpdate

logger = logging.getLogger(__name__)


class PriceListService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = PriceListRepository()

    def list_items(self, creator: Creator) -> list[PriceListItem]:
        return self.repo.get_items(self.db, creator.id)

    def get_item(self, creator: Creator, item_id: int) -> PriceListItem:
        item = self.repo.get_item(self.db, item_id, creator.id)
        if not item:
            raise HTTPException(status_code=404, detail="Service not found")
        return item

    def create_item(self, creator: Creator, data: PriceListItemCreate) -> PriceListItem:
        values = data.model_dump()
        values["price"] = to_kobo(values["price"])
        item = self.repo.create_item(self.db, creator.id, **values)
        logger.info(f"✅ Price list item {item.id} created for creator {creator.id}")
        return item

    def update_item(self, creator: Creator, item_id: int, data: PriceListItemUpdate) -> PriceListItem:
        item = self.get_item(creator, item_id)
        updates = data.model_dump(exclude_unset=True)
        if updates.get("price") is not None:
            updates["price"] = to_kobo(updates["price"])
        return self.repo.update_item(self.db, item, **updates)

    def delete_item(self, creator: Creator, item_id: int) -> dict:
        """Hard delete when unused; items referenced by bookings are deactivated instead."""
        item = self.get_item(creator, item_id)
        in_use = self.db.query(Booking.id).filter(Booking.price_list_item_id == item.id).first()
        if in_use:
            item.is_active = False
            self.db.commit()
            return {"message": "Service deactivated", "deactivated": True}
        self.db.delete(item)
        self.db.commit()
        return {"message": "Service deleted", "deactivated": False}

    def public_price_list(self, creator_id: int) -> list[dict]:
        """Active items grouped by category, in display order"""
        creator = self.db.query(Creator).filter(Creator.id == creator_id).first()
        if not creator or not creator.is_public:
            raise HTTPException(status_code=404, detail="Creator not found")

        items = self.repo.get_items(self.db, creator_id, active_only=True)
        return [
            {"category": category, "items": list(group)}
            for category, group in groupby(items, key=lambda i: i.category)
        ]
