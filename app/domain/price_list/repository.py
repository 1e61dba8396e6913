"""Price list repository - Database operations for price list items"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import PriceListItem


class PriceListRepository:
    @staticmethod
    def get_items(db: Session, creator_id: int, active_only: bool = False) -> list[PriceListItem]:
        query = db.query(PriceListItem).filter(PriceListItem.creator_id == creator_id)
        if active_only:
            query = query.filter(PriceListItem.is_active.is_(True))
        return query.order_by(
            PriceListItem.category_order_index.asc(),
            PriceListItem.order_index.asc(),
            PriceListItem.id.asc(),
        ).all()

    @staticmethod
    def get_item(db: Session, item_id: int, creator_id: Optional[int] = None) -> Optional[PriceListItem]:
        query = db.query(PriceListItem).filter(PriceListItem.id == item_id)
        if creator_id is not None:
            query = query.filter(PriceListItem.creator_id == creator_id)
        return query.first()

    @staticmethod
    def create_item(db: Session, creator_id: int, **data) -> PriceListItem:
        item = PriceListItem(creator_id=creator_id, **data)
        db.add(item)
        db.commit()
        db.refresh(item)
        return item

    @staticmethod
    def update_item(db: Session, item: PriceListItem, **updates) -> PriceListItem:
        for key, value in updates.items():
            if value is not None and hasattr(item, key):
                setattr(item, key, value)
        db.commit()
        db.refresh(item)
        return item
