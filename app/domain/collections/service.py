"""Collection service - grouped content with sections, paid access and tutorials"""

import logging
from datetime import datetime

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...currency import to_kobo
from ...models import Collection, Content, Creator, Section, SectionContent
from ..payments.service import PaymentService
from .repository import CollectionRepository
from .schemas import CollectionCreate, CollectionUpdate, SectionContentAdd, SectionCreate, SectionUpdate

logger = logging.getLogger(__name__)

PRICE_FIELDS = ("price", "subscription_price")


class CollectionService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = CollectionRepository()

    def _get_owned(self, creator: Creator, collection_id: int) -> Collection:
        collection = self.repo.get(self.db, collection_id, creator.id)
        if not collection:
            raise HTTPException(status_code=404, detail="Collection not found")
        return collection

    def _get_section(self, collection: Collection, section_id: int) -> Section:
        section = self.repo.get_section(self.db, section_id, collection.id)
        if not section:
            raise HTTPException(status_code=404, detail="Section not found")
        return section

    # ========================================================================
    # COLLECTIONS
    # ========================================================================

    def list_collections(self, creator: Creator) -> list[Collection]:
        return self.repo.list_for_creator(self.db, creator.id)

    def get_collection(self, creator: Creator, collection_id: int) -> Collection:
        return self._get_owned(creator, collection_id)

    def create_collection(self, creator: Creator, data: CollectionCreate) -> Collection:
        values = data.model_dump()
        for field in PRICE_FIELDS:
            if values[field] is not None:
                values[field] = to_kobo(values[field])
        collection = Collection(creator_id=creator.id, **values)
        if collection.is_published:
            collection.published_at = datetime.utcnow()
        self.db.add(collection)
        self.db.commit()
        self.db.refresh(collection)
        return collection

    def update_collection(self, creator: Creator, collection_id: int, data: CollectionUpdate) -> Collection:
        collection = self._get_owned(creator, collection_id)
        updates = data.model_dump(exclude_unset=True)
        for field in PRICE_FIELDS:
            if updates.get(field) is not None:
                updates[field] = to_kobo(updates[field])
        if updates.get("is_published") and not collection.is_published:
            collection.published_at = datetime.utcnow()
        for key, value in updates.items():
            setattr(collection, key, value)
        self.db.commit()
        self.db.refresh(collection)
        return collection

    def delete_collection(self, creator: Creator, collection_id: int) -> dict:
        collection = self._get_owned(creator, collection_id)
        self.db.delete(collection)
        self.db.commit()
        return {"message": "Collection deleted"}

    # ========================================================================
    # SECTIONS
    # ========================================================================

    def add_section(self, creator: Creator, collection_id: int, data: SectionCreate) -> Section:
        collection = self._get_owned(creator, collection_id)
        if data.parent_section_id is not None:
            self._get_section(collection, data.parent_section_id)
        section = Section(collection_id=collection.id, **data.model_dump())
        self.db.add(section)
        self.db.commit()
        self.db.refresh(section)
        return section

    def update_section(self, creator: Creator, collection_id: int, section_id: int, data: SectionUpdate) -> Section:
        section = self._get_section(self._get_owned(creator, collection_id), section_id)
        for key, value in data.model_dump(exclude_unset=True).items():
            setattr(section, key, value)
        self.db.commit()
        self.db.refresh(section)
        return section

    def delete_section(self, creator: Creator, collection_id: int, section_id: int) -> dict:
        section = self._get_section(self._get_owned(creator, collection_id), section_id)
        # Child sections go with their parent
        self.db.query(Section).filter(Section.parent_section_id == section.id).delete(synchronize_session=False)
        self.db.delete(section)
        self.db.commit()
        return {"message": "Section deleted"}

    def add_content_to_section(
        self, creator: Creator, collection_id: int, section_id: int, data: SectionContentAdd
    ) -> SectionContent:
        section = self._get_section(self._get_owned(creator, collection_id), section_id)
        content = (
            self.db.query(Content)
            .filter(Content.id == data.content_id, Content.creator_id == creator.id)
            .first()
        )
        if not content:
            raise HTTPException(status_code=404, detail="Content not found")
        if self.repo.get_section_content(self.db, section.id, content.id):
            raise HTTPException(status_code=409, detail="Content already in this section")

        link = SectionContent(section_id=section.id, content_id=content.id, order_index=data.order_index)
        self.db.add(link)
        self.db.commit()
        self.db.refresh(link)
        return link

    def remove_content_from_section(
        self, creator: Creator, collection_id: int, section_id: int, content_id: int
    ) -> dict:
        section = self._get_section(self._get_owned(creator, collection_id), section_id)
        link = self.repo.get_section_content(self.db, section.id, content_id)
        if not link:
            raise HTTPException(status_code=404, detail="Content not in this section")
        self.db.delete(link)
        self.db.commit()
        return {"message": "Content removed from section"}

    # ========================================================================
    # PUBLIC ACCESS & PURCHASES
    # ========================================================================

    def public_collection(self, collection_id: int) -> Collection:
        collection = self.repo.get(self.db, collection_id)
        if not collection or not collection.is_published:
            raise HTTPException(status_code=404, detail="Collection not found")
        return collection

    def has_collection_access(self, collection_id: int, email: str) -> bool:
        collection = self.public_collection(collection_id)
        if collection.access_type == "free":
            return True
        return self.repo.active_subscription(self.db, collection.id, email.lower()) is not None

    def has_tutorial_access(self, content_id: int, email: str) -> bool:
        content = (
            self.db.query(Content)
            .filter(
                Content.id == content_id,
                Content.is_published.is_(True),
                Content.content_category == "tutorial",
            )
            .first()
        )
        if not content:
            raise HTTPException(status_code=404, detail="Tutorial not found")
        # Priced tutorials are paywalled whatever their access_type says
        if not content.tutorial_price:
            return True
        email = email.lower()
        if self.repo.tutorial_purchase(self.db, content.id, email):
            return True
        return bool(
            content.collection_id and self.repo.active_subscription(self.db, content.collection_id, email)
        )

    async def subscribe(self, collection_id: int, email: str) -> dict:
        collection = self.public_collection(collection_id)
        if collection.access_type == "free":
            raise HTTPException(status_code=400, detail="This collection is free")
        if self.repo.active_subscription(self.db, collection.id, email):
            raise HTTPException(status_code=409, detail="You already have access to this collection")

        amount = collection.subscription_price if collection.subscription_type == "recurring" else collection.price
        if not amount:
            raise HTTPException(status_code=400, detail="Collection has no price set")

        return await PaymentService(self.db).start_checkout(
            email=email,
            amount=amount,
            creator=collection.creator,
            tx_type="collection_subscription",
            metadata={"collection_id": collection.id, "subscription_type": collection.subscription_type},
        )

    async def purchase_tutorial(self, content_id: int, email: str) -> dict:
        content = (
            self.db.query(Content)
            .filter(
                Content.id == content_id,
                Content.is_published.is_(True),
                Content.content_category == "tutorial",
            )
            .first()
        )
        if not content:
            raise HTTPException(status_code=404, detail="Tutorial not found")
        if not content.tutorial_price:
            raise HTTPException(status_code=400, detail="This tutorial is free")
        if self.repo.tutorial_purchase(self.db, content.id, email):
            raise HTTPException(status_code=409, detail="You already own this tutorial")

        return await PaymentService(self.db).start_checkout(
            email=email,
            amount=content.tutorial_price,
            creator=content.creator,
            tx_type="tutorial_purchase",
            metadata={"content_id": content.id},
        )
