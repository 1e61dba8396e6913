"""Content service - creator posts, videos and tutorials"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...currency import to_kobo
from ...models import Collection, Content, Creator, CreatorPlan
from .schemas import ContentCreate, ContentUpdate

logger = logging.getLogger(__name__)


class ContentService:
    def __init__(self, db: Session):
        self.db = db

    def _check_references(self, creator: Creator, plan_id: Optional[int], collection_id: Optional[int]) -> None:
        if plan_id is not None:
            plan = (
                self.db.query(CreatorPlan.id)
                .filter(CreatorPlan.id == plan_id, CreatorPlan.creator_id == creator.id)
                .first()
            )
            if not plan:
                raise HTTPException(status_code=400, detail="Plan does not belong to this creator")
        if collection_id is not None:
            collection = (
                self.db.query(Collection.id)
                .filter(Collection.id == collection_id, Collection.creator_id == creator.id)
                .first()
            )
            if not collection:
                raise HTTPException(status_code=400, detail="Collection does not belong to this creator")

    def list_content(
        self, creator: Creator, content_category: Optional[str] = None, published: Optional[bool] = None
    ) -> list[Content]:
        query = self.db.query(Content).filter(Content.creator_id == creator.id)
        if content_category:
            query = query.filter(Content.content_category == content_category)
        if published is not None:
            query = query.filter(Content.is_published.is_(published))
        return query.order_by(Content.created_at.desc(), Content.id.desc()).all()

    def get_content(self, creator: Creator, content_id: int) -> Content:
        content = (
            self.db.query(Content)
            .filter(Content.id == content_id, Content.creator_id == creator.id)
            .first()
        )
        if not content:
            raise HTTPException(status_code=404, detail="Content not found")
        return content

    def create_content(self, creator: Creator, data: ContentCreate) -> Content:
        self._check_references(creator, data.required_plan_id, data.collection_id)

        values = data.model_dump()
        if values["tutorial_price"] is not None:
            values["tutorial_price"] = to_kobo(values["tutorial_price"])
        content = Content(creator_id=creator.id, **values)
        if content.is_published:
            content.published_at = datetime.utcnow()
        if content.type == "video" and content.video_id is None:
            content.processing_status = "pending"

        self.db.add(content)
        creator.content_count = Creator.content_count + 1
        self.db.commit()
        self.db.refresh(content)
        logger.info(f"✅ Content {content.id} ({content.type}) created for creator {creator.id}")
        return content

    def update_content(self, creator: Creator, content_id: int, data: ContentUpdate) -> Content:
        content = self.get_content(creator, content_id)
        updates = data.model_dump(exclude_unset=True)
        self._check_references(creator, updates.get("required_plan_id"), updates.get("collection_id"))

        if updates.get("tutorial_price") is not None:
            updates["tutorial_price"] = to_kobo(updates["tutorial_price"])
        if updates.get("is_published") and not content.is_published:
            content.published_at = datetime.utcnow()
        elif updates.get("is_published") is False:
            content.published_at = None

        for key, value in updates.items():
            setattr(content, key, value)
        self.db.commit()
        self.db.refresh(content)
        return content

    def delete_content(self, creator: Creator, content_id: int) -> dict:
        content = self.get_content(creator, content_id)
        if creator.intro_video_id == content.id:
            creator.intro_video_id = None
        self.db.delete(content)
        creator.content_count = Creator.content_count - 1
        self.db.commit()
        return {"message": "Content deleted"}
