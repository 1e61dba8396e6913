"""Collection repository"""

from datetime import datetime
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session, selectinload

from ...models import Collection, CollectionSubscription, Section, SectionContent, TutorialPurchase


class CollectionRepository:
    @staticmethod
    def get(db: Session, collection_id: int, creator_id: Optional[int] = None) -> Optional[Collection]:
        query = (
            db.query(Collection)
            .options(selectinload(Collection.sections).selectinload(Section.contents))
            .filter(Collection.id == collection_id)
        )
        if creator_id is not None:
            query = query.filter(Collection.creator_id == creator_id)
        return query.first()

    @staticmethod
    def list_for_creator(db: Session, creator_id: int) -> list[Collection]:
        return (
            db.query(Collection)
            .filter(Collection.creator_id == creator_id)
            .order_by(Collection.created_at.desc(), Collection.id.desc())
            .all()
        )

    @staticmethod
    def get_section(db: Session, section_id: int, collection_id: int) -> Optional[Section]:
        return (
            db.query(Section)
            .filter(Section.id == section_id, Section.collection_id == collection_id)
            .first()
        )

    @staticmethod
    def get_section_content(db: Session, section_id: int, content_id: int) -> Optional[SectionContent]:
        return (
            db.query(SectionContent)
            .filter(SectionContent.section_id == section_id, SectionContent.content_id == content_id)
            .first()
        )

    @staticmethod
    def active_subscription(db: Session, collection_id: int, email: str) -> Optional[CollectionSubscription]:
        now = datetime.utcnow()
        return (
            db.query(CollectionSubscription)
            .filter(
                CollectionSubscription.collection_id == collection_id,
                CollectionSubscription.email == email,
                CollectionSubscription.status == "active",
                or_(CollectionSubscription.expires_at.is_(None), CollectionSubscription.expires_at > now),
            )
            .first()
        )

    @staticmethod
    def tutorial_purchase(db: Session, content_id: int, email: str) -> Optional[TutorialPurchase]:
        return (
            db.query(TutorialPurchase)
            .filter(TutorialPurchase.content_id == content_id, TutorialPurchase.email == email)
            .first()
        )
