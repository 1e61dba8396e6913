"""Creator repository - Database operations for creators, plans and links"""

from typing import Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from ...models import Content, Creator, CreatorLink, CreatorPlan


class CreatorRepository:
    """Repository for creator database operations"""

    @staticmethod
    def get_by_user_id(db: Session, user_id: int) -> Optional[Creator]:
        return db.query(Creator).filter(Creator.user_id == user_id).first()

    @staticmethod
    def get_by_id(db: Session, creator_id: int) -> Optional[Creator]:
        return db.query(Creator).filter(Creator.id == creator_id).first()

    @staticmethod
    def get_by_username(db: Session, username: str) -> Optional[Creator]:
        return db.query(Creator).filter(Creator.username == username.lower()).first()

    @staticmethod
    def username_taken(db: Session, username: str) -> bool:
        return db.query(Creator.id).filter(Creator.username == username).first() is not None

    @staticmethod
    def search_public(
        db: Session, category: Optional[str], search: Optional[str], offset: int, limit: int
    ) -> tuple[list[Creator], int]:
        """Public creators ordered by subscriber count, with total count for pagination"""
        query = db.query(Creator).filter(Creator.is_public.is_(True))

        if category and category != "all":
            query = query.filter(Creator.category == category)

        if search:
            pattern = f"%{search.lower()}%"
            query = query.filter(
                or_(
                    func.lower(Creator.display_name).like(pattern),
                    func.lower(Creator.username).like(pattern),
                    func.lower(Creator.bio).like(pattern),
                )
            )

        total = query.count()
        creators = (
            query.order_by(Creator.subscriber_count.desc(), Creator.id.asc())
            .offset(offset)
            .limit(limit)
            .all()
        )
        return creators, total

    @staticmethod
    def cheapest_active_plan(db: Session, creator_id: int) -> Optional[CreatorPlan]:
        return (
            db.query(CreatorPlan)
            .filter(CreatorPlan.creator_id == creator_id, CreatorPlan.is_active.is_(True))
            .order_by(CreatorPlan.price.asc())
            .first()
        )

    @staticmethod
    def recent_videos(db: Session, creator_id: int, limit: int = 3) -> list[Content]:
        return (
            db.query(Content)
            .filter(
                Content.creator_id == creator_id,
                Content.is_published.is_(True),
                Content.type == "video",
            )
            .order_by(Content.published_at.desc(), Content.id.desc())
            .limit(limit)
            .all()
        )

    # Plans

    @staticmethod
    def get_plans(db: Session, creator_id: int, active_only: bool = False) -> list[CreatorPlan]:
        query = db.query(CreatorPlan).filter(CreatorPlan.creator_id == creator_id)
        if active_only:
            query = query.filter(CreatorPlan.is_active.is_(True))
        return query.order_by(CreatorPlan.order_index.asc(), CreatorPlan.price.asc()).all()

    @staticmethod
    def get_plan(db: Session, plan_id: int, creator_id: int) -> Optional[CreatorPlan]:
        return (
            db.query(CreatorPlan)
            .filter(CreatorPlan.id == plan_id, CreatorPlan.creator_id == creator_id)
            .first()
        )

    # Links

    @staticmethod
    def get_links(db: Session, creator_id: int, active_only: bool = False) -> list[CreatorLink]:
        query = db.query(CreatorLink).filter(CreatorLink.creator_id == creator_id)
        if active_only:
            query = query.filter(CreatorLink.is_active.is_(True))
        return query.order_by(CreatorLink.order_index.asc(), CreatorLink.id.asc()).all()

    @staticmethod
    def get_link(db: Session, link_id: int, creator_id: Optional[int] = None) -> Optional[CreatorLink]:
        query = db.query(CreatorLink).filter(CreatorLink.id == link_id)
        if creator_id is not None:
            query = query.filter(CreatorLink.creator_id == creator_id)
        return query.first()

    @staticmethod
    def update(db: Session, obj, **updates):
        for key, value in updates.items():
            if value is not None and hasattr(obj, key):
                setattr(obj, key, value)
        db.commit()
        db.refresh(obj)
        return obj
