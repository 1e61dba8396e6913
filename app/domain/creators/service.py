"""Creator service - onboarding, profiles, discovery, plans and links"""

import logging
import math
from datetime import datetime, timedelta
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...cache import build_discovery_key, cache, invalidate_discovery_cache
from ...currency import to_kobo
from ...models import Content, Creator, CreatorLink, CreatorPlan, User
from ...shared.validators import slugify, unique_suffix
from ..payments.paystack_service import PaystackError, paystack_service
from ..price_list.repository import PriceListRepository
from .repository import CreatorRepository
from .schemas import (
    CreatorUpdate,
    LinkCreate,
    LinkUpdate,
    OnboardingRequest,
    PlanCreate,
    PlanUpdate,
)

logger = logging.getLogger(__name__)

PLATFORM_TRIAL_DAYS = 30
DISCOVERY_CACHE_TTL = 60
MAX_PAGE_SIZE = 50


def video_summary(content: Content) -> dict:
    return {
        "id": content.id,
        "title": content.title,
        "thumbnail_url": content.thumbnail_url,
        "video_id": content.video_id,
        "access_type": content.access_type,
    }


def plan_summary(plan: Optional[CreatorPlan]) -> Optional[dict]:
    if not plan:
        return None
    return {"id": plan.id, "name": plan.name, "price": plan.price}


class CreatorService:
    """Service layer for creator business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = CreatorRepository()

    # ========================================================================
    # ONBOARDING & PROFILE
    # ========================================================================

    def _generate_username(self, display_name: str) -> str:
        base = slugify(display_name) or "creator"
        if not self.repo.username_taken(self.db, base):
            return base
        return f"{base}-{unique_suffix()}"

    async def _create_transfer_recipient(self, creator: Creator) -> None:
        if not paystack_service.is_available():
            logger.warning("⚠️ Paystack not configured, skipping transfer recipient creation")
            return
        try:
            recipient = await paystack_service.create_transfer_recipient(
                name=creator.account_name,
                account_number=creator.account_number,
                bank_code=creator.bank_code,
            )
            creator.paystack_recipient_code = recipient.get("recipient_code")
        except PaystackError as e:
            # Creator can retry from the payout settings screen
            logger.error(f"❌ Failed to create transfer recipient for creator {creator.id}: {e.message}")

    async def onboard(self, user: User, data: OnboardingRequest) -> Creator:
        if self.repo.get_by_user_id(self.db, user.id):
            raise HTTPException(status_code=409, detail="Creator profile already exists")

        logger.info(f"📥 Onboarding creator for user_id: {user.id}")
        creator = Creator(
            user_id=user.id,
            username=self._generate_username(data.display_name),
            display_name=data.display_name.strip(),
            bio=data.bio,
            category=data.category,
            instagram_handle=data.instagram_handle,
            tiktok_handle=data.tiktok_handle,
            bank_code=data.bank_code,
            account_number=data.account_number,
            account_name=data.account_name,
            platform_plan=data.platform_plan,
            platform_subscription_ends_at=datetime.utcnow() + timedelta(days=PLATFORM_TRIAL_DAYS),
            current_balance=0,
            total_earnings=0,
        )
        self.db.add(creator)
        self.db.flush()

        self.db.add(
            CreatorPlan(
                creator_id=creator.id,
                name=data.plan_name,
                price=to_kobo(data.plan_price),
                description=data.plan_description,
                features=data.plan_features,
                is_active=True,
                order_index=0,
            )
        )
        user.is_creator = True

        await self._create_transfer_recipient(creator)

        self.db.commit()
        self.db.refresh(creator)
        invalidate_discovery_cache()
        logger.info(f"✅ Creator onboarded: {creator.username}")
        return creator

    def get_me(self, user: User) -> Creator:
        creator = self.repo.get_by_user_id(self.db, user.id)
        if not creator:
            raise HTTPException(status_code=404, detail="Creator profile not found")
        return creator

    def update_profile(self, creator: Creator, data: CreatorUpdate) -> Creator:
        creator = self.repo.update(self.db, creator, **data.model_dump(exclude_unset=True))
        invalidate_discovery_cache()
        return creator

    def set_intro_video(self, creator: Creator, content_id: Optional[int]) -> Creator:
        if content_id is not None:
            content = (
                self.db.query(Content)
                .filter(Content.id == content_id, Content.creator_id == creator.id)
                .first()
            )
            if not content:
                raise HTTPException(status_code=404, detail="Content not found")
            if content.type != "video":
                raise HTTPException(status_code=400, detail="Intro must be a video")
        creator.intro_video_id = content_id
        self.db.commit()
        self.db.refresh(creator)
        return creator

    # ========================================================================
    # PUBLIC PROFILE & DISCOVERY
    # ========================================================================

    def get_public_profile(self, username: str) -> dict:
        creator = self.repo.get_by_username(self.db, username)
        if not creator or not creator.is_public:
            raise HTTPException(status_code=404, detail="Creator not found")

        published = (
            self.db.query(Content)
            .filter(Content.creator_id == creator.id, Content.is_published.is_(True))
            .order_by(Content.published_at.desc(), Content.id.desc())
            .all()
        )
        price_list = PriceListRepository.get_items(self.db, creator.id, active_only=True)

        return {
            "creator": creator,
            "plans": self.repo.get_plans(self.db, creator.id, active_only=True),
            "links": self.repo.get_links(self.db, creator.id, active_only=True),
            "contents": [
                {
                    "id": c.id,
                    "title": c.title,
                    "type": c.type,
                    "access_type": c.access_type,
                    "thumbnail_url": c.thumbnail_url,
                    "content_category": c.content_category,
                    "published_at": c.published_at,
                }
                for c in published
            ],
            "price_list": price_list,
        }

    def discover(
        self, category: Optional[str] = None, search: Optional[str] = None, page: int = 1, limit: int = 20
    ) -> dict:
        page = max(page, 1)
        limit = min(max(limit, 1), MAX_PAGE_SIZE)
        search = search.strip() if search else None

        cache_key = build_discovery_key(category, search, page, limit)
        cached = cache.get(cache_key)
        if cached is not None:
            return cached

        creators, total = self.repo.search_public(
            self.db, category, search, offset=(page - 1) * limit, limit=limit
        )
        result = {
            "creators": [
                {
                    "id": c.id,
                    "username": c.username,
                    "display_name": c.display_name,
                    "bio": c.bio,
                    "category": c.category,
                    "avatar_url": c.avatar_url,
                    "subscriber_count": c.subscriber_count,
                    "content_count": c.content_count,
                    "cheapest_plan": plan_summary(self.repo.cheapest_active_plan(self.db, c.id)),
                    "recent_videos": [video_summary(v) for v in self.repo.recent_videos(self.db, c.id)],
                }
                for c in creators
            ],
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "pages": math.ceil(total / limit) if total else 0,
            },
        }
        cache.set(cache_key, result, DISCOVERY_CACHE_TTL)
        return result

    # ========================================================================
    # PLANS
    # ========================================================================

    def list_plans(self, creator: Creator) -> list[CreatorPlan]:
        return self.repo.get_plans(self.db, creator.id)

    def create_plan(self, creator: Creator, data: PlanCreate) -> CreatorPlan:
        plan = CreatorPlan(
            creator_id=creator.id,
            name=data.name,
            price=to_kobo(data.price),
            description=data.description,
            features=data.features,
            order_index=data.order_index,
            is_active=True,
        )
        self.db.add(plan)
        self.db.commit()
        self.db.refresh(plan)
        return plan

    def update_plan(self, creator: Creator, plan_id: int, data: PlanUpdate) -> CreatorPlan:
        plan = self.repo.get_plan(self.db, plan_id, creator.id)
        if not plan:
            raise HTTPException(status_code=404, detail="Plan not found")
        updates = data.model_dump(exclude_unset=True)
        if updates.get("price") is not None:
            updates["price"] = to_kobo(updates["price"])
        return self.repo.update(self.db, plan, **updates)

    # ========================================================================
    # LINKS
    # ========================================================================

    def list_links(self, creator: Creator) -> list[CreatorLink]:
        return self.repo.get_links(self.db, creator.id)

    def create_link(self, creator: Creator, data: LinkCreate) -> CreatorLink:
        link = CreatorLink(creator_id=creator.id, **data.model_dump())
        self.db.add(link)
        self.db.commit()
        self.db.refresh(link)
        return link

    def _get_link(self, creator: Creator, link_id: int) -> CreatorLink:
        link = self.repo.get_link(self.db, link_id, creator.id)
        if not link:
            raise HTTPException(status_code=404, detail="Link not found")
        return link

    def update_link(self, creator: Creator, link_id: int, data: LinkUpdate) -> CreatorLink:
        link = self._get_link(creator, link_id)
        return self.repo.update(self.db, link, **data.model_dump(exclude_unset=True))

    def delete_link(self, creator: Creator, link_id: int) -> dict:
        link = self._get_link(creator, link_id)
        self.db.delete(link)
        self.db.commit()
        return {"message": "Link deleted"}

    def track_link_click(self, link_id: int) -> CreatorLink:
        link = self.repo.get_link(self.db, link_id)
        if not link or not link.is_active:
            raise HTTPException(status_code=404, detail="Link not found")
        link.click_count = CreatorLink.click_count + 1
        self.db.commit()
        self.db.refresh(link)
        return link
