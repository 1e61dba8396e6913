"""Creator router - onboarding, profile, discovery, plans and links"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_creator, get_current_user
from ...database import get_db
from ...models import Creator, User
from ..price_list.schemas import PriceListItemResponse
from .schemas import (
    CreatorResponse,
    CreatorUpdate,
    IntroVideoRequest,
    LinkCreate,
    LinkResponse,
    LinkUpdate,
    OnboardingRequest,
    PlanCreate,
    PlanResponse,
    PlanUpdate,
    PublicCreatorResponse,
)
from .service import CreatorService

router = APIRouter(prefix="/creators", tags=["Creators"])


def get_creator_service(db: Session = Depends(get_db)) -> CreatorService:
    """Dependency injection for CreatorService"""
    return CreatorService(db)


# ============================================================================
# ONBOARDING & OWN PROFILE
# ============================================================================


@router.post("/onboarding", response_model=CreatorResponse, status_code=201)
async def onboard_creator(
    data: OnboardingRequest,
    current_user: User = Depends(get_current_user),
    service: CreatorService = Depends(get_creator_service),
):
    """Create the creator profile, bank details and first plan for the current user"""
    return await service.onboard(current_user, data)


@router.get("/me", response_model=CreatorResponse)
async def get_my_profile(
    current_user: User = Depends(get_current_user),
    service: CreatorService = Depends(get_creator_service),
):
    return service.get_me(current_user)


@router.patch("/me", response_model=CreatorResponse)
async def update_my_profile(
    data: CreatorUpdate,
    creator: Creator = Depends(get_current_creator),
    service: CreatorService = Depends(get_creator_service),
):
    return service.update_profile(creator, data)


@router.put("/me/intro-video", response_model=CreatorResponse)
async def set_intro_video(
    data: IntroVideoRequest,
    creator: Creator = Depends(get_current_creator),
    service: CreatorService = Depends(get_creator_service),
):
    return service.set_intro_video(creator, data.content_id)


# ============================================================================
# PLANS
# ============================================================================


@router.get("/me/plans", response_model=list[PlanResponse])
async def list_plans(
    creator: Creator = Depends(get_current_creator),
    service: CreatorService = Depends(get_creator_service),
):
    return service.list_plans(creator)


@router.post("/me/plans", response_model=PlanResponse, status_code=201)
async def create_plan(
    data: PlanCreate,
    creator: Creator = Depends(get_current_creator),
    service: CreatorService = Depends(get_creator_service),
):
    return service.create_plan(creator, data)


@router.patch("/me/plans/{plan_id}", response_model=PlanResponse)
async def update_plan(
    plan_id: int,
    data: PlanUpdate,
    creator: Creator = Depends(get_current_creator),
    service: CreatorService = Depends(get_creator_service),
):
    return service.update_plan(creator, plan_id, data)


# ============================================================================
# LINKS
# ============================================================================


@router.get("/me/links", response_model=list[LinkResponse])
async def list_links(
    creator: Creator = Depends(get_current_creator),
    service: CreatorService = Depends(get_creator_service),
):
    return service.list_links(creator)


@router.post("/me/links", response_model=LinkResponse, status_code=201)
async def create_link(
    data: LinkCreate,
    creator: Creator = Depends(get_current_creator),
    service: CreatorService = Depends(get_creator_service),
):
    return service.create_link(creator, data)


@router.patch("/me/links/{link_id}", response_model=LinkResponse)
async def update_link(
    link_id: int,
    data: LinkUpdate,
    creator: Creator = Depends(get_current_creator),
    service: CreatorService = Depends(get_creator_service),
):
    return service.update_link(creator, link_id, data)


@router.delete("/me/links/{link_id}")
async def delete_link(
    link_id: int,
    creator: Creator = Depends(get_current_creator),
    service: CreatorService = Depends(get_creator_service),
):
    return service.delete_link(creator, link_id)


@router.post("/links/{link_id}/click")
async def track_link_click(link_id: int, service: CreatorService = Depends(get_creator_service)):
    """Public: count a click and return the destination URL"""
    link = service.track_link_click(link_id)
    return {"url": link.url, "click_count": link.click_count}


# ============================================================================
# PUBLIC
# ============================================================================


@router.get("")
async def discover_creators(
    category: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=50),
    service: CreatorService = Depends(get_creator_service),
):
    """Public creators, most subscribed first"""
    return service.discover(category, search, page, limit)


@router.get("/{username}")
async def get_public_profile(username: str, service: CreatorService = Depends(get_creator_service)):
    profile = service.get_public_profile(username)
    return {
        "creator": PublicCreatorResponse.model_validate(profile["creator"]),
        "plans": [PlanResponse.model_validate(p) for p in profile["plans"]],
        "links": [LinkResponse.model_validate(link) for link in profile["links"]],
        "contents": profile["contents"],
        "price_list": [PriceListItemResponse.model_validate(i) for i in profile["price_list"]],
    }
