"""Content router"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_creator
from ...database import get_db
from ...models import Creator
from .schemas import ContentCreate, ContentResponse, ContentUpdate
from .service import ContentService

router = APIRouter(prefix="/content", tags=["Content"])


def get_content_service(db: Session = Depends(get_db)) -> ContentService:
    return ContentService(db)


@router.get("", response_model=list[ContentResponse])
async def list_content(
    content_category: Optional[str] = Query(None),
    published: Optional[bool] = Query(None),
    creator: Creator = Depends(get_current_creator),
    service: ContentService = Depends(get_content_service),
):
    return service.list_content(creator, content_category, published)


@router.post("", response_model=ContentResponse, status_code=201)
async def create_content(
    data: ContentCreate,
    creator: Creator = Depends(get_current_creator),
    service: ContentService = Depends(get_content_service),
):
    return service.create_content(creator, data)


@router.get("/{content_id}", response_model=ContentResponse)
async def get_content(
    content_id: int,
    creator: Creator = Depends(get_current_creator),
    service: ContentService = Depends(get_content_service),
):
    return service.get_content(creator, content_id)


@router.patch("/{content_id}", response_model=ContentResponse)
async def update_content(
    content_id: int,
    data: ContentUpdate,
    creator: Creator = Depends(get_current_creator),
    service: ContentService = Depends(get_content_service),
):
    return service.update_content(creator, content_id, data)


@router.delete("/{content_id}")
async def delete_content(
    content_id: int,
    creator: Creator = Depends(get_current_creator),
    service: ContentService = Depends(get_content_service),
):
    return service.delete_content(creator, content_id)
