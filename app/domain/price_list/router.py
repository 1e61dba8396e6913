"""Price list router"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_creator
from ...database import get_db
from ...models import Creator
from .schemas import PriceListCategory, PriceListItemCreate, PriceListItemResponse, PriceListItemUpdate
from .service import PriceListService

router = APIRouter(prefix="/price-list", tags=["Price List"])


def get_price_list_service(db: Session = Depends(get_db)) -> PriceListService:
    return PriceListService(db)


@router.get("", response_model=list[PriceListItemResponse])
async def list_items(
    creator: Creator = Depends(get_current_creator),
    service: PriceListService = Depends(get_price_list_service),
):
    return service.list_items(creator)


@router.post("", response_model=PriceListItemResponse, status_code=201)
async def create_item(
    data: PriceListItemCreate,
    creator: Creator = Depends(get_current_creator),
    service: PriceListService = Depends(get_price_list_service),
):
    return service.create_item(creator, data)


@router.patch("/{item_id}", response_model=PriceListItemResponse)
async def update_item(
    item_id: int,
    data: PriceListItemUpdate,
    creator: Creator = Depends(get_current_creator),
    service: PriceListService = Depends(get_price_list_service),
):
    return service.update_item(creator, item_id, data)


@router.delete("/{item_id}")
async def delete_item(
    item_id: int,
    creator: Creator = Depends(get_current_creator),
    service: PriceListService = Depends(get_price_list_service),
):
    return service.delete_item(creator, item_id)


@router.get("/public/{creator_id}", response_model=list[PriceListCategory])
async def public_price_list(creator_id: int, service: PriceListService = Depends(get_price_list_service)):
    return service.public_price_list(creator_id)
