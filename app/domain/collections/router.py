"""Collection router"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_creator
from ...database import get_db
from ...models import Creator
from ...rate_limiter import strict_rate_limit
from ..payments.schemas import InitializePaymentResponse
from .schemas import (
    BuyerRequest,
    CollectionCreate,
    CollectionResponse,
    CollectionUpdate,
    SectionContentAdd,
    SectionContentResponse,
    SectionCreate,
    SectionResponse,
    SectionUpdate,
)
from .service import CollectionService

router = APIRouter(prefix="/collections", tags=["Collections"])


def get_collection_service(db: Session = Depends(get_db)) -> CollectionService:
    return CollectionService(db)


# ============================================================================
# CREATOR MANAGEMENT
# ============================================================================


@router.get("", response_model=list[CollectionResponse])
async def list_collections(
    creator: Creator = Depends(get_current_creator),
    service: CollectionService = Depends(get_collection_service),
):
    return service.list_collections(creator)


@router.post("", response_model=CollectionResponse, status_code=201)
async def create_collection(
    data: CollectionCreate,
    creator: Creator = Depends(get_current_creator),
    service: CollectionService = Depends(get_collection_service),
):
    return service.create_collection(creator, data)


@router.get("/{collection_id}", response_model=CollectionResponse)
async def get_collection(
    collection_id: int,
    creator: Creator = Depends(get_current_creator),
    service: CollectionService = Depends(get_collection_service),
):
    return service.get_collection(creator, collection_id)


@router.patch("/{collection_id}", response_model=CollectionResponse)
async def update_collection(
    collection_id: int,
    data: CollectionUpdate,
    creator: Creator = Depends(get_current_creator),
    service: CollectionService = Depends(get_collection_service),
):
    return service.update_collection(creator, collection_id, data)


@router.delete("/{collection_id}")
async def delete_collection(
    collection_id: int,
    creator: Creator = Depends(get_current_creator),
    service: CollectionService = Depends(get_collection_service),
):
    return service.delete_collection(creator, collection_id)


@router.post("/{collection_id}/sections", response_model=SectionResponse, status_code=201)
async def add_section(
    collection_id: int,
    data: SectionCreate,
    creator: Creator = Depends(get_current_creator),
    service: CollectionService = Depends(get_collection_service),
):
    return service.add_section(creator, collection_id, data)


@router.patch("/{collection_id}/sections/{section_id}", response_model=SectionResponse)
async def update_section(
    collection_id: int,
    section_id: int,
    data: SectionUpdate,
    creator: Creator = Depends(get_current_creator),
    service: CollectionService = Depends(get_collection_service),
):
    return service.update_section(creator, collection_id, section_id, data)


@router.delete("/{collection_id}/sections/{section_id}")
async def delete_section(
    collection_id: int,
    section_id: int,
    creator: Creator = Depends(get_current_creator),
    service: CollectionService = Depends(get_collection_service),
):
    return service.delete_section(creator, collection_id, section_id)


@router.post(
    "/{collection_id}/sections/{section_id}/contents",
    response_model=SectionContentResponse,
    status_code=201,
)
async def add_content_to_section(
    collection_id: int,
    section_id: int,
    data: SectionContentAdd,
    creator: Creator = Depends(get_current_creator),
    service: CollectionService = Depends(get_collection_service),
):
    return service.add_content_to_section(creator, collection_id, section_id, data)


@router.delete("/{collection_id}/sections/{section_id}/contents/{content_id}")
async def remove_content_from_section(
    collection_id: int,
    section_id: int,
    content_id: int,
    creator: Creator = Depends(get_current_creator),
    service: CollectionService = Depends(get_collection_service),
):
    return service.remove_content_from_section(creator, collection_id, section_id, content_id)


# ============================================================================
# PUBLIC
# ============================================================================


@router.get("/public/{collection_id}", response_model=CollectionResponse)
async def public_collection(collection_id: int, service: CollectionService = Depends(get_collection_service)):
    return service.public_collection(collection_id)


@router.post("/public/{collection_id}/access")
async def check_collection_access(
    collection_id: int,
    data: BuyerRequest,
    service: CollectionService = Depends(get_collection_service),
):
    return {"has_access": service.has_collection_access(collection_id, data.email)}


@router.post(
    "/public/{collection_id}/subscribe",
    response_model=InitializePaymentResponse,
    dependencies=[Depends(strict_rate_limit)],
)
async def subscribe_to_collection(
    collection_id: int,
    data: BuyerRequest,
    service: CollectionService = Depends(get_collection_service),
):
    return await service.subscribe(collection_id, data.email)


@router.post("/tutorials/{content_id}/access")
async def check_tutorial_access(
    content_id: int,
    data: BuyerRequest,
    service: CollectionService = Depends(get_collection_service),
):
    return {"has_access": service.has_tutorial_access(content_id, data.email)}


@router.post(
    "/tutorials/{content_id}/purchase",
    response_model=InitializePaymentResponse,
    dependencies=[Depends(strict_rate_limit)],
)
async def purchase_tutorial(
    content_id: int,
    data: BuyerRequest,
    service: CollectionService = Depends(get_collection_service),
):
    return await service.purchase_tutorial(content_id, data.email)
