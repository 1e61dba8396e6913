"""Collection schemas"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

from ...shared.validators import validate_email


class CollectionCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    thumbnail_url: Optional[str] = None
    access_type: Literal["free", "subscription", "one_time"] = "free"
    price: Optional[float] = Field(None, ge=0)  # naira
    subscription_price: Optional[float] = Field(None, ge=0)  # naira per month
    subscription_type: Literal["one_time", "recurring"] = "one_time"
    tags: list[str] = []
    is_published: bool = False


class CollectionUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    thumbnail_url: Optional[str] = None
    access_type: Optional[Literal["free", "subscription", "one_time"]] = None
    price: Optional[float] = Field(None, ge=0)
    subscription_price: Optional[float] = Field(None, ge=0)
    subscription_type: Optional[Literal["one_time", "recurring"]] = None
    tags: Optional[list[str]] = None
    is_published: Optional[bool] = None


class SectionCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    parent_section_id: Optional[int] = None
    order_index: int = 0


class SectionUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    order_index: Optional[int] = None


class SectionContentAdd(BaseModel):
    content_id: int
    order_index: int = 0


class BuyerRequest(BaseModel):
    email: str

    @field_validator("email")
    @classmethod
    def check_email(cls, v: str) -> str:
        return validate_email(v)


class SectionContentResponse(BaseModel):
    id: int
    content_id: int
    order_index: int

    class Config:
        from_attributes = True


class SectionResponse(BaseModel):
    id: int
    collection_id: int
    parent_section_id: Optional[int] = None
    title: str
    description: Optional[str] = None
    order_index: int
    contents: list[SectionContentResponse] = []

    class Config:
        from_attributes = True


class CollectionResponse(BaseModel):
    id: int
    creator_id: int
    title: str
    description: Optional[str] = None
    thumbnail_url: Optional[str] = None
    access_type: str
    price: Optional[int] = None
    subscription_price: Optional[int] = None
    subscription_type: str
    tags: list[str] = []
    is_published: bool
    published_at: Optional[datetime] = None
    sections: list[SectionResponse] = []

    class Config:
        from_attributes = True
