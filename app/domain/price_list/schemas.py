"""Price list schemas - bookable services offered by a creator"""

from typing import Optional

from pydantic import BaseModel, Field


class PriceListItemCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    price: float = Field(..., ge=0)  # naira
    category: Optional[str] = None
    description: Optional[str] = None
    duration_minutes: Optional[int] = Field(None, gt=0)
    order_index: int = 0
    category_order_index: int = 0


class PriceListItemUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    price: Optional[float] = Field(None, ge=0)
    category: Optional[str] = None
    description: Optional[str] = None
    duration_minutes: Optional[int] = Field(None, gt=0)
    order_index: Optional[int] = None
    category_order_index: Optional[int] = None
    is_active: Optional[bool] = None


class PriceListItemResponse(BaseModel):
    id: int
    category: Optional[str] = None
    name: str
    description: Optional[str] = None
    price: int  # kobo
    duration_minutes: Optional[int] = None
    order_index: int
    category_order_index: int
    is_active: bool

    class Config:
        from_attributes = True


class PriceListCategory(BaseModel):
    category: Optional[str] = None
    items: list[PriceListItemResponse]
