"""Content schemas"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field, model_validator

ContentType = Literal["video", "image", "pdf", "text"]
AccessType = Literal["free", "subscription", "one_time"]
ContentCategory = Literal["content", "tutorial"]


class ContentCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    type: ContentType
    access_type: AccessType = "free"
    required_plan_id: Optional[int] = None
    tags: list[str] = []
    is_published: bool = False
    video_id: Optional[str] = None
    media_key: Optional[str] = None
    thumbnail_url: Optional[str] = None
    content_category: ContentCategory = "content"
    collection_id: Optional[int] = None
    tutorial_price: Optional[float] = Field(None, ge=0)  # naira

    @model_validator(mode="after")
    def check_tutorial_price(self):
        if self.content_category == "tutorial" and self.access_type == "one_time" and not self.tutorial_price:
            raise ValueError("Paid tutorials need a tutorial_price")
        return self


class ContentUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    access_type: Optional[AccessType] = None
    required_plan_id: Optional[int] = None
    tags: Optional[list[str]] = None
    is_published: Optional[bool] = None
    video_id: Optional[str] = None
    media_key: Optional[str] = None
    thumbnail_url: Optional[str] = None
    content_category: Optional[ContentCategory] = None
    collection_id: Optional[int] = None
    tutorial_price: Optional[float] = Field(None, ge=0)


class ContentResponse(BaseModel):
    id: int
    creator_id: int
    title: str
    description: Optional[str] = None
    type: str
    access_type: str
    required_plan_id: Optional[int] = None
    tags: list[str] = []
    is_published: bool
    published_at: Optional[datetime] = None
    video_id: Optional[str] = None
    media_key: Optional[str] = None
    thumbnail_url: Optional[str] = None
    content_category: str
    collection_id: Optional[int] = None
    tutorial_price: Optional[int] = None
    view_count: int
    processing_status: Optional[str] = None

    class Config:
        from_attributes = True
