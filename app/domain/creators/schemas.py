"""Creator domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

from ...shared.validators import validate_account_number, validate_bvn

PlatformPlan = Literal["starter", "pro", "premium"]


class OnboardingRequest(BaseModel):
    """Profile, bank details and first subscription plan, submitted in one go"""

    display_name: str = Field(..., min_length=2, max_length=100)
    bio: Optional[str] = Field(None, max_length=1000)
    category: str = "makeup"
    instagram_handle: Optional[str] = None
    tiktok_handle: Optional[str] = None

    bank_code: str = Field(..., min_length=3)
    account_number: str
    account_name: str = Field(..., min_length=2)
    bvn: Optional[str] = None

    plan_name: str = Field(..., min_length=2)
    plan_price: float = Field(..., ge=1000)  # naira per month
    plan_description: Optional[str] = None
    plan_features: list[str] = []

    platform_plan: PlatformPlan = "starter"

    @field_validator("account_number")
    @classmethod
    def check_account_number(cls, v: str) -> str:
        return validate_account_number(v)

    @field_validator("bvn")
    @classmethod
    def check_bvn(cls, v: Optional[str]) -> Optional[str]:
        return validate_bvn(v)

    @field_validator("instagram_handle", "tiktok_handle")
    @classmethod
    def strip_at(cls, v: Optional[str]) -> Optional[str]:
        return v.lstrip("@").strip() or None if v else v


class CreatorUpdate(BaseModel):
    display_name: Optional[str] = Field(None, min_length=2, max_length=100)
    bio: Optional[str] = Field(None, max_length=1000)
    category: Optional[str] = None
    avatar_url: Optional[str] = None
    banner_url: Optional[str] = None
    instagram_handle: Optional[str] = None
    tiktok_handle: Optional[str] = None
    is_public: Optional[bool] = None


class IntroVideoRequest(BaseModel):
    content_id: Optional[int] = None  # None clears the intro video


class PlanCreate(BaseModel):
    name: str = Field(..., min_length=2)
    price: float = Field(..., ge=1000)  # naira per month
    description: Optional[str] = None
    features: list[str] = []
    order_index: int = 0


class PlanUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2)
    price: Optional[float] = Field(None, ge=1000)
    description: Optional[str] = None
    features: Optional[list[str]] = None
    is_active: Optional[bool] = None
    order_index: Optional[int] = None


class PlanResponse(BaseModel):
    id: int
    name: str
    price: int
    description: Optional[str] = None
    features: list[str] = []
    is_active: bool
    order_index: int

    class Config:
        from_attributes = True


class LinkCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    url: str = Field(..., min_length=4, max_length=1000)
    order_index: int = 0

    @field_validator("url")
    @classmethod
    def check_url(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            v = f"https://{v}"
        return v


class LinkUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    url: Optional[str] = None
    order_index: Optional[int] = None
    is_active: Optional[bool] = None


class LinkResponse(BaseModel):
    id: int
    title: str
    url: str
    order_index: int
    is_active: bool
    click_count: int

    class Config:
        from_attributes = True


class CreatorResponse(BaseModel):
    """Owner view of the creator profile"""

    id: int
    username: str
    display_name: str
    bio: Optional[str] = None
    category: str
    avatar_url: Optional[str] = None
    banner_url: Optional[str] = None
    instagram_handle: Optional[str] = None
    tiktok_handle: Optional[str] = None
    is_public: bool
    current_balance: int
    total_earnings: int
    subscriber_count: int
    content_count: int
    platform_plan: str
    platform_subscription_ends_at: Optional[datetime] = None
    intro_video_id: Optional[int] = None
    has_bank_account: bool = False

    class Config:
        from_attributes = True


class PublicCreatorResponse(BaseModel):
    id: int
    username: str
    display_name: str
    bio: Optional[str] = None
    category: str
    avatar_url: Optional[str] = None
    banner_url: Optional[str] = None
    instagram_handle: Optional[str] = None
    tiktok_handle: Optional[str] = None
    subscriber_count: int
    content_count: int

    class Config:
        from_attributes = True
