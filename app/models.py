import uuid

from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


def generate_public_id():
    """Generate a unique public ID for jobs and webhook events"""
    return str(uuid.uuid4())


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    firebase_uid = Column(String(255), unique=True, index=True, nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    full_name = Column(String(255), nullable=True)
    is_creator = Column(Boolean, default=False, nullable=False)
    is_admin = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    creator = relationship("Creator", back_populates="user", uselist=False)
    subscriptions = relationship("FanSubscription", back_populates="fan")


class Creator(Base):
    __tablename__ = "creators"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False)
    username = Column(String(100), unique=True, index=True, nullable=False)
    display_name = Column(String(255), nullable=False)
    bio = Column(Text, nullable=True)
    category = Column(String(50), default="makeup", nullable=False, index=True)
    avatar_url = Column(String(500), nullable=True)
    banner_url = Column(String(500), nullable=True)
    instagram_handle = Column(String(100), nullable=True)
    tiktok_handle = Column(String(100), nullable=True)
    is_public = Column(Boolean, default=True, nullable=False)

    # Settlement details; the account number never leaves the backend
    bank_code = Column(String(20), nullable=True)
    account_number = Column(String(20), nullable=True)
    account_name = Column(String(255), nullable=True)
    paystack_recipient_code = Column(String(100), nullable=True)
    paystack_subaccount_code = Column(String(100), nullable=True)

    # Money in kobo
    current_balance = Column(BigInteger, default=0, nullable=False)
    total_earnings = Column(BigInteger, default=0, nullable=False)

    subscriber_count = Column(Integer, default=0, nullable=False)
    content_count = Column(Integer, default=0, nullable=False)
    platform_plan = Column(String(20), default="starter", nullable=False)  # starter, pro, premium
    platform_subscription_ends_at = Column(DateTime, nullable=True)
    intro_video_id = Column(Integer, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="creator")
    plans = relationship("CreatorPlan", back_populates="creator", order_by="CreatorPlan.order_index")
    links = relationship("CreatorLink", back_populates="creator", order_by="CreatorLink.order_index")
    price_list = relationship("PriceListItem", back_populates="creator")
    availability = relationship("CreatorAvailability", back_populates="creator")
    bookings = relationship("Booking", back_populates="creator")
    contents = relationship("Content", back_populates="creator")
    collections = relationship("Collection", back_populates="creator")
    payouts = relationship("Payout", back_populates="creator")

    @property
    def has_bank_account(self) -> bool:
        return bool(self.paystack_recipient_code)


class CreatorPlan(Base):
    __tablename__ = "creator_plans"

    id = Column(Integer, primary_key=True, index=True)
    creator_id = Column(Integer, ForeignKey("creators.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    price = Column(BigInteger, nullable=False)  # kobo per month
    description = Column(Text, nullable=True)
    features = Column(JSON, default=list)
    is_active = Column(Boolean, default=True, nullable=False)
    order_index = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    creator = relationship("Creator", back_populates="plans")


class CreatorLink(Base):
    __tablename__ = "creator_links"

    id = Column(Integer, primary_key=True, index=True)
    creator_id = Column(Integer, ForeignKey("creators.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    url = Column(String(1000), nullable=False)
    order_index = Column(Integer, default=0, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    click_count = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    creator = relationship("Creator", back_populates="links")


class PriceListItem(Base):
    __tablename__ = "price_list_items"

    id = Column(Integer, primary_key=True, index=True)
    creator_id = Column(Integer, ForeignKey("creators.id", ondelete="CASCADE"), nullable=False, index=True)
    category = Column(String(100), nullable=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    price = Column(BigInteger, nullable=False)  # kobo
    duration_minutes = Column(Integer, nullable=True)
    order_index = Column(Integer, default=0, nullable=False)
    category_order_index = Column(Integer, default=0, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    creator = relationship("Creator", back_populates="price_list")


class CreatorAvailability(Base):
    __tablename__ = "creator_availability"
    __table_args__ = (UniqueConstraint("creator_id", "date", name="uq_creator_availability_date"),)

    id = Column(Integer, primary_key=True, index=True)
    creator_id = Column(Integer, ForeignKey("creators.id", ondelete="CASCADE"), nullable=False, index=True)
    date = Column(Date, nullable=False, index=True)
    is_available = Column(Boolean, default=True, nullable=False)
    max_bookings = Column(Integer, nullable=True)  # None = unlimited
    created_at = Column(DateTime, server_default=func.now())

    creator = relationship("Creator", back_populates="availability")


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    creator_id = Column(Integer, ForeignKey("creators.id"), nullable=False, index=True)
    price_list_item_id = Column(Integer, ForeignKey("price_list_items.id"), nullable=False)
    customer_email = Column(String(255), nullable=False, index=True)
    customer_name = Column(String(255), nullable=False)
    customer_phone = Column(String(50), nullable=False)
    customer_address = Column(Text, nullable=False)
    booking_date = Column(Date, nullable=False, index=True)
    notes = Column(Text, nullable=True)

    # Escrow split, all kobo
    total_amount = Column(BigInteger, nullable=False)
    platform_fee = Column(BigInteger, nullable=False)
    first_payout_amount = Column(BigInteger, nullable=False)
    second_payout_amount = Column(BigInteger, nullable=False)

    status = Column(String(30), default="pending", nullable=False, index=True)
    tracking_token = Column(String(64), unique=True, index=True, nullable=False)
    payment_reference = Column(String(255), nullable=True, index=True)
    first_payout_transaction_id = Column(String(255), nullable=True)
    second_payout_transaction_id = Column(String(255), nullable=True)
    refund_transaction_id = Column(String(255), nullable=True)
    dispute_reason = Column(Text, nullable=True)
    dispute_status = Column(String(20), nullable=True)  # pending, approved, rejected
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    creator = relationship("Creator", back_populates="bookings")
    price_list_item = relationship("PriceListItem")


class Content(Base):
    __tablename__ = "contents"

    id = Column(Integer, primary_key=True, index=True)
    creator_id = Column(Integer, ForeignKey("creators.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    type = Column(String(20), nullable=False)  # video, image, pdf, text
    access_type = Column(String(20), default="free", nullable=False)  # free, subscription, one_time
    required_plan_id = Column(Integer, ForeignKey("creator_plans.id"), nullable=True)
    tags = Column(JSON, default=list)
    is_published = Column(Boolean, default=False, nullable=False)
    published_at = Column(DateTime, nullable=True)
    video_id = Column(String(255), nullable=True)  # Mux playback id
    media_key = Column(String(500), nullable=True)  # R2 object key
    thumbnail_url = Column(String(500), nullable=True)
    content_category = Column(String(20), default="content", nullable=False)  # content, tutorial
    collection_id = Column(Integer, ForeignKey("collections.id", ondelete="SET NULL"), nullable=True)
    tutorial_price = Column(BigInteger, nullable=True)  # kobo
    view_count = Column(Integer, default=0, nullable=False)
    processing_status = Column(String(20), nullable=True)  # pending, processing, completed, failed
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    creator = relationship("Creator", back_populates="contents")


class Collection(Base):
    __tablename__ = "collections"

    id = Column(Integer, primary_key=True, index=True)
    creator_id = Column(Integer, ForeignKey("creators.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    thumbnail_url = Column(String(500), nullable=True)
    access_type = Column(String(20), default="free", nullable=False)
    price = Column(BigInteger, nullable=True)  # kobo, one-time access
    subscription_price = Column(BigInteger, nullable=True)  # kobo per month
    subscription_type = Column(String(20), default="one_time", nullable=False)  # one_time, recurring
    tags = Column(JSON, default=list)
    is_published = Column(Boolean, default=False, nullable=False)
    published_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    creator = relationship("Creator", back_populates="collections")
    sections = relationship(
        "Section",
        back_populates="collection",
        order_by="Section.order_index",
        cascade="all, delete-orphan",
    )


class Section(Base):
    __tablename__ = "sections"

    id = Column(Integer, primary_key=True, index=True)
    collection_id = Column(Integer, ForeignKey("collections.id", ondelete="CASCADE"), nullable=False, index=True)
    parent_section_id = Column(Integer, ForeignKey("sections.id", ondelete="CASCADE"), nullable=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    order_index = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    collection = relationship("Collection", back_populates="sections")
    contents = relationship(
        "SectionContent",
        back_populates="section",
        order_by="SectionContent.order_index",
        cascade="all, delete-orphan",
    )


class SectionContent(Base):
    __tablename__ = "section_contents"
    __table_args__ = (UniqueConstraint("section_id", "content_id", name="uq_section_content"),)

    id = Column(Integer, primary_key=True, index=True)
    section_id = Column(Integer, ForeignKey("sections.id", ondelete="CASCADE"), nullable=False, index=True)
    content_id = Column(Integer, ForeignKey("contents.id", ondelete="CASCADE"), nullable=False)
    order_index = Column(Integer, default=0, nullable=False)

    section = relationship("Section", back_populates="contents")
    content = relationship("Content")


class Transaction(Base):
    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, index=True)
    reference = Column(String(255), unique=True, index=True, nullable=False)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    creator_id = Column(Integer, ForeignKey("creators.id"), nullable=True, index=True)
    email = Column(String(255), nullable=True)
    amount = Column(BigInteger, nullable=False)  # kobo
    fee_amount = Column(BigInteger, default=0, nullable=False)
    net_amount = Column(BigInteger, default=0, nullable=False)
    status = Column(String(20), default="pending", nullable=False, index=True)  # pending, success, failed
    # subscription, one_time, booking, collection_subscription, tutorial_purchase
    type = Column(String(40), nullable=False)
    payment_metadata = Column("metadata", JSON, default=dict)
    gateway_response = Column(JSON, nullable=True)
    completed_at = Column(DateTime, nullable=True)
    # Set once the purchase is delivered (subscription, access, credit)
    fulfilled_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())


class FanSubscription(Base):
    __tablename__ = "fan_subscriptions"

    id = Column(Integer, primary_key=True, index=True)
    fan_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    creator_id = Column(Integer, ForeignKey("creators.id"), nullable=False, index=True)
    plan_id = Column(Integer, ForeignKey("creator_plans.id"), nullable=True)
    status = Column(String(20), default="active", nullable=False)  # active, past_due, cancelled, expired
    paystack_subscription_code = Column(String(255), nullable=True, index=True)
    paystack_authorization_code = Column(String(255), nullable=True)
    current_period_start = Column(DateTime, nullable=False)
    current_period_end = Column(DateTime, nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    fan = relationship("User", back_populates="subscriptions")


class CollectionSubscription(Base):
    __tablename__ = "collection_subscriptions"

    id = Column(Integer, primary_key=True, index=True)
    collection_id = Column(Integer, ForeignKey("collections.id", ondelete="CASCADE"), nullable=False, index=True)
    email = Column(String(255), nullable=False, index=True)
    subscription_type = Column(String(20), nullable=False)
    payment_reference = Column(String(255), nullable=False)
    transaction_id = Column(Integer, ForeignKey("transactions.id"), nullable=True)
    status = Column(String(20), default="active", nullable=False)
    expires_at = Column(DateTime, nullable=True)  # None = lifetime access
    created_at = Column(DateTime, server_default=func.now())


class TutorialPurchase(Base):
    __tablename__ = "tutorial_purchases"

    id = Column(Integer, primary_key=True, index=True)
    content_id = Column(Integer, ForeignKey("contents.id", ondelete="CASCADE"), nullable=False, index=True)
    email = Column(String(255), nullable=False, index=True)
    payment_reference = Column(String(255), nullable=False)
    transaction_id = Column(Integer, ForeignKey("transactions.id"), nullable=True)
    created_at = Column(DateTime, server_default=func.now())


class Payout(Base):
    __tablename__ = "payouts"

    id = Column(Integer, primary_key=True, index=True)
    creator_id = Column(Integer, ForeignKey("creators.id"), nullable=False, index=True)
    amount = Column(BigInteger, nullable=False)  # kobo
    status = Column(String(20), default="processing", nullable=False)  # processing, success, failed
    paystack_transfer_code = Column(String(255), unique=True, nullable=True, index=True)
    reason = Column(String(255), nullable=True)
    failure_reason = Column(Text, nullable=True)
    processed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    creator = relationship("Creator", back_populates="payouts")


class WebhookEvent(Base):
    """Ledger of received gateway webhooks; rows with status 'dead' form the dead-letter store."""

    __tablename__ = "webhook_events"

    id = Column(Integer, primary_key=True, index=True)
    webhook_id = Column(String(255), unique=True, index=True, nullable=False)
    event = Column(String(100), nullable=False, index=True)
    payload = Column(JSON, nullable=False)
    status = Column(String(20), default="queued", nullable=False, index=True)  # queued, processed, failed, dead
    attempts = Column(Integer, default=0, nullable=False)
    max_attempts = Column(Integer, default=3, nullable=False)
    last_error = Column(Text, nullable=True)
    received_at = Column(DateTime, server_default=func.now())
    processed_at = Column(DateTime, nullable=True)
    failed_at = Column(DateTime, nullable=True)
    retried_at = Column(DateTime, nullable=True)
    retried_by = Column(String(255), nullable=True)


class MediaJob(Base):
    __tablename__ = "media_jobs"

    id = Column(Integer, primary_key=True, index=True)
    job_id = Column(String(36), unique=True, index=True, default=generate_public_id, nullable=False)
    type = Column(String(20), nullable=False)  # video, image
    file_key = Column(String(500), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    content_id = Column(Integer, ForeignKey("contents.id", ondelete="SET NULL"), nullable=True)
    status = Column(String(20), default="pending", nullable=False, index=True)
    error = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    completed_at = Column(DateTime, nullable=True)
