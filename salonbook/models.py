import uuid

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    Time,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


def generate_id():
    """Generate a UUID string primary key"""
    return str(uuid.uuid4())


class Salon(Base):
    __tablename__ = "salons"

    id = Column(String(36), primary_key=True, default=generate_id)
    owner_id = Column(String(128), index=True, nullable=False)  # Firebase uid of the owner
    name = Column(String(255), nullable=False)
    city = Column(String(120), nullable=True)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    # Recomputed from the full review set after every review change
    rating = Column(Integer, default=0, nullable=False)
    reviews_count = Column(Integer, default=0, nullable=False)
    # {"monday": {"open": "09:00", "close": "19:00", "isClosed": false}, ...}
    opening_hours = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    services = relationship("SalonService", back_populates="salon", cascade="all, delete-orphan")
    bookings = relationship("Booking", back_populates="salon")
    reviews = relationship("Review", back_populates="salon", cascade="all, delete-orphan")
    stripe_account = relationship("StripeAccount", back_populates="salon", uselist=False)
    promotions = relationship("Promotion", back_populates="salon", cascade="all, delete-orphan")


class SalonService(Base):
    __tablename__ = "services"

    id = Column(String(36), primary_key=True, default=generate_id)
    salon_id = Column(String(36), ForeignKey("salons.id"), index=True, nullable=False)
    name = Column(String(255), nullable=False)
    price = Column(Integer, nullable=False)  # cents
    duration_minutes = Column(Integer, default=60, nullable=False)

    salon = relationship("Salon", back_populates="services")


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(String(36), primary_key=True, default=generate_id)
    salon_id = Column(String(36), ForeignKey("salons.id"), index=True, nullable=False)
    service_id = Column(String(36), ForeignKey("services.id"), nullable=True)
    client_id = Column(String(128), index=True, nullable=False)
    coiffeur_id = Column(String(128), index=True, nullable=True)
    booking_date = Column(Date, index=True, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    status = Column(String(20), default="pending", nullable=False)  # pending, confirmed, completed, cancelled
    total_price = Column(Integer, nullable=False)  # cents
    payment_method = Column(String(20), default="deposit", nullable=False)  # full, deposit, on_site
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    salon = relationship("Salon", back_populates="bookings")
    service = relationship("SalonService")
    payments = relationship("Payment", back_populates="booking")


class Payment(Base):
    __tablename__ = "payments"

    id = Column(String(36), primary_key=True, default=generate_id)
    booking_id = Column(String(36), ForeignKey("bookings.id"), index=True, nullable=False)
    salon_id = Column(String(36), ForeignKey("salons.id"), index=True, nullable=False)
    client_id = Column(String(128), nullable=True)
    amount = Column(Integer, nullable=False)  # cents actually charged (deposit or full price)
    total_service_price = Column(Integer, nullable=False)
    remaining_amount = Column(Integer, default=0, nullable=False)  # paid on site
    commission = Column(Integer, default=0, nullable=False)
    salon_amount = Column(Integer, default=0, nullable=False)
    commission_rate = Column(Numeric(4, 2), nullable=False)
    currency = Column(String(3), default="eur", nullable=False)
    status = Column(String(20), default="pending", nullable=False)  # pending, processing, completed, failed, refunded
    payment_type = Column(String(20), default="deposit", nullable=False)  # deposit, full
    stripe_payment_intent_id = Column(String(255), unique=True, index=True, nullable=True)
    is_paid_out = Column(Boolean, default=False, nullable=False)
    paid_at = Column(DateTime(timezone=True), nullable=True)
    refunded_at = Column(DateTime(timezone=True), nullable=True)
    refund_reason = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    booking = relationship("Booking", back_populates="payments")


class StripeAccount(Base):
    __tablename__ = "stripe_accounts"

    id = Column(String(36), primary_key=True, default=generate_id)
    salon_id = Column(String(36), ForeignKey("salons.id"), unique=True, nullable=False)
    stripe_account_id = Column(String(255), unique=True, nullable=True)  # Connect account (acct_...)
    stripe_customer_id = Column(String(255), index=True, nullable=True)  # subscription billing (cus_...)
    stripe_subscription_id = Column(String(255), nullable=True)
    is_onboarded = Column(Boolean, default=False, nullable=False)
    charges_enabled = Column(Boolean, default=False, nullable=False)
    payouts_enabled = Column(Boolean, default=False, nullable=False)
    subscription_plan = Column(String(20), default="free", nullable=False)  # free, starter, pro, premium
    subscription_status = Column(String(20), nullable=True)  # active, cancelled, past_due, trialing
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    salon = relationship("Salon", back_populates="stripe_account")


class Review(Base):
    __tablename__ = "reviews"

    id = Column(String(36), primary_key=True, default=generate_id)
    salon_id = Column(String(36), ForeignKey("salons.id"), index=True, nullable=False)
    client_id = Column(String(128), index=True, nullable=False)
    booking_id = Column(String(36), ForeignKey("bookings.id"), nullable=True)
    rating = Column(Integer, nullable=False)  # 1-5
    comment = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    salon = relationship("Salon", back_populates="reviews")


class StylistDetails(Base):
    __tablename__ = "coiffeur_details"

    id = Column(String(36), primary_key=True, default=generate_id)
    user_id = Column(String(128), unique=True, index=True, nullable=False)
    offers_home_service = Column(Boolean, default=False, nullable=False)
    home_service_fee = Column(Integer, default=0, nullable=False)  # cents
    min_home_service_distance = Column(Float, nullable=True)
    max_home_service_distance = Column(Float, nullable=True)


class CoverageZone(Base):
    __tablename__ = "coverage_zones"

    id = Column(String(36), primary_key=True, default=generate_id)
    coiffeur_id = Column(String(128), index=True, nullable=False)
    city = Column(String(120), nullable=False)
    postal_code = Column(String(20), nullable=True)
    radius_km = Column(Float, default=10.0, nullable=False)
    additional_fee = Column(Integer, default=0, nullable=False)  # cents
    center_latitude = Column(Float, nullable=True)
    center_longitude = Column(Float, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class Promotion(Base):
    __tablename__ = "promotions"

    id = Column(String(36), primary_key=True, default=generate_id)
    salon_id = Column(String(36), ForeignKey("salons.id"), index=True, nullable=False)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    code = Column(String(50), index=True, nullable=True)  # stored uppercase
    type = Column(String(20), nullable=False)  # percentage, fixed_amount, free_service
    value = Column(Integer, nullable=False)  # whole percent for percentage, cents otherwise
    max_discount_amount = Column(Integer, nullable=True)  # cents
    min_purchase_amount = Column(Integer, default=0, nullable=False)  # cents
    start_date = Column(DateTime, nullable=False)  # UTC
    end_date = Column(DateTime, nullable=False)
    status = Column(String(20), default="active", nullable=False)  # active, paused, expired
    max_uses = Column(Integer, nullable=True)
    current_uses = Column(Integer, default=0, nullable=False)
    max_uses_per_user = Column(Integer, default=1, nullable=True)
    new_clients_only = Column(Boolean, default=False, nullable=False)
    first_booking_only = Column(Boolean, default=False, nullable=False)
    # Weekday numbers with Sunday = 0; null means every day
    valid_days = Column(JSON, nullable=True)
    applicable_service_ids = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    salon = relationship("Salon", back_populates="promotions")
    usages = relationship("PromotionUsage", back_populates="promotion", cascade="all, delete-orphan")


class PromotionUsage(Base):
    __tablename__ = "promotion_usages"

    id = Column(String(36), primary_key=True, default=generate_id)
    promotion_id = Column(String(36), ForeignKey("promotions.id"), index=True, nullable=False)
    user_id = Column(String(128), index=True, nullable=False)
    booking_id = Column(String(36), ForeignKey("bookings.id"), index=True, nullable=True)
    discount_applied = Column(Integer, nullable=False)  # cents
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    promotion = relationship("Promotion", back_populates="usages")
