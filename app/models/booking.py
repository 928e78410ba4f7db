from sqlalchemy import String, Integer, Float, DateTime, Boolean, Text, JSON
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime, timezone
from app.db.session import Base
from app.domain.status import BookingStatus

class Booking(Base):
    __tablename__ = "bookings"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)

    vehicle_id: Mapped[str] = mapped_column(String(36), index=True)
    # unique: a bid converts into exactly one booking
    bid_id: Mapped[str | None] = mapped_column(String(36), unique=True, nullable=True)
    vehicle_title: Mapped[str] = mapped_column(String(200), default="")
    vehicle_base_price: Mapped[float] = mapped_column(Float, default=0)
    vehicle_base_price_outstation: Mapped[float] = mapped_column(Float, default=0)
    vehicle_images: Mapped[list] = mapped_column(JSON, default=list)

    renter_id: Mapped[str] = mapped_column(String(36), index=True)
    renter_name: Mapped[str] = mapped_column(String(200))
    renter_email: Mapped[str] = mapped_column(String(320))
    renter_phone: Mapped[str] = mapped_column(String(30), default="")

    seller_id: Mapped[str] = mapped_column(String(36), index=True)
    seller_name: Mapped[str] = mapped_column(String(200))
    seller_email: Mapped[str] = mapped_column(String(320))
    seller_phone: Mapped[str] = mapped_column(String(30), default="")

    booking_start_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)
    booking_end_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)
    is_outstation: Mapped[bool] = mapped_column(Boolean, default=False)

    price_per_day: Mapped[float] = mapped_column(Float)
    total_price: Mapped[float] = mapped_column(Float)

    status: Mapped[str] = mapped_column(String(20), default=BookingStatus.PENDING.value, index=True)
    payment_status: Mapped[str] = mapped_column(String(20), default="pending")  # pending, paid, refunded, failed

    initial_odometer_reading: Mapped[int] = mapped_column(Integer, nullable=True)
    final_odometer_reading: Mapped[int] = mapped_column(Integer, nullable=True)
    trip_start_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=True)
    trip_end_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=True)
    extra_charges: Mapped[float] = mapped_column(Float, default=0)
    total_km: Mapped[int] = mapped_column(Integer, nullable=True)

    cancellation_reason: Mapped[str] = mapped_column(String(500), nullable=True)
    cancellation_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=True)
    completion_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=True)

    review_rating: Mapped[int] = mapped_column(Integer, nullable=True)  # 1..5
    review_comment: Mapped[str] = mapped_column(Text, nullable=True)
    review_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
