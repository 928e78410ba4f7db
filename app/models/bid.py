from sqlalchemy import String, Float, DateTime, Boolean, Text, JSON, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime, timezone
from app.db.session import Base
from app.domain.status import BidStatus

class Bid(Base):
    __tablename__ = "bids"
    __table_args__ = (UniqueConstraint("bidder_id", "submission_id", name="uq_bids_bidder_submission"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    # Idempotency key carried on the queue message, unique per bidder; redeliveries upsert on it.
    submission_id: Mapped[str] = mapped_column(String(64), index=True)

    vehicle_id: Mapped[str] = mapped_column(String(36), index=True)
    vehicle_title: Mapped[str] = mapped_column(String(200), default="")
    vehicle_base_price: Mapped[float] = mapped_column(Float, default=0)
    vehicle_base_price_outstation: Mapped[float] = mapped_column(Float, default=0)
    vehicle_images: Mapped[list] = mapped_column(JSON, default=list)

    bidder_id: Mapped[str] = mapped_column(String(36), index=True)
    bidder_name: Mapped[str] = mapped_column(String(200))
    bidder_email: Mapped[str] = mapped_column(String(320))
    bidder_govt_id: Mapped[str] = mapped_column(String(100))

    seller_id: Mapped[str] = mapped_column(String(36), index=True)
    seller_name: Mapped[str] = mapped_column(String(200))
    seller_email: Mapped[str] = mapped_column(String(320))
    seller_phone: Mapped[str] = mapped_column(String(30), default="")

    bid_amount: Mapped[float] = mapped_column(Float)
    bid_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    booking_start_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)
    booking_end_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)
    is_outstation: Mapped[bool] = mapped_column(Boolean, default=False)
    bid_message: Mapped[str] = mapped_column(Text, default="")

    status: Mapped[str] = mapped_column(String(20), default=BidStatus.PENDING.value, index=True)
    response_message: Mapped[str] = mapped_column(Text, default="")
    response_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
