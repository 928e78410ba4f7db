from sqlalchemy import String, Float, DateTime, JSON
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime, timezone
from app.db.session import Base

class Vehicle(Base):
    """Catalog entry. Owned by the vehicle service; the bid core only reads it."""
    __tablename__ = "vehicles"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    owner_id: Mapped[str] = mapped_column(String(36), index=True)
    title: Mapped[str] = mapped_column(String(200))

    base_price: Mapped[float] = mapped_column(Float)                              # per day, local
    base_price_outstation: Mapped[float | None] = mapped_column(Float, nullable=True)
    images: Mapped[list] = mapped_column(JSON, default=list)

    status: Mapped[str] = mapped_column(String(20), default="available", index=True)  # available, unavailable, maintenance, deleted
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
