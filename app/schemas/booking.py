from pydantic import BaseModel
from typing import Optional

class ReviewIn(BaseModel):
    rating: Optional[int] = None
    comment: str = ""

class BookingStatusIn(BaseModel):
    status: str
    initial_odometer: Optional[int] = None
    start_time: Optional[str] = None
    final_odometer: Optional[int] = None
    end_time: Optional[str] = None
    # Accepted for compatibility with older clients; charges are always computed from the odometer.
    extra_charges: Optional[float] = None
    cancellation_reason: Optional[str] = None
    review: Optional[ReviewIn] = None

class BookingCancelIn(BaseModel):
    cancellation_reason: str = ""

class BookingCompleteIn(BaseModel):
    final_odometer_reading: Optional[int] = None
    end_time: Optional[str] = None
    review: Optional[ReviewIn] = None
