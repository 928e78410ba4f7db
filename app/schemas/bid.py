from pydantic import BaseModel
from typing import Optional

class BidCreate(BaseModel):
    # Loose types on purpose: the bid validator reports bad values as InvalidArgument.
    vehicleId: str = ""
    bidAmount: float | str | None = None
    bookingStartDate: Optional[str] = None
    bookingEndDate: Optional[str] = None
    isOutstation: bool = False
    bidMessage: str = ""
    govtId: str = ""
    submissionId: Optional[str] = None  # client idempotency key; generated when absent

class BidRespondIn(BaseModel):
    response: str
    responseMessage: str = ""
