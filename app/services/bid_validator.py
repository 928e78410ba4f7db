"""Pure checks on a bid request. No database or network access here."""
import math
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone

from app.core.errors import InvalidArgument, PolicyViolation

AVAILABLE = "available"


@dataclass(frozen=True)
class ValidatedBid:
    vehicle_id: str
    amount: float
    start: datetime
    end: datetime
    is_outstation: bool
    govt_id: str


def validate_id(value, field_name: str = "ID") -> str:
    try:
        return str(uuid.UUID(str(value)))
    except (ValueError, TypeError, AttributeError):
        raise InvalidArgument(f"Invalid {field_name} format")


def validate_positive_number(value, field_name: str) -> float:
    if isinstance(value, bool):
        raise InvalidArgument(f"{field_name} must be a positive number")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InvalidArgument(f"{field_name} must be a positive number")
    if math.isnan(number) or math.isinf(number) or number <= 0:
        raise InvalidArgument(f"{field_name} must be a positive number")
    return number


def parse_datetime(value) -> datetime:
    """ISO date or datetime -> aware UTC datetime. Naive input is taken as UTC."""
    if isinstance(value, datetime):
        dt = value
    else:
        text = str(value).strip()
        # JS toISOString() ends in "Z", which fromisoformat only accepts from 3.11
        if text[-1:] in ("Z", "z"):
            text = text[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(text)
        except ValueError:
            raise InvalidArgument("Invalid date format")
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def validate_date_range(start, end) -> tuple[datetime, datetime]:
    if not start or not end:
        raise InvalidArgument("Both start and end dates are required")
    start_dt, end_dt = parse_datetime(start), parse_datetime(end)
    if end_dt < start_dt:
        raise InvalidArgument("End date cannot be before start date")
    return start_dt, end_dt


def validate_bid_request(vehicle_id, amount, start, end, is_outstation=False, govt_id="") -> ValidatedBid:
    vid = validate_id(vehicle_id, "vehicle ID")
    value = validate_positive_number(amount, "Bid amount")
    start_dt, end_dt = validate_date_range(start, end)
    govt_id = (govt_id or "").strip()
    if not govt_id:
        raise PolicyViolation("Government ID is required")
    return ValidatedBid(
        vehicle_id=vid,
        amount=value,
        start=start_dt,
        end=end_dt,
        is_outstation=bool(is_outstation),
        govt_id=govt_id,
    )


def floor_price(vehicle, is_outstation: bool) -> float:
    """Outstation bids use the outstation price, falling back to the local base price."""
    if is_outstation and vehicle.base_price_outstation:
        return float(vehicle.base_price_outstation)
    return float(vehicle.base_price)


def check_bid_policy(bid: ValidatedBid, vehicle, bidder_id: str) -> float:
    if vehicle.status != AVAILABLE:
        raise PolicyViolation("Vehicle is not available for bidding")
    if vehicle.owner_id == bidder_id:
        raise PolicyViolation("You cannot bid on your own vehicle")
    minimum = floor_price(vehicle, bid.is_outstation)
    if bid.amount < minimum:
        raise PolicyViolation(f"Bid amount must be at least {minimum:g}")
    return minimum
