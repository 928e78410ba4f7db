import math
from dataclasses import dataclass
from datetime import datetime, timedelta

from app.core.config import settings
from app.core.errors import InvalidArgument

ONE_DAY = timedelta(days=1)


@dataclass(frozen=True)
class Fare:
    days: int
    base_total: float
    km_driven: int
    allowed_km: int
    excess_km: int
    extra_charges: float
    final_total: float


def rental_days(start: datetime, end: datetime) -> int:
    """Both ends inclusive: a same-day rental is one day, start+2d is three."""
    return math.ceil((end - start) / ONE_DAY) + 1


def compute_fare(
    start: datetime,
    end: datetime,
    rate_per_day: float,
    initial_odometer: int,
    final_odometer: int,
    free_km_per_day: int | None = None,
    extra_km_rate: float | None = None,
) -> Fare:
    if final_odometer < initial_odometer:
        raise InvalidArgument("Final odometer reading cannot be less than the initial reading")
    if free_km_per_day is None:
        free_km_per_day = settings.FREE_KM_PER_DAY
    if extra_km_rate is None:
        extra_km_rate = settings.EXTRA_KM_RATE

    days = rental_days(start, end)
    base_total = rate_per_day * days
    km_driven = final_odometer - initial_odometer
    allowed_km = free_km_per_day * days
    excess_km = max(0, km_driven - allowed_km)
    extra = excess_km * extra_km_rate
    return Fare(
        days=days,
        base_total=base_total,
        km_driven=km_driven,
        allowed_km=allowed_km,
        excess_km=excess_km,
        extra_charges=extra,
        final_total=base_total + extra,
    )
