from datetime import datetime, timedelta, timezone

import pytest

from app.core.errors import InvalidArgument
from app.services.fare import compute_fare, rental_days

START = datetime(2030, 3, 1, 9, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    "end,days",
    [
        (START, 1),
        (START + timedelta(hours=5), 2),
        (START + timedelta(days=1), 2),
        (START + timedelta(days=2), 3),
        (START + timedelta(days=2, minutes=1), 4),
    ],
)
def test_rental_days_counts_both_ends(end, days):
    assert rental_days(START, end) == days


def test_excess_km_charged_over_daily_allowance():
    fare = compute_fare(START, START + timedelta(days=2), 1200, 10_000, 10_350,
                        free_km_per_day=100, extra_km_rate=10)
    assert fare.days == 3
    assert fare.km_driven == 350
    assert fare.allowed_km == 300
    assert fare.excess_km == 50
    assert fare.extra_charges == 500
    assert fare.base_total == 3600
    assert fare.final_total == 4100


def test_no_extra_charge_within_allowance():
    fare = compute_fare(START, START + timedelta(days=2), 1200, 10_000, 10_300,
                        free_km_per_day=100, extra_km_rate=10)
    assert fare.excess_km == 0
    assert fare.extra_charges == 0
    assert fare.final_total == 3600


def test_defaults_come_from_settings():
    fare = compute_fare(START, START, 1000, 0, 150)
    assert fare.allowed_km == 100
    assert fare.extra_charges == 500


def test_final_below_initial_is_rejected():
    with pytest.raises(InvalidArgument, match="cannot be less"):
        compute_fare(START, START, 1000, 10_000, 9_999)
