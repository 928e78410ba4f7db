import uuid
from datetime import datetime, timezone
from types import SimpleNamespace

import pytest

from app.core.errors import InvalidArgument, PolicyViolation
from app.services.bid_validator import (
    check_bid_policy,
    floor_price,
    parse_datetime,
    validate_bid_request,
    validate_date_range,
    validate_id,
    validate_positive_number,
)

VEHICLE_ID = str(uuid.uuid4())


def _vehicle(**overrides):
    fields = dict(owner_id="owner-1", status="available", base_price=1000.0, base_price_outstation=1500.0)
    fields.update(overrides)
    return SimpleNamespace(**fields)


def _request(amount=1200, start="2030-01-10", end="2030-01-12", outstation=False, govt_id="DL-1"):
    return validate_bid_request(VEHICLE_ID, amount, start, end, outstation, govt_id)


def test_validate_id_normalizes_uuid():
    assert validate_id(VEHICLE_ID.upper()) == VEHICLE_ID


@pytest.mark.parametrize("value", ["", "abc", None, 42, "1234-5678"])
def test_validate_id_rejects_garbage(value):
    with pytest.raises(InvalidArgument, match="Invalid vehicle ID format"):
        validate_id(value, "vehicle ID")


@pytest.mark.parametrize("value", [0, -5, "nan", "inf", "abc", None, True])
def test_amount_must_be_positive_number(value):
    with pytest.raises(InvalidArgument, match="Bid amount must be a positive number"):
        validate_positive_number(value, "Bid amount")


def test_amount_accepts_numeric_strings():
    assert validate_positive_number("1200.50", "Bid amount") == 1200.5


def test_parse_datetime_treats_naive_as_utc():
    assert parse_datetime("2030-01-10T09:00:00") == datetime(2030, 1, 10, 9, tzinfo=timezone.utc)


def test_parse_datetime_converts_offsets_to_utc():
    assert parse_datetime("2030-01-10T09:00:00+05:30") == datetime(2030, 1, 10, 3, 30, tzinfo=timezone.utc)


def test_parse_datetime_accepts_trailing_z():
    assert parse_datetime("2030-10-25T09:00:00.000Z") == datetime(2030, 10, 25, 9, tzinfo=timezone.utc)


def test_date_range_accepts_browser_iso_strings():
    start, end = validate_date_range("2030-10-25T09:00:00.000Z", "2030-10-27T09:00:00.000Z")
    assert (end - start).days == 2


def test_parse_datetime_rejects_garbage():
    with pytest.raises(InvalidArgument, match="Invalid date format"):
        parse_datetime("next tuesday")


def test_date_range_requires_both_ends():
    with pytest.raises(InvalidArgument, match="Both start and end dates are required"):
        validate_date_range("2030-01-10", None)


def test_date_range_rejects_end_before_start():
    with pytest.raises(InvalidArgument, match="End date cannot be before start date"):
        validate_date_range("2030-01-10", "2030-01-09")


def test_same_day_range_is_allowed():
    start, end = validate_date_range("2030-01-10", "2030-01-10")
    assert start == end


def test_missing_govt_id_is_a_policy_violation():
    with pytest.raises(PolicyViolation, match="Government ID is required"):
        _request(govt_id="   ")


def test_valid_request_is_normalized():
    bid = _request(amount="1200", govt_id=" DL-1 ")
    assert bid.vehicle_id == VEHICLE_ID
    assert bid.amount == 1200.0
    assert bid.govt_id == "DL-1"
    assert bid.start.tzinfo is not None


def test_floor_price_uses_outstation_rate_when_set():
    assert floor_price(_vehicle(), True) == 1500.0
    assert floor_price(_vehicle(), False) == 1000.0


def test_floor_price_falls_back_to_base_price():
    assert floor_price(_vehicle(base_price_outstation=None), True) == 1000.0


def test_bid_below_floor_is_rejected():
    with pytest.raises(PolicyViolation, match="at least 1000"):
        check_bid_policy(_request(amount=900), _vehicle(), "bidder-1")


def test_bid_at_or_above_floor_passes():
    assert check_bid_policy(_request(amount=1200), _vehicle(), "bidder-1") == 1000.0
    assert check_bid_policy(_request(amount=1000), _vehicle(), "bidder-1") == 1000.0


def test_outstation_bid_checked_against_outstation_floor():
    with pytest.raises(PolicyViolation, match="at least 1500"):
        check_bid_policy(_request(amount=1200, outstation=True), _vehicle(), "bidder-1")


def test_unavailable_vehicle_cannot_be_bid_on():
    with pytest.raises(PolicyViolation, match="not available"):
        check_bid_policy(_request(), _vehicle(status="maintenance"), "bidder-1")


def test_owner_cannot_bid_on_own_vehicle():
    with pytest.raises(PolicyViolation, match="own vehicle"):
        check_bid_policy(_request(), _vehicle(), "owner-1")
