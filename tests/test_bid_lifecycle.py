from datetime import timedelta

import pytest

from app.core.clock import as_utc
from app.core.errors import Forbidden, InvalidStateTransition, PolicyViolation
from app.models.audit_log import AuditLog
from app.services.bid_store import BidStore

from conftest import auth, make_user


def test_seller_accepts_bid(client, db, stored_bid, seller):
    resp = client.post(
        f"/api/v1/bids/{stored_bid.id}/respond",
        json={"response": "accepted", "responseMessage": "See you Monday"},
        headers=auth(seller),
    )

    assert resp.status_code == 200
    body = resp.json()
    assert body["message"] == "Bid accepted successfully"
    assert body["data"]["bid_status"] == "accepted"
    assert body["data"]["response_message"] == "See you Monday"
    assert body["data"]["response_date"] is not None
    assert db.query(AuditLog).filter(AuditLog.action == "bid.respond").count() == 1


def test_respond_rejects_unknown_response(client, stored_bid, seller):
    resp = client.post(f"/api/v1/bids/{stored_bid.id}/respond", json={"response": "maybe"}, headers=auth(seller))
    assert resp.status_code == 400
    assert resp.json()["error"] == "InvalidArgument"


def test_respond_requires_seller_role(client, stored_bid, renter):
    resp = client.post(f"/api/v1/bids/{stored_bid.id}/respond", json={"response": "accepted"}, headers=auth(renter))
    assert resp.status_code == 403


def test_other_seller_cannot_respond(client, db, stored_bid):
    other = make_user(db, "other-seller@example.com", role="seller")
    resp = client.post(f"/api/v1/bids/{stored_bid.id}/respond", json={"response": "accepted"}, headers=auth(other))
    assert resp.status_code == 403
    assert resp.json()["detail"] == "You are not authorized to respond to this bid"


def test_cannot_respond_twice(client, stored_bid, seller):
    client.post(f"/api/v1/bids/{stored_bid.id}/respond", json={"response": "rejected"}, headers=auth(seller))
    resp = client.post(f"/api/v1/bids/{stored_bid.id}/respond", json={"response": "accepted"}, headers=auth(seller))

    assert resp.status_code == 409
    assert resp.json() == {
        "success": False,
        "error": "InvalidStateTransition",
        "detail": "Bid is already rejected; cannot move to accepted",
    }


def test_cancel_inside_cutoff_is_refused(db, stored_bid, renter):
    start = as_utc(stored_bid.booking_start_date)

    with pytest.raises(PolicyViolation, match="within 24 hours"):
        BidStore(db).cancel(stored_bid.id, renter, now=start - timedelta(hours=10))

    db.refresh(stored_bid)
    assert stored_bid.status == "pending"


def test_cancel_outside_cutoff_expires_bid(db, stored_bid, renter):
    start = as_utc(stored_bid.booking_start_date)

    bid = BidStore(db).cancel(stored_bid.id, renter, now=start - timedelta(hours=30))

    assert bid.status == "expired"
    assert bid.response_message == "Cancelled by bidder"


def test_cancel_via_api(client, stored_bid, renter):
    resp = client.post(f"/api/v1/bids/{stored_bid.id}/cancel", headers=auth(renter))
    assert resp.status_code == 200
    assert resp.json()["data"]["bid_status"] == "expired"


def test_only_bidder_can_cancel(db, stored_bid, seller):
    with pytest.raises(Forbidden):
        BidStore(db).cancel(stored_bid.id, seller)


def test_cancelled_bid_cannot_be_accepted(db, stored_bid, renter, seller):
    store = BidStore(db)
    store.cancel(stored_bid.id, renter)
    with pytest.raises(InvalidStateTransition):
        store.respond(stored_bid.id, seller, "accepted")


def test_accepted_bid_cannot_be_cancelled(db, stored_bid, renter, seller):
    store = BidStore(db)
    store.respond(stored_bid.id, seller, "accepted")
    with pytest.raises(InvalidStateTransition):
        store.cancel(stored_bid.id, renter)
