import json

import pytest
from sqlalchemy.exc import OperationalError

from app.models.bid import Bid
from app.services.bid_consumer import consume_once
from app.services.bid_store import BidStore, to_document

from conftest import auth, make_user


def _place(client, renter, bid_payload):
    resp = client.post("/api/v1/bids", json=bid_payload, headers=auth(renter))
    assert resp.status_code == 201
    return resp.json()["data"]


def test_empty_queue(db, queue):
    assert consume_once(db, queue, wait_seconds=0) == {"received": 0}


def test_message_is_persisted_then_deleted(client, db, queue, renter, bid_payload):
    snapshot = _place(client, renter, bid_payload)

    result = consume_once(db, queue, wait_seconds=0)

    assert result == {"received": 1, "persisted": 1, "duplicate": 0, "bidId": snapshot["id"]}
    assert queue.messages == []
    bid = db.get(Bid, snapshot["id"])
    assert bid.status == "pending"
    assert bid.bid_amount == 1200
    assert bid.bidder_govt_id == "DL-0420110012345"
    assert bid.seller_phone == "+91 90000 00000"
    assert bid.vehicle_images == ["https://img.example.com/dzire.jpg"]


def test_stored_bid_reads_back_as_the_queued_snapshot(client, db, queue, renter, bid_payload):
    snapshot = _place(client, renter, bid_payload)
    consume_once(db, queue, wait_seconds=0)

    doc = to_document(db.get(Bid, snapshot["id"]))
    for key in ("id", "vehicle", "vehicle_details", "bidder", "seller", "bid_amount",
                "is_outstation", "bid_message", "bid_status"):
        assert doc[key] == snapshot[key], key
    assert doc["booking_start_date"] == snapshot["booking_start_date"]


def test_redelivery_is_deduplicated(client, db, queue, renter, bid_payload):
    snapshot = _place(client, renter, bid_payload)
    body = queue.messages[0].body
    consume_once(db, queue, wait_seconds=0)

    queue.push_raw(body)
    result = consume_once(db, queue, wait_seconds=0)

    assert result["persisted"] == 0
    assert result["duplicate"] == 1
    assert result["bidId"] == snapshot["id"]
    assert db.query(Bid).count() == 1
    assert queue.messages == []


def test_wrapped_document_is_unwrapped(client, db, queue, renter, bid_payload):
    snapshot = _place(client, renter, bid_payload)
    inner = queue.messages.pop().body
    queue.push_raw(json.dumps({"_doc": json.loads(inner)}))

    assert consume_once(db, queue, wait_seconds=0)["persisted"] == 1
    assert db.get(Bid, snapshot["id"]) is not None


def test_malformed_message_stays_on_queue(db, queue):
    msg = queue.push_raw("{not json")

    result = consume_once(db, queue, wait_seconds=0)

    assert result == {"received": 1, "failed": 1}
    assert queue.messages == [msg]
    assert db.query(Bid).count() == 0


def test_document_missing_fields_stays_on_queue(db, queue):
    queue.push_raw(json.dumps({"id": "00000000-0000-4000-8000-000000000001", "vehicle": "x"}))
    assert consume_once(db, queue, wait_seconds=0)["failed"] == 1
    assert len(queue.messages) == 1


def test_write_failure_leaves_message_for_redelivery(client, db, queue, renter, bid_payload, monkeypatch):
    _place(client, renter, bid_payload)
    original = BidStore.upsert_from_document

    def broken(self, doc):
        raise OperationalError("INSERT INTO bids", {}, Exception("database is locked"))

    monkeypatch.setattr(BidStore, "upsert_from_document", broken)
    assert consume_once(db, queue, wait_seconds=0) == {"received": 1, "failed": 1}
    assert len(queue.messages) == 1

    monkeypatch.setattr(BidStore, "upsert_from_document", original)
    assert consume_once(db, queue, wait_seconds=0)["persisted"] == 1
    assert queue.messages == []


def test_failed_delete_is_reported(client, db, queue, renter, bid_payload):
    snapshot = _place(client, renter, bid_payload)
    queue.fail_delete = True

    result = consume_once(db, queue, wait_seconds=0)

    assert result["persisted"] == 1
    assert result["deleted"] == 0
    assert db.get(Bid, snapshot["id"]) is not None
    assert len(queue.messages) == 1


@pytest.mark.parametrize("body", ["[]", "null", '"x"', "42", '{"_doc": []}'])
def test_non_object_message_stays_on_queue(db, queue, body):
    msg = queue.push_raw(body)

    assert consume_once(db, queue, wait_seconds=0) == {"received": 1, "failed": 1}
    assert queue.messages == [msg]
    assert db.query(Bid).count() == 0


def test_same_submission_id_from_two_bidders_stores_both(client, db, queue, renter, bid_payload):
    other = make_user(db, "second-renter@example.com", name="Second Renter")
    bid_payload["submissionId"] = "abc-1"
    first = _place(client, renter, bid_payload)
    second = _place(client, other, bid_payload)

    assert consume_once(db, queue, wait_seconds=0)["persisted"] == 1
    result = consume_once(db, queue, wait_seconds=0)

    assert result["persisted"] == 1
    assert result["bidId"] == second["id"]
    assert db.get(Bid, first["id"]).bidder_email == "renter@example.com"
    assert db.get(Bid, second["id"]).bidder_email == "second-renter@example.com"
    assert queue.messages == []


def test_same_bidder_resubmission_is_deduplicated(client, db, queue, renter, bid_payload):
    bid_payload["submissionId"] = "abc-1"
    first = _place(client, renter, bid_payload)
    _place(client, renter, bid_payload)

    consume_once(db, queue, wait_seconds=0)
    result = consume_once(db, queue, wait_seconds=0)

    assert result["duplicate"] == 1
    assert result["bidId"] == first["id"]
    assert db.query(Bid).count() == 1
