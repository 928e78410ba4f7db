import json
import os
import tempfile
import uuid
from datetime import datetime, timedelta, timezone

_DB_DIR = tempfile.mkdtemp(prefix="rento-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_DB_DIR, 'rento.db')}"
os.environ["SECRET_KEY"] = "test-secret"
os.environ["BID_QUEUE_URL"] = "https://sqs.test.local/000000000000/bids"
os.environ["ENV"] = "test"

import pytest
from botocore.exceptions import ClientError
from fastapi.testclient import TestClient

from app.api.deps import bid_queue
from app.core.security import create_access_token, hash_password
from app.db.session import Base, SessionLocal, engine
from app.main import app
from app.models.audit_log import AuditLog  # noqa: F401
from app.models.bid import Bid  # noqa: F401
from app.models.booking import Booking  # noqa: F401
from app.models.email_log import EmailLog  # noqa: F401
from app.models.user import User
from app.models.vehicle import Vehicle
from app.services import email_service
from app.services.bid_consumer import consume_once
from app.services.bid_queue import QueueMessage


class FakeQueue:
    """In-memory stand-in for the SQS queue. Undeleted messages are redelivered on every receive."""

    def __init__(self):
        self.messages: list[QueueMessage] = []
        self.deleted: list[str] = []
        self.fail_send = False
        self.fail_delete = False

    def send(self, body: dict) -> str:
        if self.fail_send:
            raise ClientError({"Error": {"Code": "ServiceUnavailable", "Message": "queue down"}}, "SendMessage")
        mid = str(uuid.uuid4())
        self.messages.append(QueueMessage(message_id=mid, body=json.dumps(body, default=str), receipt_handle=f"rh-{mid}"))
        return mid

    def push_raw(self, body: str) -> QueueMessage:
        mid = str(uuid.uuid4())
        msg = QueueMessage(message_id=mid, body=body, receipt_handle=f"rh-{mid}")
        self.messages.append(msg)
        return msg

    def receive(self, max_messages: int = 1, wait_seconds: int = 20) -> list[QueueMessage]:
        return self.messages[:max_messages]

    def delete(self, receipt_handle: str) -> None:
        if self.fail_delete:
            raise ClientError({"Error": {"Code": "InternalError", "Message": "delete failed"}}, "DeleteMessage")
        self.messages = [m for m in self.messages if m.receipt_handle != receipt_handle]
        self.deleted.append(receipt_handle)


@pytest.fixture(autouse=True)
def _schema():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def sent_emails(monkeypatch):
    sent = []
    monkeypatch.setattr(email_service, "send_email", lambda to, subject, body: sent.append((to, subject)))
    return sent


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def queue():
    return FakeQueue()


@pytest.fixture
def client(queue):
    app.dependency_overrides[bid_queue] = lambda: queue
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def make_user(db, email: str, role: str = "user", name: str = "", phone: str = "") -> User:
    user = User(
        id=str(uuid.uuid4()),
        email=email,
        full_name=name or email.split("@")[0].title(),
        phone=phone,
        role=role,
        password_hash=hash_password("secret123"),
        is_active=True,
    )
    db.add(user)
    db.commit()
    return user


def auth(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user.id, user.role)}"}


@pytest.fixture
def seller(db):
    return make_user(db, "seller@example.com", role="seller", name="Sam Seller", phone="+91 90000 00000")


@pytest.fixture
def renter(db):
    return make_user(db, "renter@example.com", role="user", name="Riya Renter")


@pytest.fixture
def vehicle(db, seller):
    v = Vehicle(
        id=str(uuid.uuid4()),
        owner_id=seller.id,
        title="Swift Dzire",
        base_price=1000,
        base_price_outstation=1500,
        images=["https://img.example.com/dzire.jpg"],
        status="available",
    )
    db.add(v)
    db.commit()
    return v


@pytest.fixture
def trip_dates():
    """A three-day local rental starting a week from now."""
    start = (datetime.now(timezone.utc) + timedelta(days=7)).replace(hour=9, minute=0, second=0, microsecond=0)
    return start, start + timedelta(days=2)


@pytest.fixture
def bid_payload(vehicle, trip_dates):
    start, end = trip_dates
    return {
        "vehicleId": vehicle.id,
        "bidAmount": 1200,
        "bookingStartDate": start.isoformat(),
        "bookingEndDate": end.isoformat(),
        "isOutstation": False,
        "bidMessage": "Need it for a family trip",
        "govtId": "DL-0420110012345",
    }


@pytest.fixture
def stored_bid(client, db, queue, renter, bid_payload):
    """Place a bid through the API and run the consumer once so it is persisted."""
    resp = client.post("/api/v1/bids", json=bid_payload, headers=auth(renter))
    assert resp.status_code == 201, resp.text
    result = consume_once(db, queue, wait_seconds=0)
    assert result["persisted"] == 1
    return db.get(Bid, resp.json()["data"]["id"])
