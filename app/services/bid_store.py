"""Persistence and state changes for bids.

Routes and workers go through `BidStore`; it is the only code that writes to
the bids table, and every status change is checked against the transition
table in `app.domain.status`.
"""
import logging
import uuid
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.core.clock import as_utc, utcnow
from app.core.config import settings
from app.core.errors import Forbidden, InvalidArgument, NotFound, PolicyViolation
from app.domain.status import BidStatus, LIVE_BID_STATUSES, ensure_bid_transition
from app.models.bid import Bid
from app.models.user import User
from app.services.audit_service import log_audit
from app.services.bid_validator import parse_datetime, validate_id
from app.services.catalog_service import get_vehicle

logger = logging.getLogger(__name__)

RESPONSES = (BidStatus.ACCEPTED.value, BidStatus.REJECTED.value)


def _iso(dt: datetime | None) -> str | None:
    return as_utc(dt).isoformat() if dt else None


def to_document(bid: Bid) -> dict:
    """Bid as a JSON document. Same shape as the queued snapshot plus response fields."""
    return {
        "id": bid.id,
        "submission_id": bid.submission_id,
        "vehicle": bid.vehicle_id,
        "vehicle_details": {
            "title": bid.vehicle_title,
            "pricing": {
                "basePrice": bid.vehicle_base_price,
                "basePriceOutstation": bid.vehicle_base_price_outstation,
            },
            "images": list(bid.vehicle_images or []),
        },
        "bidder": {
            "user": bid.bidder_id,
            "name": bid.bidder_name,
            "email": bid.bidder_email,
            "govtId": bid.bidder_govt_id,
        },
        "seller": {
            "user": bid.seller_id,
            "name": bid.seller_name,
            "email": bid.seller_email,
            "phone": bid.seller_phone or "",
        },
        "bid_amount": bid.bid_amount,
        "bid_date": _iso(bid.bid_date),
        "booking_start_date": _iso(bid.booking_start_date),
        "booking_end_date": _iso(bid.booking_end_date),
        "is_outstation": bool(bid.is_outstation),
        "bid_message": bid.bid_message or "",
        "bid_status": bid.status,
        "response_message": bid.response_message or "",
        "response_date": _iso(bid.response_date),
        "created_at": _iso(bid.created_at),
        "updated_at": _iso(bid.updated_at),
    }


def from_document(doc: dict) -> Bid:
    """Build a new Bid from a queue document. Raises KeyError/ValueError on malformed input."""
    if not isinstance(doc, dict):
        raise InvalidArgument("Bid message is not a JSON object")
    vehicle = doc.get("vehicle_details") or {}
    pricing = vehicle.get("pricing") or {}
    bidder, seller = doc["bidder"], doc["seller"]
    bid_id = doc.get("id") or str(uuid.uuid4())
    return Bid(
        id=validate_id(bid_id, "bid ID"),
        submission_id=str(doc.get("submission_id") or bid_id),
        vehicle_id=validate_id(doc["vehicle"], "vehicle ID"),
        vehicle_title=vehicle.get("title", ""),
        vehicle_base_price=float(pricing.get("basePrice") or 0),
        vehicle_base_price_outstation=float(pricing.get("basePriceOutstation") or pricing.get("basePrice") or 0),
        vehicle_images=list(vehicle.get("images") or []),
        bidder_id=bidder["user"],
        bidder_name=bidder["name"],
        bidder_email=bidder["email"],
        bidder_govt_id=bidder["govtId"],
        seller_id=seller["user"],
        seller_name=seller["name"],
        seller_email=seller["email"],
        seller_phone=seller.get("phone") or "",
        bid_amount=float(doc["bid_amount"]),
        bid_date=parse_datetime(doc["bid_date"]) if doc.get("bid_date") else utcnow(),
        booking_start_date=parse_datetime(doc["booking_start_date"]),
        booking_end_date=parse_datetime(doc["booking_end_date"]),
        is_outstation=bool(doc.get("is_outstation", False)),
        bid_message=doc.get("bid_message") or "",
        status=BidStatus.PENDING.value,
    )


class BidStore:
    def __init__(self, db: Session):
        self.db = db

    # -------------------------
    # reads
    # -------------------------
    def get(self, bid_id: str) -> Bid:
        bid = self.db.get(Bid, validate_id(bid_id, "bid ID"))
        if not bid:
            raise NotFound("Bid not found")
        return bid

    def get_for_participant(self, bid_id: str, actor: User) -> Bid:
        bid = self.get(bid_id)
        if actor.id not in (bid.bidder_id, bid.seller_id):
            raise Forbidden("You are not authorized to view this bid")
        return bid

    def list_for_vehicle(self, vehicle_id: str, actor: User) -> list[Bid]:
        vehicle = get_vehicle(self.db, vehicle_id)
        if vehicle.owner_id != actor.id:
            raise Forbidden("You are not authorized to view these bids")
        return (
            self.db.query(Bid)
            .filter(Bid.vehicle_id == vehicle.id)
            .order_by(Bid.created_at.desc())
            .all()
        )

    def list_for_seller(self, seller_id: str, status: str | None = BidStatus.PENDING.value) -> list[Bid]:
        """Unknown or empty status lists every bid for the seller's vehicles."""
        query = self.db.query(Bid).filter(Bid.seller_id == seller_id)
        if status in {s.value for s in BidStatus}:
            query = query.filter(Bid.status == status)
        return query.order_by(Bid.created_at.desc()).all()

    def list_for_bidder(self, bidder_id: str) -> list[Bid]:
        return (
            self.db.query(Bid)
            .filter(Bid.bidder_id == bidder_id)
            .order_by(Bid.created_at.desc())
            .all()
        )

    def highest_amount(self, vehicle_id: str) -> float | None:
        vehicle = get_vehicle(self.db, vehicle_id)
        return self.db.execute(
            select(func.max(Bid.bid_amount)).where(
                Bid.vehicle_id == vehicle.id,
                Bid.status.in_([s.value for s in LIVE_BID_STATUSES]),
            )
        ).scalar_one_or_none()

    # -------------------------
    # writes
    # -------------------------
    def _get_for_update(self, bid_id: str) -> Bid:
        bid = self.db.execute(
            select(Bid).where(Bid.id == validate_id(bid_id, "bid ID")).with_for_update()
        ).scalar_one_or_none()
        if not bid:
            raise NotFound("Bid not found")
        return bid

    def upsert_from_document(self, doc: dict) -> tuple[Bid, bool]:
        """Insert the queued bid unless this bidder's submission id is already stored. Caller commits."""
        incoming = from_document(doc)
        existing = self.db.execute(
            select(Bid).where(
                Bid.bidder_id == incoming.bidder_id,
                Bid.submission_id == incoming.submission_id,
            )
        ).scalar_one_or_none()
        if existing:
            return existing, False
        self.db.add(incoming)
        return incoming, True

    def respond(self, bid_id: str, actor: User, response: str, message: str = "") -> Bid:
        if response not in RESPONSES:
            raise InvalidArgument(f"Invalid response type. Must be one of: {', '.join(RESPONSES)}")
        bid = self._get_for_update(bid_id)
        try:
            if bid.seller_id != actor.id:
                raise Forbidden("You are not authorized to respond to this bid")
            previous = bid.status
            bid.status = ensure_bid_transition(bid.status, response).value
            bid.response_message = message or ""
            bid.response_date = utcnow()
            log_audit(self.db, actor.id, "bid.respond", "bid", bid.id, {"from": previous, "to": bid.status})
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(bid)
        logger.info("Bid %s %s by seller %s", bid.id, bid.status, actor.id)
        return bid

    def cancel(self, bid_id: str, actor: User, now: datetime | None = None) -> Bid:
        now = now or utcnow()
        bid = self._get_for_update(bid_id)
        try:
            if bid.bidder_id != actor.id:
                raise Forbidden("You are not authorized to cancel this bid")
            target = ensure_bid_transition(bid.status, BidStatus.EXPIRED)
            hours_until_start = (as_utc(bid.booking_start_date) - now).total_seconds() / 3600
            if hours_until_start < settings.BID_CANCEL_CUTOFF_HOURS:
                raise PolicyViolation(
                    f"Cannot cancel bid within {settings.BID_CANCEL_CUTOFF_HOURS} hours of booking start time"
                )
            bid.status = target.value
            bid.response_message = "Cancelled by bidder"
            bid.response_date = now
            log_audit(self.db, actor.id, "bid.cancel", "bid", bid.id, {"hoursUntilStart": round(hours_until_start, 2)})
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(bid)
        logger.info("Bid %s cancelled by bidder %s", bid.id, actor.id)
        return bid
