"""Bid-to-booking conversion and the trip lifecycle.

`BookingStore` is the only writer of the bookings table. Conversion runs as a
single database transaction over the bid and the new booking; trip updates
are single-row commits.
"""
import logging
import uuid
from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.clock import as_utc, utcnow
from app.core.errors import (
    AlreadyConverted,
    Forbidden,
    InvalidArgument,
    NotFound,
    RentalError,
    TransactionFailed,
)
from app.domain.status import (
    BidStatus,
    BookingStatus,
    LIVE_BID_STATUSES,
    ensure_bid_transition,
    ensure_booking_transition,
)
from app.models.bid import Bid
from app.models.booking import Booking
from app.models.user import User
from app.services.audit_service import log_audit
from app.services.bid_validator import parse_datetime, validate_id
from app.services.fare import compute_fare
from app.services.notification_service import queue_booking_confirmed

logger = logging.getLogger(__name__)


def _odometer(value, field_name: str) -> int:
    if value is None or value == "":
        raise InvalidArgument(f"{field_name} is required")
    if isinstance(value, bool):
        raise InvalidArgument(f"{field_name} must be a whole number")
    try:
        reading = int(value)
    except (TypeError, ValueError):
        raise InvalidArgument(f"{field_name} must be a whole number")
    if reading != value and str(reading) != str(value).strip():
        raise InvalidArgument(f"{field_name} must be a whole number")
    if reading < 0:
        raise InvalidArgument(f"{field_name} cannot be negative")
    return reading


def _optional_time(value) -> datetime:
    return parse_datetime(value) if value else utcnow()


def booking_from_bid(bid: Bid) -> Booking:
    return Booking(
        id=str(uuid.uuid4()),
        vehicle_id=bid.vehicle_id,
        bid_id=bid.id,
        vehicle_title=bid.vehicle_title,
        vehicle_base_price=bid.vehicle_base_price,
        vehicle_base_price_outstation=bid.vehicle_base_price_outstation,
        vehicle_images=list(bid.vehicle_images or []),
        renter_id=bid.bidder_id,
        renter_name=bid.bidder_name,
        renter_email=bid.bidder_email,
        renter_phone="",
        seller_id=bid.seller_id,
        seller_name=bid.seller_name,
        seller_email=bid.seller_email,
        seller_phone=bid.seller_phone or "",
        booking_start_date=as_utc(bid.booking_start_date),
        booking_end_date=as_utc(bid.booking_end_date),
        is_outstation=bool(bid.is_outstation),
        price_per_day=bid.bid_amount,
        total_price=bid.bid_amount,
        status=BookingStatus.PENDING.value,
        payment_status="pending",
        extra_charges=0,
    )


class BookingStore:
    def __init__(self, db: Session):
        self.db = db

    # -------------------------
    # reads
    # -------------------------
    def get(self, booking_id: str) -> Booking:
        booking = self.db.get(Booking, validate_id(booking_id, "booking ID"))
        if not booking:
            raise NotFound("Booking not found")
        return booking

    def get_for_participant(self, booking_id: str, actor: User) -> Booking:
        booking = self.get(booking_id)
        if actor.id not in (booking.renter_id, booking.seller_id):
            raise Forbidden("You are not authorized to view this booking")
        return booking

    def list_for_renter(self, renter_id: str, status: str | None = None) -> list[Booking]:
        query = self.db.query(Booking).filter(Booking.renter_id == renter_id)
        if status:
            query = query.filter(Booking.status == status)
        return query.order_by(Booking.created_at.desc()).all()

    def list_for_seller(
        self, seller_id: str, status: str | None = None, page: int = 1, limit: int = 15
    ) -> tuple[list[Booking], int, int, int]:
        """One page of the seller's bookings, newest first. Returns (items, total, page, limit) after clamping."""
        page = max(page, 1)
        limit = min(max(limit, 1), 100)
        query = self.db.query(Booking).filter(Booking.seller_id == seller_id)
        if status:
            query = query.filter(Booking.status == status)
        total = query.count()
        items = (
            query.order_by(Booking.created_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return items, total, page, limit

    # -------------------------
    # conversion
    # -------------------------
    def convert_bid(self, bid_id: str, actor: User) -> tuple[Booking, list[str]]:
        """Mark the bid converted and create its booking in one transaction.

        A pending bid is accepted on the way. At most one conversion per bid
        can commit: the row lock serializes attempts on PostgreSQL, the guarded
        UPDATE catches anything that slips past it, and bookings.bid_id is
        unique. Returns the booking and the outbox email ids to deliver.
        """
        bid_id = validate_id(bid_id, "bid ID")
        try:
            bid = self.db.execute(
                select(Bid).where(Bid.id == bid_id).with_for_update()
            ).scalar_one_or_none()
            if not bid:
                raise NotFound("Bid not found")
            if bid.seller_id != actor.id:
                raise Forbidden("You are not authorized to convert this bid")

            current = BidStatus(bid.status)
            if current == BidStatus.CONVERTED:
                raise AlreadyConverted()
            now = utcnow()
            values = {"status": BidStatus.CONVERTED.value, "updated_at": now}
            if current == BidStatus.PENDING:
                ensure_bid_transition(current, BidStatus.ACCEPTED)
                current = BidStatus.ACCEPTED
                values.update(response_message="Bid accepted by seller", response_date=now)
            ensure_bid_transition(current, BidStatus.CONVERTED)

            booking = booking_from_bid(bid)
            result = self.db.execute(
                update(Bid)
                .where(Bid.id == bid_id, Bid.status.in_([s.value for s in LIVE_BID_STATUSES]))
                .values(**values)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                raise AlreadyConverted()

            self.db.add(booking)
            self.db.flush()
            email_ids = queue_booking_confirmed(self.db, booking)
            log_audit(self.db, actor.id, "bid.convert", "bid", bid_id, {"bookingId": booking.id})
            self.db.commit()
        except RentalError:
            self.db.rollback()
            raise
        except IntegrityError:
            self.db.rollback()
            logger.info("Conversion of bid %s lost to a concurrent conversion", bid_id)
            raise AlreadyConverted()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Conversion of bid %s rolled back", bid_id)
            raise TransactionFailed("Could not convert bid to booking, please retry")

        self.db.refresh(booking)
        logger.info("Bid %s converted to booking %s by seller %s", bid_id, booking.id, actor.id)
        return booking, email_ids

    # -------------------------
    # trip lifecycle
    # -------------------------
    def advance(self, booking_id: str, actor: User, status: str, **fields) -> Booking:
        """Single entry point for `PATCH /bookings/{id}/status`."""
        try:
            target = BookingStatus(status)
        except ValueError:
            raise InvalidArgument(f"Invalid status. Must be one of: {', '.join(s.value for s in BookingStatus)}")

        if target == BookingStatus.IN_PROGRESS:
            return self.start_trip(booking_id, actor, fields.get("initial_odometer"), fields.get("start_time"))
        if target == BookingStatus.COMPLETED:
            return self.complete_trip(
                booking_id, actor, fields.get("final_odometer"), fields.get("end_time"), fields.get("review")
            )
        if target == BookingStatus.CANCELLED:
            return self.cancel(booking_id, actor, fields.get("reason"))
        if target == BookingStatus.CONFIRMED:
            return self.confirm(booking_id, actor)
        booking = self.get(booking_id)
        self._require_seller(booking, actor, "update this booking status")
        ensure_booking_transition(booking.status, target)
        return booking

    def _require_seller(self, booking: Booking, actor: User, action: str) -> None:
        if booking.seller_id != actor.id:
            raise Forbidden(f"You are not authorized to {action}")

    def _commit(self, booking: Booking, actor: User, action: str, details: dict) -> Booking:
        log_audit(self.db, actor.id, action, "booking", booking.id, details)
        try:
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise
        self.db.refresh(booking)
        return booking

    def confirm(self, booking_id: str, actor: User) -> Booking:
        booking = self.get(booking_id)
        self._require_seller(booking, actor, "confirm this booking")
        booking.status = ensure_booking_transition(booking.status, BookingStatus.CONFIRMED).value
        logger.info("Booking %s confirmed", booking.id)
        return self._commit(booking, actor, "booking.confirm", {})

    def start_trip(self, booking_id: str, actor: User, initial_odometer, start_time=None) -> Booking:
        booking = self.get(booking_id)
        self._require_seller(booking, actor, "start this trip")
        target = ensure_booking_transition(booking.status, BookingStatus.IN_PROGRESS)
        reading = _odometer(initial_odometer, "Initial odometer reading")

        booking.status = target.value
        booking.initial_odometer_reading = reading
        booking.trip_start_time = _optional_time(start_time)
        logger.info("Trip started for booking %s at odometer %s", booking.id, reading)
        return self._commit(booking, actor, "booking.start_trip", {"initialOdometer": reading})

    def complete_trip(self, booking_id: str, actor: User, final_odometer, end_time=None, review: dict | None = None) -> Booking:
        booking = self.get(booking_id)
        self._require_seller(booking, actor, "complete this booking")
        target = ensure_booking_transition(booking.status, BookingStatus.COMPLETED)
        reading = _odometer(final_odometer, "Final odometer reading")
        if booking.initial_odometer_reading is None:
            raise InvalidArgument("Trip has no initial odometer reading")
        rating = (review or {}).get("rating")
        if rating is not None and (isinstance(rating, bool) or not isinstance(rating, int) or not 1 <= rating <= 5):
            raise InvalidArgument("Review rating must be between 1 and 5")

        fare = compute_fare(
            as_utc(booking.booking_start_date),
            as_utc(booking.booking_end_date),
            booking.price_per_day,
            booking.initial_odometer_reading,
            reading,
        )
        now = utcnow()
        booking.final_odometer_reading = reading
        booking.total_km = fare.km_driven
        booking.extra_charges = fare.extra_charges
        booking.total_price = fare.final_total
        booking.status = target.value
        booking.trip_end_time = _optional_time(end_time)
        booking.completion_date = now
        if review:
            booking.review_rating = rating
            booking.review_comment = review.get("comment") or ""
            booking.review_date = now

        logger.info(
            "Trip completed for booking %s: %s km over %s days, extra %s, total %s",
            booking.id, fare.km_driven, fare.days, fare.extra_charges, fare.final_total,
        )
        return self._commit(booking, actor, "booking.complete", {
            "days": fare.days,
            "kmDriven": fare.km_driven,
            "excessKm": fare.excess_km,
            "extraCharges": fare.extra_charges,
            "totalPrice": fare.final_total,
        })

    def cancel(self, booking_id: str, actor: User, reason: str | None = None) -> Booking:
        """Either party may cancel before the trip starts; only the seller once it is under way.

        Vehicle availability is read from the booking calendar, so the vehicle row is left alone.
        """
        booking = self.get(booking_id)
        if actor.id not in (booking.renter_id, booking.seller_id):
            raise Forbidden("You are not authorized to cancel this booking")
        if booking.status == BookingStatus.IN_PROGRESS.value and actor.id != booking.seller_id:
            raise Forbidden("Only the seller can cancel a trip in progress")
        previous = booking.status
        booking.status = ensure_booking_transition(booking.status, BookingStatus.CANCELLED).value
        booking.cancellation_reason = reason or ""
        booking.cancellation_date = utcnow()
        logger.info("Booking %s cancelled by %s", booking.id, actor.id)
        return self._commit(booking, actor, "booking.cancel", {"from": previous, "reason": reason or ""})
