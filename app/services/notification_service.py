"""Bid and booking emails. Rows go to the email outbox; delivery happens after commit."""
from datetime import datetime

from sqlalchemy.orm import Session

from app.core.config import settings
from app.models.booking import Booking
from app.services.email_service import add_email

FOOTER = "This is an automated email. Please do not reply directly to this message."


def _day(value) -> str:
    if isinstance(value, datetime):
        return value.date().isoformat()
    return str(value)[:10]


def _mode(is_outstation: bool) -> str:
    return "Outstation" if is_outstation else "Local"


def queue_bid_placed(db: Session, snapshot: dict) -> list[str]:
    """Seller gets a new-bid notice, bidder gets a receipt. `snapshot` is the queued bid document."""
    title = snapshot["vehicle_details"]["title"]
    bidder, seller = snapshot["bidder"], snapshot["seller"]
    period = f"{_day(snapshot['booking_start_date'])} to {_day(snapshot['booking_end_date'])}"
    amount = snapshot["bid_amount"]
    mode = _mode(snapshot["is_outstation"])

    seller_body = "\n".join([
        f"Hello {seller['name']},",
        "",
        f"You've received a new bid for your car: {title}",
        "",
        f"Bidder Name: {bidder['name']}",
        f"Bid Amount: Rs. {amount:g}",
        f"Rental Period: {period}",
        f"Type: {mode}",
        "",
        f"Review and respond from your dashboard: {settings.FRONTEND_URL}/seller/dashboard",
        "",
        FOOTER,
    ])
    bidder_body = "\n".join([
        f"Hello {bidder['name']},",
        "",
        f"Your bid for {title} has been placed and sent to the owner.",
        "",
        f"Bid Amount: Rs. {amount:g}",
        f"Rental Period: {period}",
        f"Type: {mode}",
        "",
        f"Track your bids: {settings.FRONTEND_URL}/buyer/bids",
        "",
        FOOTER,
    ])
    return [
        add_email(db, seller["email"], f"New Bid Received for {title}", seller_body,
                  kind="bid.placed.seller", related_entity_id=snapshot["id"]),
        add_email(db, bidder["email"], f"Your Bid for {title} has been placed", bidder_body,
                  kind="bid.placed.bidder", related_entity_id=snapshot["id"]),
    ]


def queue_booking_confirmed(db: Session, booking: Booking) -> list[str]:
    title = booking.vehicle_title
    period = f"{_day(booking.booking_start_date)} to {_day(booking.booking_end_date)}"
    mode = _mode(booking.is_outstation)

    seller_body = "\n".join([
        f"Hello {booking.seller_name},",
        "",
        f"A bid for your {title} has been converted to a booking.",
        "",
        f"Renter: {booking.renter_name}",
        f"Rental Period: {period}",
        f"Total Amount: Rs. {booking.total_price:g}",
        f"Type: {mode}",
        "",
        f"View bookings: {settings.FRONTEND_URL}/seller/bookings",
        "",
        FOOTER,
    ])
    renter_body = "\n".join([
        f"Hello {booking.renter_name},",
        "",
        f"Your booking for {title} has been confirmed.",
        "",
        f"Rental Period: {period}",
        f"Total Amount: Rs. {booking.total_price:g}",
        f"Type: {mode}",
        f"Owner Contact: {booking.seller_phone or 'Available in your booking details'}",
        "",
        f"View my bookings: {settings.FRONTEND_URL}/buyer/bookings",
        "",
        FOOTER,
    ])
    return [
        add_email(db, booking.seller_email, f"Booking Confirmed for {title}", seller_body,
                  kind="booking.confirmed.seller", related_entity_id=booking.id),
        add_email(db, booking.renter_email, f"Your Booking for {title} is Confirmed", renter_body,
                  kind="booking.confirmed.renter", related_entity_id=booking.id),
    ]
