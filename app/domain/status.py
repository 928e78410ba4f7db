"""Status enums and the transition tables for bids and bookings.

Every status change in the services goes through `ensure_bid_transition` or
`ensure_booking_transition`; nothing else writes a status column.
"""
from enum import Enum

from app.core.errors import InvalidStateTransition


class BidStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    EXPIRED = "expired"
    CONVERTED = "converted"


class BookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in_progress"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


BID_TRANSITIONS: dict[BidStatus, frozenset[BidStatus]] = {
    BidStatus.PENDING: frozenset({
        BidStatus.ACCEPTED,
        BidStatus.REJECTED,
        BidStatus.EXPIRED,
        BidStatus.CONVERTED,
    }),
    BidStatus.ACCEPTED: frozenset({BidStatus.CONVERTED}),
    BidStatus.REJECTED: frozenset(),
    BidStatus.EXPIRED: frozenset(),
    BidStatus.CONVERTED: frozenset(),
}

BOOKING_TRANSITIONS: dict[BookingStatus, frozenset[BookingStatus]] = {
    BookingStatus.PENDING: frozenset({
        BookingStatus.CONFIRMED,
        BookingStatus.IN_PROGRESS,
        BookingStatus.CANCELLED,
    }),
    BookingStatus.CONFIRMED: frozenset({BookingStatus.IN_PROGRESS, BookingStatus.CANCELLED}),
    BookingStatus.IN_PROGRESS: frozenset({BookingStatus.COMPLETED, BookingStatus.CANCELLED}),
    BookingStatus.CANCELLED: frozenset(),
    BookingStatus.COMPLETED: frozenset(),
}

BID_TERMINAL = frozenset(s for s, nxt in BID_TRANSITIONS.items() if not nxt)
BOOKING_TERMINAL = frozenset(s for s, nxt in BOOKING_TRANSITIONS.items() if not nxt)

# Bids that still count as live offers (highest-bid lookups, conversion source)
LIVE_BID_STATUSES = (BidStatus.PENDING, BidStatus.ACCEPTED)


def ensure_bid_transition(current: str | BidStatus, target: str | BidStatus) -> BidStatus:
    cur, tgt = BidStatus(current), BidStatus(target)
    if tgt not in BID_TRANSITIONS[cur]:
        raise InvalidStateTransition(f"Bid is already {cur.value}; cannot move to {tgt.value}")
    return tgt


def ensure_booking_transition(current: str | BookingStatus, target: str | BookingStatus) -> BookingStatus:
    cur, tgt = BookingStatus(current), BookingStatus(target)
    if tgt not in BOOKING_TRANSITIONS[cur]:
        raise InvalidStateTransition(
            f"Cannot change a booking with status '{cur.value}' to '{tgt.value}'"
        )
    return tgt
