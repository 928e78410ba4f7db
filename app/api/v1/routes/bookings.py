from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.orm import Session
from app.db.session import get_db
from app.api.deps import get_current_user, require_roles
from app.core.clock import as_utc
from app.models.booking import Booking
from app.models.user import User
from app.schemas.booking import BookingCancelIn, BookingCompleteIn, BookingStatusIn
from app.services.booking_store import BookingStore
from app.services.email_service import deliver_emails

router = APIRouter(prefix="/bookings", tags=["bookings"])


def _iso(dt):
    return as_utc(dt).isoformat() if dt else None


def booking_out(b: Booking) -> dict:
    review = None
    if b.review_rating is not None or b.review_comment:
        review = {"rating": b.review_rating, "comment": b.review_comment or "", "date": _iso(b.review_date)}
    return {
        "id": b.id,
        "vehicle": b.vehicle_id,
        "bid": b.bid_id,
        "vehicle_details": {
            "title": b.vehicle_title,
            "pricing": {
                "basePrice": b.vehicle_base_price,
                "basePriceOutstation": b.vehicle_base_price_outstation,
            },
            "images": list(b.vehicle_images or []),
        },
        "renter": {"user": b.renter_id, "name": b.renter_name, "email": b.renter_email, "phone": b.renter_phone or ""},
        "seller": {"user": b.seller_id, "name": b.seller_name, "email": b.seller_email, "phone": b.seller_phone or ""},
        "booking_start_date": _iso(b.booking_start_date),
        "booking_end_date": _iso(b.booking_end_date),
        "is_outstation": bool(b.is_outstation),
        "price_per_day": b.price_per_day,
        "total_price": b.total_price,
        "status": b.status,
        "payment_status": b.payment_status,
        "initial_odometer_reading": b.initial_odometer_reading,
        "final_odometer_reading": b.final_odometer_reading,
        "trip_start_time": _iso(b.trip_start_time),
        "trip_end_time": _iso(b.trip_end_time),
        "extra_charges": b.extra_charges or 0,
        "total_km": b.total_km,
        "cancellation_reason": b.cancellation_reason,
        "cancellation_date": _iso(b.cancellation_date),
        "completion_date": _iso(b.completion_date),
        "review": review,
        "created_at": _iso(b.created_at),
        "updated_at": _iso(b.updated_at),
    }


@router.post("/convert-bid/{bid_id}", status_code=201)
def convert_bid(
    bid_id: str,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    me: User = Depends(require_roles("seller", "admin")),
):
    booking, email_ids = BookingStore(db).convert_bid(bid_id, me)
    # Delivery runs after the response; failures stay in the outbox.
    background_tasks.add_task(deliver_emails, email_ids)
    return {"success": True, "message": "Bid successfully converted to booking", "data": booking_out(booking)}


@router.get("/renter")
def renter_bookings(status: str = "", db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    items = BookingStore(db).list_for_renter(me.id, status or None)
    return {"success": True, "count": len(items), "data": [booking_out(b) for b in items]}


@router.get("/seller")
def seller_bookings(
    status: str = "",
    page: int = 1,
    limit: int = 15,
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
):
    items, total, page, limit = BookingStore(db).list_for_seller(me.id, status or None, page, limit)
    total_pages = (total + limit - 1) // limit
    return {
        "success": True,
        "count": len(items),
        "total": total,
        "pagination": {
            "page": page,
            "limit": limit,
            "totalPages": total_pages,
            "hasNextPage": page < total_pages,
            "hasPrevPage": page > 1,
        },
        "data": [booking_out(b) for b in items],
    }


@router.get("/{booking_id}")
def get_booking(booking_id: str, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    return {"success": True, "data": booking_out(BookingStore(db).get_for_participant(booking_id, me))}


@router.patch("/{booking_id}/status")
def update_booking_status(
    booking_id: str,
    body: BookingStatusIn,
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
):
    booking = BookingStore(db).advance(
        booking_id,
        me,
        body.status,
        initial_odometer=body.initial_odometer,
        start_time=body.start_time,
        final_odometer=body.final_odometer,
        end_time=body.end_time,
        reason=body.cancellation_reason,
        review=body.review.model_dump() if body.review else None,
    )
    return {
        "success": True,
        "message": f"Booking status updated to {booking.status} successfully",
        "data": booking_out(booking),
    }


@router.post("/{booking_id}/cancel")
def cancel_booking(
    booking_id: str,
    body: BookingCancelIn | None = None,
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
):
    reason = body.cancellation_reason if body else ""
    booking = BookingStore(db).cancel(booking_id, me, reason)
    return {"success": True, "message": "Booking cancelled successfully", "data": booking_out(booking)}


@router.post("/{booking_id}/complete")
def complete_booking(
    booking_id: str,
    body: BookingCompleteIn,
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
):
    booking = BookingStore(db).complete_trip(
        booking_id,
        me,
        body.final_odometer_reading,
        body.end_time,
        body.review.model_dump() if body.review else None,
    )
    return {"success": True, "message": "Booking completed successfully", "data": booking_out(booking)}
