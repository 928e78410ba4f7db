from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.orm import Session
from app.db.session import get_db
from app.api.deps import bid_queue, get_current_user, require_roles
from app.models.user import User
from app.schemas.bid import BidCreate, BidRespondIn
from app.services.bid_intake import place_bid
from app.services.bid_queue import BidQueue
from app.services.bid_store import BidStore, to_document
from app.services.email_service import deliver_emails

router = APIRouter(prefix="/bids", tags=["bids"])


@router.post("", status_code=201)
def create_bid(
    body: BidCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    queue: BidQueue = Depends(bid_queue),
    me: User = Depends(get_current_user),
):
    """Queue a bid. The returned snapshot becomes readable once the intake worker has stored it."""
    snapshot, email_ids = place_bid(db, queue, me, body)
    if email_ids:
        background_tasks.add_task(deliver_emails, email_ids)
    return {"success": True, "message": "Bid placed successfully", "data": snapshot}


@router.get("/user")
def my_bids(db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    bids = BidStore(db).list_for_bidder(me.id)
    return {"success": True, "count": len(bids), "data": [to_document(b) for b in bids]}


@router.get("/seller")
def seller_bids(status: str = "pending", db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    bids = BidStore(db).list_for_seller(me.id, status)
    return {"success": True, "count": len(bids), "data": [to_document(b) for b in bids]}


@router.get("/vehicle/{vehicle_id}")
def vehicle_bids(vehicle_id: str, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    bids = BidStore(db).list_for_vehicle(vehicle_id, me)
    return {"success": True, "count": len(bids), "data": [to_document(b) for b in bids]}


@router.get("/highest/{vehicle_id}")
def highest_bid(vehicle_id: str, db: Session = Depends(get_db)):
    """Public: highest pending/accepted bid amount, or null."""
    return {"success": True, "data": {"highestBid": BidStore(db).highest_amount(vehicle_id)}}


@router.get("/{bid_id}")
def get_bid(bid_id: str, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    return {"success": True, "data": to_document(BidStore(db).get_for_participant(bid_id, me))}


@router.post("/{bid_id}/respond")
def respond_to_bid(
    bid_id: str,
    body: BidRespondIn,
    db: Session = Depends(get_db),
    me: User = Depends(require_roles("seller", "admin")),
):
    bid = BidStore(db).respond(bid_id, me, body.response, body.responseMessage)
    return {"success": True, "message": f"Bid {bid.status} successfully", "data": to_document(bid)}


@router.post("/{bid_id}/cancel")
def cancel_bid(bid_id: str, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    bid = BidStore(db).cancel(bid_id, me)
    return {"success": True, "message": "Bid cancelled successfully", "data": to_document(bid)}
