import logging
import uuid

from botocore.exceptions import BotoCoreError, ClientError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.clock import utcnow
from app.core.errors import TransactionFailed
from app.domain.status import BidStatus
from app.models.user import User
from app.schemas.bid import BidCreate
from app.services.bid_queue import BidQueue
from app.services.bid_validator import check_bid_policy, floor_price, validate_bid_request
from app.services.catalog_service import get_owner, get_vehicle
from app.services.notification_service import queue_bid_placed

logger = logging.getLogger(__name__)


def place_bid(db: Session, queue: BidQueue, bidder: User, body: BidCreate) -> tuple[dict, list[str]]:
    """Validate, snapshot and enqueue a bid. Returns the snapshot and the queued email ids.

    The bid is persisted later by the queue consumer, so it is not readable
    through the bid endpoints until then.
    """
    validated = validate_bid_request(
        body.vehicleId,
        body.bidAmount,
        body.bookingStartDate,
        body.bookingEndDate,
        body.isOutstation,
        body.govtId,
    )
    vehicle = get_vehicle(db, validated.vehicle_id)
    owner = get_owner(db, vehicle)
    check_bid_policy(validated, vehicle, bidder.id)

    bid_id = str(uuid.uuid4())
    snapshot = {
        "id": bid_id,
        "submission_id": body.submissionId or bid_id,
        "vehicle": vehicle.id,
        "vehicle_details": {
            "title": vehicle.title,
            "pricing": {
                "basePrice": vehicle.base_price,
                "basePriceOutstation": floor_price(vehicle, True),
            },
            "images": list(vehicle.images or []),
        },
        "bidder": {
            "user": bidder.id,
            "name": bidder.full_name,
            "email": bidder.email,
            "govtId": validated.govt_id,
        },
        "seller": {
            "user": owner.id,
            "name": owner.full_name,
            "email": owner.email,
            "phone": owner.phone or "",
        },
        "bid_amount": validated.amount,
        "booking_start_date": validated.start.isoformat(),
        "booking_end_date": validated.end.isoformat(),
        "is_outstation": validated.is_outstation,
        "bid_message": body.bidMessage or "",
        "bid_date": utcnow().isoformat(),
        "bid_status": BidStatus.PENDING.value,
    }

    try:
        message_id = queue.send(snapshot)
    except (BotoCoreError, ClientError):
        logger.exception("Could not enqueue bid %s for vehicle %s", bid_id, vehicle.id)
        raise TransactionFailed("Could not submit bid, please retry")
    logger.info("Bid %s enqueued as message %s (vehicle=%s amount=%s)", bid_id, message_id, vehicle.id, validated.amount)

    email_ids: list[str] = []
    try:
        email_ids = queue_bid_placed(db, snapshot)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        email_ids = []
        logger.exception("Could not queue bid notifications for bid %s", bid_id)
    return snapshot, email_ids
