"""Moves bids from the intake queue into the bids table, one message per call.

The message is deleted only after the bid row is committed. Anything that
goes wrong before that leaves the message on the queue, and the queue's own
redelivery (or expiry) takes it from there.
"""
import json
import logging

from botocore.exceptions import BotoCoreError, ClientError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import RentalError
from app.services.bid_queue import BidQueue
from app.services.bid_store import BidStore

logger = logging.getLogger(__name__)


def consume_once(db: Session, queue: BidQueue, wait_seconds: int | None = None) -> dict:
    if wait_seconds is None:
        wait_seconds = settings.BID_QUEUE_WAIT_SECONDS
    messages = queue.receive(max_messages=1, wait_seconds=wait_seconds)
    if not messages:
        return {"received": 0}

    msg = messages[0]
    logger.info("Received bid message %s", msg.message_id)
    try:
        doc = json.loads(msg.body)
        # Older producers wrapped the document
        if isinstance(doc, dict) and isinstance(doc.get("_doc"), dict):
            doc = doc["_doc"]
        bid, created = BidStore(db).upsert_from_document(doc)
        db.commit()
    except (ValueError, KeyError, TypeError, AttributeError, RentalError):
        db.rollback()
        logger.exception("Unparseable bid message %s left on queue", msg.message_id)
        return {"received": 1, "failed": 1}
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Could not persist bid message %s, left on queue", msg.message_id)
        return {"received": 1, "failed": 1}

    if created:
        logger.info("Bid %s saved from message %s", bid.id, msg.message_id)
    else:
        logger.info("Bid %s already stored (submission %s), dropping redelivery", bid.id, bid.submission_id)

    try:
        queue.delete(msg.receipt_handle)
    except (BotoCoreError, ClientError):
        # redelivery is deduplicated on submission_id
        logger.exception("Could not delete message %s after saving bid %s", msg.message_id, bid.id)
        return {"received": 1, "persisted": int(created), "duplicate": int(not created), "deleted": 0, "bidId": bid.id}
    logger.info("Message %s processed and deleted from queue", msg.message_id)
    return {"received": 1, "persisted": int(created), "duplicate": int(not created), "bidId": bid.id}
