from sqlalchemy.orm import Session
from sqlalchemy.exc import ProgrammingError
from app.db.session import SessionLocal
from app.services.bid_consumer import consume_once
from app.services.bid_queue import get_bid_queue
from app.services.email_service import process_pending_emails


def consume_bid_queue(queue=None) -> dict:
    """Receive, store and acknowledge at most one queued bid. Run every few seconds via Celery beat."""
    db: Session = SessionLocal()
    try:
        # write failures (including a missing table) are logged inside and leave the message queued
        return consume_once(db, queue or get_bid_queue())
    finally:
        db.close()


def process_email_queue(limit: int = 50) -> dict:
    """Process queued/failed emails (retry send). Run periodically via Celery beat."""
    db: Session = SessionLocal()
    try:
        try:
            return process_pending_emails(db, limit=limit)
        except ProgrammingError:
            db.rollback()
            return {"skipped": True, "reason": "missing_tables"}
    finally:
        db.close()
