from datetime import datetime, timezone
import logging
import smtplib
from email.message import EmailMessage
from sqlalchemy.orm import Session
import uuid
import requests

from app.core.config import settings
from app.db.session import SessionLocal
from app.models.email_log import EmailLog

logger = logging.getLogger(__name__)


def add_email(db: Session, to_email: str, subject: str, body: str, kind: str = "", related_entity_id: str = "") -> str:
    """Write an outbox row in the caller's transaction. Nothing is sent until the caller commits."""
    eid = str(uuid.uuid4())
    db.add(
        EmailLog(
            id=eid,
            to_email=to_email,
            subject=subject,
            body=body,
            kind=kind,
            status="queued",
            attempts=0,
            related_entity_id=related_entity_id,
        )
    )
    return eid


def deliver_emails(email_ids: list[str]) -> dict:
    """Try to send the given outbox rows now. Used as a post-commit background task.

    Never raises: failures stay in the outbox for `process_pending_emails`.
    """
    sent, failed = 0, 0
    db: Session = SessionLocal()
    try:
        for eid in email_ids:
            log = db.get(EmailLog, eid)
            if not log or log.status == "sent":
                continue
            if _attempt(log):
                sent += 1
            else:
                failed += 1
            db.commit()
    except Exception:
        logger.exception("Email delivery pass aborted")
        db.rollback()
    finally:
        db.close()
    return {"sent": sent, "failed": failed}


def _attempt(log: EmailLog) -> bool:
    log.attempts = (log.attempts or 0) + 1
    try:
        send_email(log.to_email, log.subject, log.body)
    except Exception:
        logger.warning("Sending %s to %s failed (attempt %s)", log.kind or "email", log.to_email, log.attempts, exc_info=True)
        log.status = "failed"
        return False
    log.status = "sent"
    log.sent_at = datetime.now(timezone.utc)
    return True


def send_email(to_email: str, subject: str, body: str):
    """Send email via SendGrid if configured, otherwise SMTP (MailHog recommended for local)."""

    if settings.SENDGRID_API_KEY:
        _send_via_sendgrid(to_email, subject, body)
        return

    msg = EmailMessage()
    msg["From"] = settings.SMTP_FROM
    msg["To"] = to_email
    msg["Subject"] = subject
    msg.set_content(body)

    with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=10) as smtp:
        if settings.SMTP_USERNAME:
            smtp.login(settings.SMTP_USERNAME, settings.SMTP_PASSWORD)
        smtp.send_message(msg)


def _send_via_sendgrid(to_email: str, subject: str, body: str):
    from_email = settings.SENDGRID_FROM_EMAIL or settings.SMTP_FROM
    payload = {
        "personalizations": [{"to": [{"email": to_email}]}],
        "from": {"email": from_email},
        "subject": subject,
        "content": [{"type": "text/plain", "value": body}],
    }

    r = requests.post(
        "https://api.sendgrid.com/v3/mail/send",
        json=payload,
        headers={"Authorization": f"Bearer {settings.SENDGRID_API_KEY}"},
        timeout=20,
    )
    if r.status_code >= 400:
        raise RuntimeError(f"SendGrid error {r.status_code}: {r.text}")


def process_pending_emails(db: Session, limit: int = 50) -> dict:
    """Retry up to `limit` queued or failed emails that still have attempts left. Returns counts."""
    pending = (
        db.query(EmailLog)
        .filter(
            EmailLog.status.in_(["queued", "failed"]),
            EmailLog.attempts < settings.EMAIL_MAX_ATTEMPTS,
        )
        .order_by(EmailLog.created_at.asc())
        .limit(limit)
        .all()
    )
    sent, failed = 0, 0
    for log in pending:
        if _attempt(log):
            sent += 1
        else:
            failed += 1
    if pending:
        db.commit()
    return {"processed": len(pending), "sent": sent, "failed": failed}
