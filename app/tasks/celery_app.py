from urllib.parse import urlparse, urlunparse, parse_qs, urlencode

from celery import Celery
from app.core.config import settings
from app.core.logging_config import configure_logging

configure_logging()


def _redis_url_for_celery(url: str) -> str:
    """Celery requires ssl_cert_reqs for rediss:// (e.g. Upstash TLS)."""
    if not url or not url.strip().lower().startswith("rediss://"):
        return url
    parsed = urlparse(url)
    qs = parse_qs(parsed.query)
    if "ssl_cert_reqs" not in qs:
        qs["ssl_cert_reqs"] = ["CERT_NONE"]
        new_query = urlencode(qs, doseq=True)
        return urlunparse(parsed._replace(query=new_query))
    return url


_redis_url = _redis_url_for_celery(settings.REDIS_URL)

celery = Celery(
    "rento",
    broker=_redis_url,
    backend=_redis_url,
    include=["app.tasks.jobs"],
)

celery.conf.timezone = "Asia/Kolkata"

# The bid consumer handles one message at a time; run its queue with a single worker:
#   celery -A app.tasks.celery_app worker -Q bid-intake --concurrency=1
celery.conf.task_routes = {
    "app.tasks.jobs.consume_bid_queue": {"queue": "bid-intake"},
}

celery.conf.beat_schedule = {
    "consume-bid-queue": {
        "task": "app.tasks.jobs.consume_bid_queue",
        "schedule": settings.BID_QUEUE_POLL_SECONDS,
        # a tick that waited behind a long poll is dropped rather than stacked
        "options": {"expires": settings.BID_QUEUE_POLL_SECONDS},
    },
    "process-email-queue-every-2-minutes": {
        "task": "app.tasks.jobs.process_email_queue",
        "schedule": 120.0,
        "kwargs": {"limit": 50},
    },
}
