import logging

from celery import shared_task

from .models import Heartbeat

log = logging.getLogger(__name__)


@shared_task
def beat_heartbeat():
    """Ticked by celery beat every minute; /healthz/ reads it back."""
    beat = Heartbeat.touch("beat")
    log.debug("beat heartbeat at %s", beat.seen_at.isoformat())
    return "ok"
