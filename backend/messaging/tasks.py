import logging
from datetime import timedelta

from celery import shared_task
from django.conf import settings
from django.utils import timezone

from .dispatch import DispatchJob, mask_recipient
from .exceptions import ProviderConfigurationError, ProviderError
from .models import MessageLog, WebhookEvent
from .providers import get_email_provider, get_push_provider, get_whatsapp_provider
from .providers.base import INVALID_TOKEN_CODES

log = logging.getLogger(__name__)


def _record(job_id: str, job: DispatchJob, **fields) -> MessageLog:
    defaults = {
        "channel": job.channel,
        "recipient": job.recipient,
        "tracking_id": job.tracking_id or "",
    }
    defaults.update(fields)
    msg, _ = MessageLog.objects.update_or_create(job_id=job_id, defaults=defaults)
    return msg


def _deliver(task, job: DispatchJob, send, template_name: str = "", language: str = "") -> str:
    """
    Run one delivery attempt for ``job`` and apply its RetryPolicy.

    Retryable failures go back to the broker with exponential backoff; once the
    policy is exhausted (or the provider says retrying is pointless) the job is
    marked FAILED and logged at error/warning level. Nothing is dropped silently.
    """
    job_id = task.request.id
    attempt = task.request.retries + 1
    policy = job.retry_policy
    who = mask_recipient(job.recipient)

    existing = MessageLog.objects.filter(job_id=job_id).only("status").first()
    if existing and existing.status in MessageLog.DONE:
        # acks_late redelivery after the provider already accepted it
        return "already sent"

    common = {"template_name": template_name[:128], "language": language, "attempts": attempt}
    log.info("[PROCESS START] job %s (%s) attempt %s/%s for %s, template: %s",
             job_id, job.channel, attempt, policy.max_attempts, who, template_name)
    try:
        msg_id, pstatus = send()
    except ProviderConfigurationError as e:
        log.error("[PROCESS ERROR] job %s: provider misconfigured: %s", job_id, e)
        _record(job_id, job, status=MessageLog.Status.FAILED, error_code="config",
                error_title=str(e)[:255], **common)
        return "failed"
    except Exception as e:
        err = e if isinstance(e, ProviderError) else ProviderError(str(e))
        failed = {"error_code": err.code[:64], "error_title": (err.title or "")[:255]}
        if not err.retryable:
            log.warning("[SKIP RETRY] job %s: non-retryable error %s for %s: %s", job_id, err.code, who, err)
            _record(job_id, job, status=MessageLog.Status.FAILED, **failed, **common)
            return "failed"
        if policy.exhausted(attempt):
            log.error("[FAILED] job %s gave up after %s attempts for %s: %s", job_id, attempt, who, err)
            _record(job_id, job, status=MessageLog.Status.FAILED, **failed, **common)
            return "failed"
        countdown = policy.delay_for(task.request.retries)
        log.warning("[RETRY] job %s attempt %s failed for %s (%s); retrying in %ss",
                    job_id, attempt, who, err, countdown)
        _record(job_id, job, status=MessageLog.Status.QUEUED, **failed, **common)
        raise task.retry(exc=e, countdown=countdown, max_retries=policy.max_attempts - 1)

    _record(job_id, job, status=MessageLog.Status.SENT, provider_msg_id=msg_id or "",
            sent_at=timezone.now(), error_code="", error_title="", **common)
    log.info("[SEND SUCCESS] job %s sent to %s (provider id: %s, status: %s)", job_id, who, msg_id, pstatus)
    return "ok"


@shared_task(bind=True, acks_late=True)
def deliver_whatsapp_message(self, job: dict):
    job = DispatchJob.from_message(job)
    template = job.payload
    language = (template.get("language") or {}).get("code", "")

    def send():
        return get_whatsapp_provider().send_template(job.recipient, template, job.tracking_id)

    return _deliver(self, job, send, template_name=template.get("name", ""), language=language)


@shared_task(bind=True, acks_late=True)
def deliver_email(self, job: dict):
    job = DispatchJob.from_message(job)
    email = job.payload

    def send():
        return get_email_provider().send_email(job.recipient, email["subject"], email["html"], email.get("text", ""))

    return _deliver(self, job, send, template_name=email.get("subject", ""))


@shared_task(bind=True, acks_late=True)
def deliver_push(self, job: dict):
    job = DispatchJob.from_message(job)
    push = job.payload

    def send():
        try:
            return get_push_provider().send_push(job.recipient, push["title"], push["body"], push.get("data"))
        except ProviderError as e:
            if e.code in INVALID_TOKEN_CODES:
                # dead device token; retrying cannot help
                e.retryable = False
            raise

    return _deliver(self, job, send, template_name=push.get("title", ""))


@shared_task
def purge_old_records():
    """Daily: drop webhook events and finished delivery logs past retention."""
    days = int(getattr(settings, "MESSAGING_RETENTION_DAYS", 30))
    cutoff = timezone.now() - timedelta(days=days)
    events, _ = WebhookEvent.objects.filter(created_at__lt=cutoff).delete()
    logs, _ = MessageLog.objects.filter(
        updated_at__lt=cutoff,
        status__in=list(MessageLog.DONE) + [MessageLog.Status.FAILED],
    ).delete()
    log.info("purge_old_records: removed %s webhook events, %s message logs older than %s days", events, logs, days)
    return {"webhook_events": events, "message_logs": logs}
