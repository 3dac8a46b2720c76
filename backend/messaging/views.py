import json
import logging
from datetime import datetime, timezone as dt_timezone

from django.conf import settings
from django.db import IntegrityError, transaction
from django.http import HttpResponse, HttpResponseForbidden, JsonResponse
from django.views.decorators.csrf import csrf_exempt

from .models import MessageLog, WebhookEvent
from .webhooks import verify_bearer_token, verify_signature

log = logging.getLogger(__name__)

WA_STATUS = {
    "sent": MessageLog.Status.SENT,
    "delivered": MessageLog.Status.DELIVERED,
    "read": MessageLog.Status.READ,
    "failed": MessageLog.Status.FAILED,
}

# Brevo transactional event names -> our status; anything else is stored but does not move status
EMAIL_STATUS = {
    "request": MessageLog.Status.SENT,
    "delivered": MessageLog.Status.DELIVERED,
    "opened": MessageLog.Status.READ,
    "unique_opened": MessageLog.Status.READ,
    "hard_bounce": MessageLog.Status.FAILED,
    "blocked": MessageLog.Status.FAILED,
    "invalid_email": MessageLog.Status.FAILED,
    "error": MessageLog.Status.FAILED,
    "spam": MessageLog.Status.FAILED,
}


def _record_event(source, event, external_id, reference_id, payload) -> bool:
    """False when we've already seen this (source, id, event); providers retry deliveries."""
    try:
        with transaction.atomic():
            WebhookEvent.objects.create(
                source=source, event=event, external_event_id=external_id,
                reference_id=reference_id or "", payload=payload,
            )
    except IntegrityError:
        return False
    return True


def _apply_status(provider_msg_id, status, error_code="", error_title=""):
    log_row = MessageLog.objects.filter(provider_msg_id=provider_msg_id).first()
    if not log_row:
        return False
    if not log_row.can_advance_to(status):
        # late or out-of-order event; do not regress
        return False
    log_row.status = status
    fields = ["status", "updated_at"]
    if status == MessageLog.Status.FAILED:
        log_row.error_code = str(error_code)[:64]
        log_row.error_title = (error_title or "")[:255]
        fields += ["error_code", "error_title"]
    log_row.save(update_fields=fields)
    return True


def _wa_status_events(data):
    for entry in data.get("entry", []) or []:
        for change in entry.get("changes", []) or []:
            if change.get("field", "messages") != "messages":
                continue
            value = change.get("value", {}) or {}
            for status in value.get("statuses", []) or []:
                yield entry.get("id", ""), value.get("metadata", {}) or {}, status


@csrf_exempt
def wa_webhook(request):
    # GET: verification
    if request.method == "GET":
        mode = request.GET.get("hub.mode")
        token = request.GET.get("hub.verify_token")
        challenge = request.GET.get("hub.challenge")
        if mode == "subscribe" and verify_bearer_token(token, settings.WA_VERIFY_TOKEN):
            log.info("[WhatsApp Webhook] Verification successful")
            return HttpResponse(challenge or "", content_type="text/plain")
        log.warning("[WhatsApp Webhook] Verification failed")
        return HttpResponseForbidden("Verification failed")

    # POST: events
    if request.method == "POST":
        signature = request.headers.get("X-Hub-Signature-256", "")
        if not verify_signature(request.body, signature, settings.WA_APP_SECRET):
            log.warning("[WhatsApp Webhook] Invalid signature")
            return HttpResponseForbidden("Invalid signature")
        try:
            data = json.loads(request.body.decode("utf-8"))
        except (UnicodeDecodeError, ValueError):
            return HttpResponse(status=400)
        if not isinstance(data, dict) or data.get("object") != "whatsapp_business_account":
            return HttpResponse(status=400)

        received = processed = 0
        for account_id, metadata, status in _wa_status_events(data):
            received += 1
            msg_id = status.get("id") or ""
            wa_status = (status.get("status") or "").lower()
            tracking_id = status.get("biz_opaque_callback_data") or ""
            error = status.get("errors", [{}])[0] if status.get("errors") else {}
            if not msg_id or not _record_event(
                WebhookEvent.Source.WHATSAPP, wa_status, msg_id, tracking_id,
                {
                    "messageId": msg_id,
                    "status": wa_status,
                    "timestamp": _ts(status.get("timestamp")),
                    "recipientId": status.get("recipient_id"),
                    "phoneNumberId": metadata.get("phone_number_id"),
                    "businessAccountId": account_id,
                    "trackingId": tracking_id or None,
                    "errors": status.get("errors"),
                    "isBillable": (status.get("pricing") or {}).get("billable"),
                },
            ):
                continue  # duplicate
            processed += 1
            log.info("[WhatsApp Webhook] Status: %s for message %s%s", wa_status, msg_id,
                     f" (tracking: {tracking_id})" if tracking_id else "")
            if wa_status == "failed":
                log.warning("[WhatsApp] Message %s failed: %s", msg_id, json.dumps(status.get("errors")))
            new_status = WA_STATUS.get(wa_status)
            if new_status:
                _apply_status(msg_id, new_status, error.get("code", ""), error.get("title", ""))
        return JsonResponse({"received": True, "processed": processed, "total": received})
    return HttpResponse(status=405)


@csrf_exempt
def email_webhook(request):
    if request.method != "POST":
        return HttpResponse(status=405)
    # authenticate before touching the body
    if not verify_bearer_token(request.headers.get("Authorization"), settings.EMAIL_WEBHOOK_TOKEN):
        log.warning("[Email Webhook] Rejected callback with invalid token")
        return JsonResponse({"error": "invalid token"}, status=401)
    try:
        data = json.loads(request.body.decode("utf-8"))
    except (UnicodeDecodeError, ValueError):
        return HttpResponse(status=400)
    if not isinstance(data, dict) or not data.get("event") or not data.get("message-id"):
        return HttpResponse(status=400)

    event = str(data["event"]).lower()
    msg_id = str(data["message-id"])
    if not _record_event(WebhookEvent.Source.EMAIL, event, msg_id, msg_id, data):
        return JsonResponse({"received": True, "duplicate": True})
    log.info("[Email Webhook] Stored event: %s for %s", event, msg_id)
    new_status = EMAIL_STATUS.get(event)
    if new_status:
        _apply_status(msg_id, new_status, event, data.get("reason", ""))
    return JsonResponse({"received": True})


def _ts(value):
    try:
        return datetime.fromtimestamp(int(value), tz=dt_timezone.utc).isoformat()
    except (TypeError, ValueError, OverflowError, OSError):
        return None
