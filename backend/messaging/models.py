from django.db import models
from django.utils import timezone


class MessageLog(models.Model):
    """
    Delivery record for one dispatch job. Written by the workers (never on the
    enqueue path) and advanced by provider status webhooks.
    """

    class Status(models.TextChoices):
        QUEUED = "QUEUED", "Queued"
        SENT = "SENT", "Sent"
        DELIVERED = "DELIVERED", "Delivered"
        READ = "READ", "Read"
        FAILED = "FAILED", "Failed"

    class Channel(models.TextChoices):
        WHATSAPP = "whatsapp", "WhatsApp"
        EMAIL = "email", "Email"
        PUSH = "push", "Push"

    job_id = models.CharField(max_length=64, unique=True)  # Celery task id returned by enqueue
    channel = models.CharField(max_length=16, choices=Channel.choices, default=Channel.WHATSAPP)
    recipient = models.CharField(max_length=254, blank=True, db_index=True)
    template_name = models.CharField(max_length=128, blank=True)  # provider template name or email subject
    language = models.CharField(max_length=16, blank=True)
    tracking_id = models.CharField(max_length=512, blank=True)
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.QUEUED)
    provider_msg_id = models.CharField(max_length=255, blank=True, db_index=True)
    attempts = models.PositiveIntegerField(default=0)
    sent_at = models.DateTimeField(null=True, blank=True)
    error_code = models.CharField(max_length=64, blank=True)
    error_title = models.CharField(max_length=255, blank=True)

    created_at = models.DateTimeField(default=timezone.now, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    # status can only move forward; FAILED may arrive at any point
    STATUS_RANK = {"QUEUED": 0, "SENT": 1, "DELIVERED": 2, "READ": 3}
    DONE = ("SENT", "DELIVERED", "READ")

    class Meta:
        indexes = [
            models.Index(fields=["channel", "status"], name="messaging_m_channel_5f0d1e_idx"),
            models.Index(fields=["status", "updated_at"], name="messaging_m_status_8b7c2a_idx"),
        ]

    def __str__(self):
        return f"{self.job_id[:8]} {self.channel} {self.template_name} {self.status}"

    def can_advance_to(self, status: str) -> bool:
        if status == self.Status.FAILED:
            return self.status != self.Status.READ
        if self.status == self.Status.FAILED:
            return False
        return self.STATUS_RANK.get(status, -1) > self.STATUS_RANK.get(self.status, -1)


class WebhookEvent(models.Model):
    """Inbound delivery-status callbacks, kept for idempotency and audit."""

    class Source(models.TextChoices):
        WHATSAPP = "whatsapp", "WhatsApp"
        EMAIL = "email", "Email"

    source = models.CharField(max_length=16, choices=Source.choices)
    event = models.CharField(max_length=32)
    external_event_id = models.CharField(max_length=255)
    reference_id = models.CharField(max_length=512, blank=True)  # tracking id when present
    payload = models.JSONField(blank=True, default=dict)
    created_at = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["source", "external_event_id", "event"], name="uniq_webhook_event"),
        ]

    def __str__(self):
        return f"{self.source}:{self.event} {self.external_event_id}"
