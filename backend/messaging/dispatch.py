"""
Hand-off between request code and the Celery delivery workers.

Request code builds the full provider payload up front and calls
``DispatchQueue.enqueue``; the only I/O is one publish to the broker. The job
id returned is the Celery task id and is what MessageLog rows are keyed by.
"""
import logging
import uuid
from dataclasses import dataclass, field
from typing import Optional

from django.conf import settings
from kombu.exceptions import OperationalError

from .exceptions import QueueUnavailableError

log = logging.getLogger(__name__)

TRACKING_ID_MAX_LENGTH = 512  # Cloud API limit for biz_opaque_callback_data


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 3
    backoff_delay: float = 5.0  # seconds before the first retry
    backoff_max: float = 300.0

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.backoff_delay < 0:
            raise ValueError("backoff_delay must be >= 0")

    def delay_for(self, retries: int) -> float:
        """Delay before retry number ``retries + 1`` (0-based count of retries done)."""
        return min(self.backoff_max, self.backoff_delay * (2 ** retries))

    def exhausted(self, attempt: int) -> bool:
        return attempt >= self.max_attempts

    @classmethod
    def from_settings(cls) -> "RetryPolicy":
        return cls(
            max_attempts=int(getattr(settings, "MESSAGING_RETRY_ATTEMPTS", 3)),
            backoff_delay=float(getattr(settings, "MESSAGING_RETRY_DELAY_SECONDS", 5)),
            backoff_max=float(getattr(settings, "MESSAGING_RETRY_MAX_DELAY_SECONDS", 300)),
        )

    def to_dict(self) -> dict:
        return {"max_attempts": self.max_attempts, "backoff_delay": self.backoff_delay,
                "backoff_max": self.backoff_max}

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "RetryPolicy":
        return cls(**(data or {}))


@dataclass(frozen=True)
class DispatchJob:
    channel: str
    recipient: str
    payload: dict
    tracking_id: Optional[str] = None
    retry_policy: RetryPolicy = field(default_factory=RetryPolicy)

    def to_message(self) -> dict:
        return {
            "channel": self.channel,
            "recipient": self.recipient,
            "payload": self.payload,
            "tracking_id": self.tracking_id,
            "retry_policy": self.retry_policy.to_dict(),
        }

    @classmethod
    def from_message(cls, data: dict) -> "DispatchJob":
        return cls(
            channel=data["channel"],
            recipient=data["recipient"],
            payload=data["payload"],
            tracking_id=data.get("tracking_id"),
            retry_policy=RetryPolicy.from_dict(data.get("retry_policy")),
        )


def truncate_tracking_id(tracking_id: Optional[str]) -> Optional[str]:
    if not tracking_id:
        return None
    return tracking_id[:TRACKING_ID_MAX_LENGTH]


def mask_recipient(recipient: str) -> str:
    """Keep enough of a phone/email for log correlation, not the whole thing."""
    r = recipient or ""
    if "@" in r:
        local, _, domain = r.partition("@")
        return f"{local[:2]}***@{domain}"
    return f"***{r[-4:]}" if len(r) > 4 else "***"


class DispatchQueue:
    """
    One queue per channel. ``task`` is the Celery task that consumes the jobs;
    every job carries this queue's RetryPolicy so the worker never has to guess.
    """

    def __init__(self, task, channel: str, retry_policy: Optional[RetryPolicy] = None):
        self.task = task
        self.channel = channel
        self.retry_policy = retry_policy or RetryPolicy.from_settings()

    def enqueue(self, recipient: str, payload, tracking_id: Optional[str] = None) -> str:
        if hasattr(payload, "to_dict"):
            payload = payload.to_dict()
        job = DispatchJob(
            channel=self.channel,
            recipient=recipient,
            payload=dict(payload),
            tracking_id=truncate_tracking_id(tracking_id),
            retry_policy=self.retry_policy,
        )
        job_id = str(uuid.uuid4())
        try:
            # retry=False: fail fast instead of blocking the request on a dead broker
            self.task.apply_async(kwargs={"job": job.to_message()}, task_id=job_id, retry=False)
        except (OperationalError, OSError) as e:
            log.error("Failed to queue %s message for %s: %s", self.channel, mask_recipient(recipient), e)
            raise QueueUnavailableError(f"{self.channel} queue unavailable: {e}") from e
        log.info("%s job added to queue with ID: %s for %s", self.channel, job_id, mask_recipient(recipient))
        return job_id
