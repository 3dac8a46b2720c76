from datetime import timedelta

from django.db import models
from django.utils import timezone


class Heartbeat(models.Model):
    """Last time a periodic process (celery beat, workers) checked in."""

    key = models.CharField(max_length=32, unique=True)   # e.g., "beat"
    seen_at = models.DateTimeField(default=timezone.now, db_index=True)

    def __str__(self): return f"{self.key} @ {self.seen_at}"

    @classmethod
    def touch(cls, key: str) -> "Heartbeat":
        beat, _ = cls.objects.update_or_create(key=key, defaults={"seen_at": timezone.now()})
        return beat

    @classmethod
    def is_fresh(cls, key: str, max_age: timedelta) -> bool:
        return cls.objects.filter(key=key, seen_at__gte=timezone.now() - max_age).exists()
