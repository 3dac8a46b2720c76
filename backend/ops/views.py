from datetime import timedelta

from django.http import JsonResponse
from django.utils import timezone

from messaging.models import MessageLog
from .models import Heartbeat

BEAT_STALE_AFTER = timedelta(minutes=3)  # beat ticks every minute


def healthz(request):
    since = timezone.now() - timedelta(hours=1)
    failed_1h = MessageLog.objects.filter(status=MessageLog.Status.FAILED, updated_at__gte=since).count()
    return JsonResponse({
        "ok": True,
        "celery_beat_ok": Heartbeat.is_fresh("beat", BEAT_STALE_AFTER),
        "failed_deliveries_1h": failed_1h,
    })
