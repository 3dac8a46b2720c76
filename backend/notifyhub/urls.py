from django.conf import settings
from django.contrib import admin
from django.http import JsonResponse
from django.urls import path, include

def health(_):
    return JsonResponse({"ok": True})

urlpatterns = [
    path("health/", health),
    path(f"{settings.ADMIN_URL}/", admin.site.urls),
    path("", include("messaging.urls")),
    path("", include("ops.urls")),
]
