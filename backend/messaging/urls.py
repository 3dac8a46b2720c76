from django.urls import path
from .views import email_webhook, wa_webhook

urlpatterns = [
    path("webhooks/whatsapp/", wa_webhook, name="wa_webhook"),
    path("webhooks/email/", email_webhook, name="email_webhook"),
]
