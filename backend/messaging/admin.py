from django.contrib import admin
from .models import MessageLog, WebhookEvent

@admin.register(MessageLog)
class MessageLogAdmin(admin.ModelAdmin):
    list_display = ("created_at", "channel", "template_name", "language", "status", "attempts", "provider_msg_id")
    list_filter = ("channel", "status", "template_name", "language")
    search_fields = ("job_id", "provider_msg_id", "tracking_id")
    readonly_fields = ("created_at", "updated_at", "sent_at", "job_id", "recipient", "attempts")

@admin.register(WebhookEvent)
class WebhookEventAdmin(admin.ModelAdmin):
    list_display = ("created_at", "source", "event", "external_event_id", "reference_id")
    list_filter = ("source", "event")
    search_fields = ("external_event_id", "reference_id")
    readonly_fields = ("created_at", "payload")
