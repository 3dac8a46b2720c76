from django.apps import AppConfig
from django.conf import settings


class MessagingConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "messaging"

    def ready(self):
        # One template cache + one queue per channel for the whole process
        from .dispatch import DispatchQueue, RetryPolicy
        from .resolver import TemplateResolver
        from .tasks import deliver_email, deliver_push, deliver_whatsapp_message
        from .template_store import TemplateStore

        self.template_store = TemplateStore(
            settings.MESSAGING_TEMPLATE_DIR,
            default_language=settings.MESSAGING_DEFAULT_LANGUAGE,
        )
        self.resolver = TemplateResolver(self.template_store)
        policy = RetryPolicy.from_settings()
        self.whatsapp_queue = DispatchQueue(deliver_whatsapp_message, "whatsapp", policy)
        self.email_queue = DispatchQueue(deliver_email, "email", policy)
        self.push_queue = DispatchQueue(deliver_push, "push", policy)
