import uuid
from .base import EmailProvider, PushProvider, WhatsAppProvider

class MockProvider(WhatsAppProvider):
    def send_template(self, to_phone_e164: str, template: dict, tracking_id=None):
        # pretend it's accepted immediately
        return (f"mock-{uuid.uuid4()}", "accepted")

class MockEmailProvider(EmailProvider):
    def send_email(self, to: str, subject: str, html: str, text: str = ""):
        return (f"<mock-{uuid.uuid4()}@localhost>", "sent")

class MockPushProvider(PushProvider):
    def send_push(self, token: str, title: str, body: str, data=None):
        return (f"projects/mock/messages/{uuid.uuid4()}", "sent")
