# messaging/providers/brevo.py
import os

import requests

from ..exceptions import ProviderConfigurationError, ProviderError
from .base import EmailProvider, error_from_response


class BrevoProvider(EmailProvider):
    """
    Thin wrapper over the Brevo transactional email API (v3 /smtp/email).
    Requires BREVO_API_KEY; sender defaults come from BREVO_FROM_EMAIL / BREVO_FROM_NAME.
    """
    def __init__(self):
        self.api_key = os.getenv("BREVO_API_KEY")
        self.base_url = os.getenv("BREVO_BASE_URL", "https://api.brevo.com/v3/smtp/email")
        self.from_email = os.getenv("BREVO_FROM_EMAIL", "noreply@example.com")
        self.from_name = os.getenv("BREVO_FROM_NAME", "notifyhub")
        if not self.api_key:
            raise ProviderConfigurationError("Missing BREVO_API_KEY")

    def send_email(self, to: str, subject: str, html: str, text: str = ""):
        payload = {
            "sender": {"name": self.from_name, "email": self.from_email},
            "to": [{"email": to}],
            "subject": subject,
            "htmlContent": html,
            "replyTo": {"email": self.from_email, "name": self.from_name},
            "headers": {
                "List-Unsubscribe": f"<mailto:{self.from_email}?subject=Unsubscribe>",
                "List-Unsubscribe-Post": "List-Unsubscribe=One-Click",
            },
            "tags": ["transactional"],
        }
        if text:
            payload["textContent"] = text
        headers = {"api-key": self.api_key, "Content-Type": "application/json"}
        try:
            r = requests.post(self.base_url, json=payload, headers=headers, timeout=20)
        except requests.RequestException as e:
            raise ProviderError(f"Brevo transport error: {e}") from e
        if not r.ok:
            raise error_from_response(r, "Brevo")
        try:
            data = r.json()
        except ValueError:
            data = {}
        # messageId looks like "<2021...@smtp-relay.mailin.fr>"; Brevo webhooks send it back as message-id
        return (data.get("messageId", "") or "", "sent")
