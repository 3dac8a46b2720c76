import os
from typing import Optional

import requests

from ..exceptions import ProviderConfigurationError, ProviderError
from .base import WhatsAppProvider, error_from_response

# Cloud API error codes that will fail the same way on every retry
NON_RETRYABLE_CODES = {
    "131026",  # number not on WhatsApp
    "131047",  # re-engagement message required
    "131051",  # unsupported message type
    "132000",  # template not found / param count mismatch
    "132001",  # template does not exist in this language
    "132007",  # template paused
}


class MetaCloudProvider(WhatsAppProvider):
    """
    Minimal wrapper for WhatsApp Cloud API (template sends).
    Requires:
      WA_PHONE_NUMBER_ID, WA_ACCESS_TOKEN
    """
    def __init__(self):
        self.phone_number_id = os.getenv("WA_PHONE_NUMBER_ID")
        self.token = os.getenv("WA_ACCESS_TOKEN")
        self.api_version = os.getenv("WA_API_VERSION", "v24.0")
        self.base_url = os.getenv("WA_BASE_URL", "https://graph.facebook.com")
        self.timeout = int(os.getenv("WA_TIMEOUT_SECONDS", "20"))
        if not self.phone_number_id or not self.token:
            raise ProviderConfigurationError("Meta Cloud Provider missing WA_PHONE_NUMBER_ID/WA_ACCESS_TOKEN")

    def send_template(self, to_phone_e164: str, template: dict, tracking_id: Optional[str] = None):
        url = f"{self.base_url}/{self.api_version}/{self.phone_number_id}/messages"
        headers = {"Authorization": f"Bearer {self.token}", "Content-Type": "application/json"}
        payload = {
            "messaging_product": "whatsapp",
            "recipient_type": "individual",
            "to": (to_phone_e164 or "").lstrip("+"),
            "type": "template",
            "template": template,
        }
        if tracking_id:
            payload["biz_opaque_callback_data"] = tracking_id  # echoed back in status webhooks
        try:
            r = requests.post(url, json=payload, headers=headers, timeout=self.timeout)
        except requests.RequestException as e:
            raise ProviderError(f"WhatsApp transport error: {e}") from e
        if not r.ok:
            err = error_from_response(r, "WhatsApp")
            if err.code in NON_RETRYABLE_CODES:
                err.retryable = False
            raise err
        data = r.json()
        msg = (data.get("messages") or [{}])[0]
        return (msg.get("id", "") or "", msg.get("message_status") or "accepted")
