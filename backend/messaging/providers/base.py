from abc import ABC, abstractmethod
from typing import Optional, Tuple

import requests

from ..exceptions import ProviderError

# HTTP statuses worth retrying; every other 4xx means the request itself is wrong
RETRYABLE_STATUSES = {408, 425, 429}


def error_from_response(r: requests.Response, provider: str) -> ProviderError:
    try:
        data = r.json()
    except ValueError:
        data = None
    if not isinstance(data, dict):
        data = {}
    # Graph API nests details under "error"; Brevo puts code/message at the top level
    err = data.get("error") if isinstance(data.get("error"), dict) else data
    code = err.get("code") or r.status_code
    title = err.get("message") or err.get("type") or r.reason or ""
    retryable = r.status_code >= 500 or r.status_code in RETRYABLE_STATUSES
    return ProviderError(f"{provider} HTTP {r.status_code}: {title}", code=code, title=title, retryable=retryable)


class WhatsAppProvider(ABC):
    @abstractmethod
    def send_template(self, to_phone_e164: str, template: dict, tracking_id: Optional[str] = None) -> Tuple[str, str]:
        """
        Returns (provider_msg_id, provider_status)
        template is the already-built Cloud API ``template`` object (see resolver.BuiltPayload)
        """
        raise NotImplementedError


class EmailProvider(ABC):
    @abstractmethod
    def send_email(self, to: str, subject: str, html: str, text: str = "") -> Tuple[str, str]:
        raise NotImplementedError


class PushProvider(ABC):
    @abstractmethod
    def send_push(self, token: str, title: str, body: str, data: Optional[dict] = None) -> Tuple[str, str]:
        """
        Returns (provider_msg_id, provider_status). A dead or malformed device token
        raises ProviderError with one of INVALID_TOKEN_CODES.
        """
        raise NotImplementedError


# FCM error codes meaning the device token will never work again
INVALID_TOKEN_CODES = {
    "messaging/invalid-registration-token",
    "messaging/registration-token-not-registered",
    "messaging/invalid-argument",
}
