from unittest.mock import MagicMock

import pytest
import requests

from messaging.exceptions import ProviderConfigurationError, ProviderError
from messaging.providers import get_email_provider, get_push_provider, get_whatsapp_provider
from messaging.providers.brevo import BrevoProvider
from messaging.providers.meta_cloud import MetaCloudProvider
from messaging.providers.mock import MockEmailProvider, MockProvider, MockPushProvider

TEMPLATE = {"name": "welcome_v1", "language": {"policy": "deterministic", "code": "en_US"}}


def _response(status=200, data=None, reason="OK"):
    r = MagicMock(spec=requests.Response)
    r.status_code = status
    r.ok = status < 400
    r.reason = reason
    if data is None:
        r.json.side_effect = ValueError("no json")
    else:
        r.json.return_value = data
    return r


@pytest.fixture
def meta_env(monkeypatch):
    monkeypatch.setenv("WA_PHONE_NUMBER_ID", "1234567890")
    monkeypatch.setenv("WA_ACCESS_TOKEN", "EAAG-test")
    monkeypatch.delenv("WA_BASE_URL", raising=False)
    monkeypatch.delenv("WA_API_VERSION", raising=False)


@pytest.fixture
def post(monkeypatch):
    mock = MagicMock()
    monkeypatch.setattr(requests, "post", mock)
    return mock


def test_picker_defaults_to_mock(settings):
    settings.WHATSAPP_PROVIDER = ""
    settings.EMAIL_PROVIDER = "MOCK"
    assert isinstance(get_whatsapp_provider(), MockProvider)
    assert isinstance(get_email_provider(), MockEmailProvider)


def test_picker_unknown_provider(settings):
    settings.WHATSAPP_PROVIDER = "carrier-pigeon"
    with pytest.raises(ProviderConfigurationError, match="carrier-pigeon"):
        get_whatsapp_provider()


def test_push_picker(settings):
    settings.PUSH_PROVIDER = "mock"
    msg_id, status = get_push_provider().send_push("tok", "t", "b", {"k": "v"})
    assert isinstance(get_push_provider(), MockPushProvider)
    assert msg_id and status == "sent"
    settings.PUSH_PROVIDER = "apns"
    with pytest.raises(ProviderConfigurationError, match="apns"):
        get_push_provider()


def test_meta_requires_credentials(monkeypatch):
    monkeypatch.delenv("WA_PHONE_NUMBER_ID", raising=False)
    monkeypatch.setenv("WA_ACCESS_TOKEN", "x")
    with pytest.raises(ProviderConfigurationError):
        MetaCloudProvider()


def test_meta_send_template(meta_env, post):
    post.return_value = _response(data={"messages": [{"id": "wamid.HBg", "message_status": "accepted"}]})

    assert MetaCloudProvider().send_template("+15551234567", TEMPLATE, "signup:42") == ("wamid.HBg", "accepted")

    url = post.call_args.args[0]
    body = post.call_args.kwargs["json"]
    assert url == "https://graph.facebook.com/v24.0/1234567890/messages"
    assert post.call_args.kwargs["headers"]["Authorization"] == "Bearer EAAG-test"
    assert body["to"] == "15551234567"
    assert body["template"] == TEMPLATE
    assert body["biz_opaque_callback_data"] == "signup:42"


def test_meta_omits_tracking_when_absent(meta_env, post):
    post.return_value = _response(data={"messages": [{"id": "wamid.X"}]})
    assert MetaCloudProvider().send_template("+1555", TEMPLATE) == ("wamid.X", "accepted")
    assert "biz_opaque_callback_data" not in post.call_args.kwargs["json"]


@pytest.mark.parametrize("status, code, retryable", [
    (400, 132001, False),   # template missing in language
    (400, 100, False),      # plain bad request
    (429, 130429, True),    # throughput limit
    (503, 1, True),
])
def test_meta_error_classification(meta_env, post, status, code, retryable):
    post.return_value = _response(status, {"error": {"code": code, "message": "boom"}}, reason="Err")
    with pytest.raises(ProviderError) as ei:
        MetaCloudProvider().send_template("+1555", TEMPLATE)
    assert ei.value.code == str(code)
    assert ei.value.title == "boom"
    assert ei.value.retryable is retryable


def test_meta_transport_error_is_retryable(meta_env, post):
    post.side_effect = requests.ConnectionError("reset by peer")
    with pytest.raises(ProviderError) as ei:
        MetaCloudProvider().send_template("+1555", TEMPLATE)
    assert ei.value.retryable


def test_brevo_send_email(monkeypatch, post):
    monkeypatch.setenv("BREVO_API_KEY", "xkeysib-test")
    post.return_value = _response(201, {"messageId": "<202401@smtp-relay.mailin.fr>"})

    out = BrevoProvider().send_email("ada@example.com", "Welcome", "<p>Hi</p>", "Hi")

    assert out == ("<202401@smtp-relay.mailin.fr>", "sent")
    body = post.call_args.kwargs["json"]
    assert body["to"] == [{"email": "ada@example.com"}]
    assert body["textContent"] == "Hi"
    assert post.call_args.kwargs["headers"]["api-key"] == "xkeysib-test"


def test_brevo_error_without_json_body(monkeypatch, post):
    monkeypatch.setenv("BREVO_API_KEY", "xkeysib-test")
    post.return_value = _response(502, None, reason="Bad Gateway")
    with pytest.raises(ProviderError) as ei:
        BrevoProvider().send_email("ada@example.com", "Welcome", "<p>Hi</p>")
    assert (ei.value.code, ei.value.title, ei.value.retryable) == ("502", "Bad Gateway", True)


def test_brevo_requires_api_key(monkeypatch):
    monkeypatch.delenv("BREVO_API_KEY", raising=False)
    with pytest.raises(ProviderConfigurationError):
        BrevoProvider()
