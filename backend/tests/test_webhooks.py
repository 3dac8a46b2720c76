import hashlib
import hmac

import pytest

from messaging.webhooks import verify_bearer_token, verify_signature


@pytest.mark.parametrize("received,expected,ok", [
    ("Bearer abc123", "abc123", True),
    ("abc123", "abc123", True),
    ("abc123", "abc124", False),
    (None, "abc123", False),
    ("", "abc123", False),
    ("Bearer ", "", False),
    ("Bearer ", "abc123", False),
    ("abc123", "", False),
    ("abc123", None, False),
    ("Bearer abc1234", "abc123", False),   # length mismatch is a plain non-match
    ("bearer abc123", "abc123", False),    # prefix is case-sensitive
    ("Bearer Bearer abc123", "abc123", False),
    ("Bearer tökén", "tökén", True),
    ("Bearer \udcff", "abc", False),      # lone surrogate from an undecodable header
    ("Bearer abc", "\udcff", False),
    ("Bearer \udcff", "\udcff", True),
])
def test_verify_bearer_token(received, expected, ok):
    assert verify_bearer_token(received, expected) is ok


def test_verify_bearer_token_uses_constant_time_compare(monkeypatch):
    calls = []
    real = hmac.compare_digest

    def spy(a, b):
        calls.append((a, b))
        return real(a, b)

    monkeypatch.setattr("messaging.webhooks.hmac.compare_digest", spy)
    assert verify_bearer_token("Bearer abc123", "abc123")
    assert calls == [(b"abc123", b"abc123")]


def _sign(body: bytes, secret: str) -> str:
    return "sha256=" + hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()


def test_verify_signature_accepts_valid_hmac():
    body = b'{"object":"whatsapp_business_account"}'
    assert verify_signature(body, _sign(body, "s3cret"), "s3cret")


@pytest.mark.parametrize("header", [None, "", "deadbeef", "sha256=", "sha256=00"])
def test_verify_signature_rejects_bad_headers(header):
    assert not verify_signature(b"{}", header, "s3cret")


def test_verify_signature_rejects_tampered_body_and_missing_secret():
    body = b'{"a":1}'
    sig = _sign(body, "s3cret")
    assert not verify_signature(b'{"a":2}', sig, "s3cret")
    assert not verify_signature(body, sig, "")


def test_verify_signature_never_raises_on_undecodable_values():
    assert not verify_signature(b"{}", "sha256=\udcff", "s3cret")
    assert not verify_signature(b"{}", _sign(b"{}", "s3cret"), "s3\udcffcret")
