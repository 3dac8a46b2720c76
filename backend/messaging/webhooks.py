import hashlib
import hmac
from typing import Optional

BEARER_PREFIX = "Bearer "
SIGNATURE_PREFIX = "sha256="


def _equal(a: str, b: str) -> bool:
    # compare_digest returns False on length mismatch without leaking where bytes differ;
    # lone surrogates (os.getenv surrogateescape) must compare, not raise
    return hmac.compare_digest(a.encode("utf-8", "surrogatepass"), b.encode("utf-8", "surrogatepass"))


def verify_bearer_token(received_token: Optional[str], expected_token: Optional[str]) -> bool:
    """Check an ``Authorization`` header value against the configured token. Never raises."""
    if not received_token or not expected_token:
        return False
    token = received_token[len(BEARER_PREFIX):] if received_token.startswith(BEARER_PREFIX) else received_token
    if not token:
        return False
    return _equal(token, expected_token)


def verify_signature(raw_body: bytes, signature_header: Optional[str], app_secret: Optional[str]) -> bool:
    """X-Hub-Signature-256: HMAC-SHA256 of the raw request body keyed with the app secret."""
    if not app_secret or not signature_header or not signature_header.startswith(SIGNATURE_PREFIX):
        return False
    received = signature_header[len(SIGNATURE_PREFIX):]
    digest = hmac.new(app_secret.encode("utf-8", "surrogatepass"), raw_body or b"", hashlib.sha256).hexdigest()
    return _equal(received, digest)
