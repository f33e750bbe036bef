import base64
import hashlib
import hmac

import pytest

from deskpulse.errors import SignatureError
from deskpulse.webhooks.signature import verify_signature

BODY = b'{"type":"zen:event-type:ticket.status_changed","detail":{"id":"42"}}'


def digest(secret: str, timestamp: str, body: bytes) -> bytes:
    return hmac.new(secret.encode(), timestamp.encode() + b"." + body, hashlib.sha256).digest()


def test_accepts_base64_and_hex_signatures():
    raw = digest("s3cret", "2026-10-19T09:00:00Z", BODY)

    verify_signature("s3cret", "2026-10-19T09:00:00Z", base64.b64encode(raw).decode(), BODY)
    verify_signature("s3cret", "2026-10-19T09:00:00Z", raw.hex(), BODY)


def test_accepts_upper_case_hex_signature():
    raw = digest("s3cret", "1700000000", BODY)

    verify_signature("s3cret", "1700000000", raw.hex().upper(), BODY)
    verify_signature("s3cret", "1700000000", f"  {raw.hex().upper()}\n", BODY)


def test_rejects_tampered_body():
    raw = digest("s3cret", "1700000000", BODY)

    with pytest.raises(SignatureError):
        verify_signature("s3cret", "1700000000", base64.b64encode(raw).decode(), BODY + b" ")


def test_rejects_signature_over_different_timestamp():
    raw = digest("s3cret", "1700000000", BODY)

    with pytest.raises(SignatureError):
        verify_signature("s3cret", "1700000001", raw.hex(), BODY)


def test_rejects_missing_headers_when_secret_configured():
    with pytest.raises(SignatureError):
        verify_signature("s3cret", None, "abc", BODY)
    with pytest.raises(SignatureError):
        verify_signature("s3cret", "1700000000", None, BODY)


def test_empty_secret_accepts_everything():
    verify_signature("", None, None, BODY)
