"""HMAC-SHA256 verification of inbound webhook notifications."""

import base64
import hashlib
import hmac

from deskpulse.errors import SignatureError


def expected_digest(secret: str, timestamp: str, raw_body: bytes) -> bytes:
    message = timestamp.encode() + b"." + raw_body
    return hmac.new(secret.encode(), message, hashlib.sha256).digest()


def verify_signature(secret: str, timestamp: str | None, signature: str | None, raw_body: bytes) -> None:
    """Raise ``SignatureError`` unless *signature* matches the body.

    The signature may be the base64 or the hex encoding of the digest; both
    are compared in constant time. An empty *secret* accepts everything.
    """
    if not secret:
        return
    if not timestamp or not signature:
        raise SignatureError("Missing webhook signature headers")

    digest = expected_digest(secret, timestamp, raw_body)
    provided = signature.strip()
    as_base64 = hmac.compare_digest(provided.encode(), base64.b64encode(digest))
    as_hex = hmac.compare_digest(provided.lower().encode(), digest.hex().encode())
    if not (as_base64 or as_hex):
        raise SignatureError()
