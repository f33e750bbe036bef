"""Read and parse Zendesk webhook notifications."""

import json

from fastapi import Request

from deskpulse.errors import MalformedPayloadError, OversizeBodyError


async def read_limited_body(request: Request, max_bytes: int) -> bytes:
    """Read the request body, aborting as soon as it exceeds *max_bytes*."""
    declared = request.headers.get("content-length")
    if declared is not None:
        try:
            if int(declared) > max_bytes:
                raise OversizeBodyError()
        except ValueError:
            raise MalformedPayloadError("Invalid Content-Length header") from None

    chunks: list[bytes] = []
    size = 0
    async for chunk in request.stream():
        size += len(chunk)
        if size > max_bytes:
            raise OversizeBodyError()
        chunks.append(chunk)
    return b"".join(chunks)


def parse_webhook_payload(raw_body: bytes) -> dict:
    """Parse a notification into a summary dict used only for logging.

    The payload itself never reaches the coordinator; a refresh recomputes
    everything from the API.
    """
    try:
        payload = json.loads(raw_body)
    except (UnicodeDecodeError, json.JSONDecodeError):
        raise MalformedPayloadError("Invalid JSON") from None
    if not isinstance(payload, dict):
        raise MalformedPayloadError("Webhook payload must be a JSON object")

    detail = payload.get("detail") or {}
    if not isinstance(detail, dict):
        detail = {}
    return {
        "event_type": payload.get("type") or payload.get("event_type") or "unknown",
        "ticket_id": detail.get("id") or payload.get("ticket_id"),
        "event_id": payload.get("id"),
    }
