import structlog
from fastapi import APIRouter, Depends, Request, status

from deskpulse.dependencies import get_runtime
from deskpulse.errors import SignatureError
from deskpulse.runtime import MetricsRuntime
from deskpulse.webhooks.handler import parse_webhook_payload, read_limited_body
from deskpulse.webhooks.signature import verify_signature

logger = structlog.get_logger()
router = APIRouter(tags=["webhooks"])


@router.post("/webhook", status_code=status.HTTP_202_ACCEPTED)
async def receive_webhook(request: Request, runtime: MetricsRuntime = Depends(get_runtime)):
    """Receive a Zendesk change notification.

    Verified against the shared secret when one is configured, then folded
    into the debounce window. Never waits for the resulting refresh.
    """
    settings = runtime.settings
    raw_body = await read_limited_body(request, settings.WEBHOOK_MAX_BODY_BYTES)

    try:
        verify_signature(
            settings.WEBHOOK_SECRET,
            request.headers.get(settings.WEBHOOK_TIMESTAMP_HEADER),
            request.headers.get(settings.WEBHOOK_SIGNATURE_HEADER),
            raw_body,
        )
    except SignatureError:
        logger.warning("webhook_rejected", reason="bad_signature", size=len(raw_body))
        raise

    event = parse_webhook_payload(raw_body)
    runtime.debouncer.notify()

    logger.info("webhook_accepted", **event)
    return {"status": "accepted", "event_type": event["event_type"]}
