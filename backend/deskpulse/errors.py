"""Error taxonomy shared by the upstream client, the webhook boundary and the coordinator."""


class DeskPulseError(Exception):
    """Base error. ``status_code`` is what the HTTP layer answers with."""

    status_code: int = 500
    detail: str = "Internal server error"

    def __init__(self, detail: str | None = None):
        if detail is not None:
            self.detail = detail
        super().__init__(self.detail)


class UpstreamError(DeskPulseError):
    """Non-2xx answer from the ticketing API after retries were exhausted."""

    status_code = 502

    def __init__(self, status: int, body: str, path: str = ""):
        self.status = status
        self.body = body
        self.path = path
        label = f"HTTP {status}" if status else "transport error"
        super().__init__(f"Upstream {label} on {path or 'request'}: {body[:200]}")


class PerTicketFetchError(DeskPulseError):
    """A single ticket could not be fetched. Recorded, never propagated out of a batch."""

    def __init__(self, ticket_id: object, cause: BaseException):
        self.ticket_id = ticket_id
        self.cause = cause
        super().__init__(f"Ticket {ticket_id}: {cause}")


class ReconcileTimeoutError(DeskPulseError):
    def __init__(self, timeout: float):
        self.timeout = timeout
        super().__init__(f"Reconciliation exceeded {timeout:g}s deadline")


class SignatureError(DeskPulseError):
    status_code = 401
    detail = "Invalid webhook signature"


class MalformedPayloadError(DeskPulseError):
    status_code = 400
    detail = "Malformed webhook payload"


class OversizeBodyError(DeskPulseError):
    status_code = 413
    detail = "Request body too large"
