"""Authenticated read client for the Zendesk REST API, with retry/backoff."""

import asyncio
import base64
from collections.abc import Awaitable, Callable

import httpx
import structlog

from deskpulse.config import Settings
from deskpulse.errors import UpstreamError

logger = structlog.get_logger()

RETRYABLE_STATUSES = frozenset({429})

SleepFunc = Callable[[float], Awaitable[None]]


def build_auth_header(email: str, api_token: str) -> str:
    """Build Basic Auth header for a Zendesk API token."""
    credentials = f"{email}/token:{api_token}"
    encoded = base64.b64encode(credentials.encode()).decode()
    return f"Basic {encoded}"


def is_retryable(status_code: int) -> bool:
    return status_code in RETRYABLE_STATUSES or 500 <= status_code <= 599


def parse_retry_after(value: str | None) -> float | None:
    """Seconds from a Retry-After header, or None when absent/unparsable."""
    if not value:
        return None
    try:
        seconds = float(value.strip())
    except ValueError:
        return None
    if seconds < 0:
        return None
    return seconds


class UpstreamClient:
    """Issues GET requests against the ticketing API.

    429 and 5xx answers (and transport failures) are retried up to
    ``max_retries`` times. The wait before each retry is the server's
    Retry-After when present, otherwise ``base_delay * 2 ** attempt``.
    Other 4xx answers fail immediately with ``UpstreamError``.
    """

    def __init__(
        self,
        base_url: str,
        email: str,
        api_token: str,
        *,
        max_retries: int = 3,
        base_delay: float = 1.0,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: SleepFunc = asyncio.sleep,
    ):
        self.max_retries = max_retries
        self.base_delay = base_delay
        self._sleep = sleep
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers={
                "Authorization": build_auth_header(email, api_token),
                "Accept": "application/json",
            },
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs) -> "UpstreamClient":
        return cls(
            settings.ZENDESK_BASE_URL,
            settings.ZENDESK_EMAIL,
            settings.ZENDESK_API_TOKEN,
            max_retries=settings.UPSTREAM_MAX_RETRIES,
            base_delay=settings.UPSTREAM_RETRY_BASE_SECONDS,
            timeout=settings.UPSTREAM_TIMEOUT_SECONDS,
            **kwargs,
        )

    def backoff_delay(self, attempt: int, retry_after: str | None = None) -> float:
        server_delay = parse_retry_after(retry_after)
        if server_delay is not None:
            return server_delay
        return self.base_delay * (2 ** attempt)

    async def get(self, path: str, params: dict | None = None) -> dict:
        attempt = 0
        while True:
            try:
                response = await self._client.get(path, params=params)
            except httpx.TransportError as exc:
                if attempt >= self.max_retries:
                    logger.warning("upstream_transport_failed", path=path, attempts=attempt + 1, error=str(exc))
                    raise UpstreamError(0, str(exc) or type(exc).__name__, path) from exc
                delay = self.backoff_delay(attempt)
                logger.info("upstream_retry", path=path, attempt=attempt + 1, delay=delay, error=type(exc).__name__)
                await self._sleep(delay)
                attempt += 1
                continue

            if response.is_success:
                return response.json()

            status = response.status_code
            if not is_retryable(status) or attempt >= self.max_retries:
                logger.warning("upstream_request_failed", path=path, status=status, attempts=attempt + 1)
                raise UpstreamError(status, response.text, path)

            delay = self.backoff_delay(attempt, response.headers.get("retry-after"))
            logger.info("upstream_retry", path=path, attempt=attempt + 1, delay=delay, status=status)
            await self._sleep(delay)
            attempt += 1

    async def aclose(self) -> None:
        await self._client.aclose()
