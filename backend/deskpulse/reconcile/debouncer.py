import asyncio
from collections.abc import Callable

import structlog

logger = structlog.get_logger()


class WebhookDebouncer:
    """Collapse bursts of change notifications into one callback.

    Each ``notify`` replaces the pending quiet-period timer; *on_quiet* runs
    once the window elapses with no further notification. Only the fact that
    something changed is kept, never the notification payloads.
    """

    def __init__(self, on_quiet: Callable[[], None], quiet_seconds: float):
        self._on_quiet = on_quiet
        self._quiet_seconds = quiet_seconds
        self._timer: asyncio.Task | None = None
        self.notifications = 0
        self.fired = 0

    @property
    def pending(self) -> bool:
        return self._timer is not None

    def notify(self) -> None:
        self.notifications += 1
        if self._timer is not None:
            self._timer.cancel()
        self._timer = asyncio.get_running_loop().create_task(self._wait_quiet())

    async def _wait_quiet(self) -> None:
        await asyncio.sleep(self._quiet_seconds)
        self._timer = None
        self.fired += 1
        logger.info("webhook_debounce_elapsed", notifications=self.notifications, fired=self.fired)
        try:
            self._on_quiet()
        except Exception:
            logger.exception("webhook_debounce_callback_failed")

    async def aclose(self) -> None:
        timer, self._timer = self._timer, None
        if timer is None:
            return
        timer.cancel()
        try:
            await timer
        except asyncio.CancelledError:
            pass
