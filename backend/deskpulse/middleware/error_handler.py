import structlog
from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from deskpulse.errors import DeskPulseError

logger = structlog.get_logger()


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Map ``DeskPulseError`` to its status code; anything else is a logged 500."""

    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)
        except DeskPulseError as exc:
            logger.warning(
                "request_rejected",
                path=request.url.path,
                status=exc.status_code,
                error=exc.detail,
            )
            return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})
        except Exception as exc:
            logger.error("unhandled_error", path=request.url.path, error=str(exc))
            return JSONResponse(
                status_code=500,
                content={"detail": "Internal server error"},
            )
