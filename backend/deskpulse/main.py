from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from deskpulse.config import Settings, settings as default_settings
from deskpulse.metrics.router import router as metrics_router
from deskpulse.middleware.error_handler import ErrorHandlerMiddleware
from deskpulse.middleware.logging import RequestLoggingMiddleware
from deskpulse.runtime import MetricsRuntime
from deskpulse.webhooks.router import router as webhooks_router

structlog.configure(
    processors=[
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.dev.ConsoleRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    logger_factory=structlog.PrintLoggerFactory(),
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    runtime: MetricsRuntime = app.state.runtime
    await runtime.start()
    yield
    await runtime.stop()


def create_app(settings: Settings | None = None, runtime: MetricsRuntime | None = None) -> FastAPI:
    settings = settings or default_settings
    app = FastAPI(
        title="Support Desk KPI Dashboard",
        version="0.1.0",
        docs_url="/docs",
        lifespan=lifespan,
    )
    app.state.runtime = runtime or MetricsRuntime(settings)

    cors_origins = [o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=False,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )
    app.add_middleware(ErrorHandlerMiddleware)
    app.add_middleware(RequestLoggingMiddleware)

    app.include_router(metrics_router, prefix="/api")
    app.include_router(webhooks_router, prefix="/api")

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    return app


app = create_app()
