import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from deskpulse.config import Settings
from deskpulse.main import create_app
from deskpulse.runtime import MetricsRuntime

WEBHOOK_SECRET = "s3cret"


def make_settings(**overrides) -> Settings:
    values = {
        "ZENDESK_SUBDOMAIN": "",
        "ZENDESK_BASE_URL": "",
        "ZENDESK_EMAIL": "",
        "ZENDESK_API_TOKEN": "",
        "WEBHOOK_SECRET": WEBHOOK_SECRET,
        "WEBHOOK_DEBOUNCE_SECONDS": 0.05,
        "WEBHOOK_MAX_BODY_BYTES": 1024,
        "REFRESH_INTERVAL_SECONDS": 60,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def settings_factory():
    return make_settings


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest_asyncio.fixture
async def runtime(settings: Settings):
    rt = MetricsRuntime(settings)
    yield rt
    await rt.stop()


@pytest_asyncio.fixture
async def client(settings: Settings, runtime: MetricsRuntime):
    app = create_app(settings, runtime=runtime)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
