from pydantic import Field, model_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Zendesk Support API (polling source of truth)
    ZENDESK_SUBDOMAIN: str = ""
    # Overrides the subdomain-derived https://<subdomain>.zendesk.com
    ZENDESK_BASE_URL: str = ""
    ZENDESK_EMAIL: str = ""
    ZENDESK_API_TOKEN: str = ""

    REFRESH_INTERVAL_SECONDS: float = Field(60.0, gt=0)
    SLA_TARGET_MINUTES: float = Field(480.0, gt=0)
    MAX_TICKETS_PER_CYCLE: int = Field(50, ge=1, le=100)
    MAX_CONCURRENT_REQUESTS: int = Field(5, ge=1)

    UPSTREAM_MAX_RETRIES: int = Field(3, ge=0)
    UPSTREAM_RETRY_BASE_SECONDS: float = Field(1.0, ge=0)
    UPSTREAM_TIMEOUT_SECONDS: float = Field(30.0, gt=0)

    # 0 disables the per-cycle deadline
    RECONCILE_TIMEOUT_SECONDS: float = Field(120.0, ge=0)

    # Empty secret accepts every webhook without verification
    WEBHOOK_SECRET: str = ""
    WEBHOOK_DEBOUNCE_SECONDS: float = Field(5.0, ge=0)
    WEBHOOK_SIGNATURE_HEADER: str = "X-Zendesk-Webhook-Signature"
    WEBHOOK_TIMESTAMP_HEADER: str = "X-Zendesk-Webhook-Signature-Timestamp"
    WEBHOOK_MAX_BODY_BYTES: int = Field(1_048_576, ge=1)

    SSE_KEEPALIVE_SECONDS: float = Field(15.0, gt=0)
    SSE_QUEUE_SIZE: int = Field(16, ge=1)
    SSE_RETRY_MS: int = Field(20_000, ge=0)

    METRICS_TIMEZONE: str = "UTC"

    CORS_ORIGINS: str = "http://localhost:3000"

    model_config = {"env_file": ".env", "extra": "ignore"}

    @model_validator(mode="after")
    def _derive_base_url(self):
        """Fall back to the subdomain URL when no explicit base URL is set."""
        if not self.ZENDESK_BASE_URL and self.ZENDESK_SUBDOMAIN:
            self.ZENDESK_BASE_URL = f"https://{self.ZENDESK_SUBDOMAIN}.zendesk.com"
        self.ZENDESK_BASE_URL = self.ZENDESK_BASE_URL.rstrip("/")
        return self

    @property
    def has_credentials(self) -> bool:
        return bool(self.ZENDESK_BASE_URL and self.ZENDESK_EMAIL and self.ZENDESK_API_TOKEN)

    @property
    def refresh_interval_ms(self) -> int:
        return int(self.REFRESH_INTERVAL_SECONDS * 1000)


settings = Settings()
