import pytest
from pydantic import ValidationError


def test_base_url_derived_from_subdomain(settings_factory):
    settings = settings_factory(ZENDESK_SUBDOMAIN="acme", ZENDESK_EMAIL="a@b.c", ZENDESK_API_TOKEN="t")

    assert settings.ZENDESK_BASE_URL == "https://acme.zendesk.com"
    assert settings.has_credentials


def test_explicit_base_url_wins_and_is_normalised(settings_factory):
    settings = settings_factory(ZENDESK_SUBDOMAIN="acme", ZENDESK_BASE_URL="https://support.example.com/")

    assert settings.ZENDESK_BASE_URL == "https://support.example.com"
    assert not settings.has_credentials


def test_invalid_concurrency_rejected(settings_factory):
    with pytest.raises(ValidationError):
        settings_factory(MAX_CONCURRENT_REQUESTS=0)


def test_refresh_interval_in_milliseconds(settings_factory):
    assert settings_factory(REFRESH_INTERVAL_SECONDS=2.5).refresh_interval_ms == 2500
