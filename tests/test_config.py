"""Tests for runtime settings."""

import pytest
from pydantic import ValidationError as PydanticValidationError

from terminal_payments.config import LEDGER_PAGE_CEILING, Settings


class TestSettings:
    """Tests for Settings validation."""

    def test_defaults(self):
        settings = Settings()

        assert settings.fallback_currency == "eur"
        assert settings.page_size == LEDGER_PAGE_CEILING
        assert settings.max_pages == 50
        assert settings.capture_method == "automatic"
        assert settings.reader_id_matching is True
        assert settings.port == 4242

    def test_page_size_clamped(self):
        assert Settings(page_size=500).page_size == LEDGER_PAGE_CEILING

    def test_currency_lowercased(self):
        assert Settings(fallback_currency="USD").fallback_currency == "usd"

    @pytest.mark.parametrize("overrides", [
        {"capture_method": "later"},
        {"fallback_currency": ""},
        {"page_size": 0},
        {"max_pages": 0},
    ])
    def test_invalid(self, overrides):
        with pytest.raises(PydanticValidationError):
            Settings(**overrides)


class TestFromEnv:
    """Tests for Settings.from_env."""

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("API_KEY", "secret")
        monkeypatch.setenv("STRIPE_SECRET_KEY", "sk_test_1")
        monkeypatch.setenv("LEDGER_PROVIDER", "simulator")
        monkeypatch.setenv("FALLBACK_CURRENCY", "GBP")
        monkeypatch.setenv("LEDGER_PAGE_SIZE", "25")
        monkeypatch.setenv("LEDGER_MAX_PAGES", "4")
        monkeypatch.setenv("CAPTURE_METHOD", "manual")
        monkeypatch.setenv("READER_ID_MATCHING", "false")
        monkeypatch.setenv("RATE_LIMIT_ENABLED", "0")
        monkeypatch.setenv("PORT", "8080")

        settings = Settings.from_env()

        assert settings.api_key == "secret"
        assert settings.stripe_secret_key == "sk_test_1"
        assert settings.ledger_provider == "simulator"
        assert settings.fallback_currency == "gbp"
        assert settings.page_size == 25
        assert settings.max_pages == 4
        assert settings.capture_method == "manual"
        assert settings.reader_id_matching is False
        assert settings.rate_limit_enabled is False
        assert settings.port == 8080

    def test_legacy_stripe_key_name(self, monkeypatch):
        monkeypatch.delenv("STRIPE_SECRET_KEY", raising=False)
        monkeypatch.setenv("STRIPE_API_KEY", "sk_test_legacy")

        assert Settings.from_env().stripe_secret_key == "sk_test_legacy"

    def test_empty_api_key_is_unset(self, monkeypatch):
        monkeypatch.setenv("API_KEY", "")

        assert Settings.from_env().api_key is None
