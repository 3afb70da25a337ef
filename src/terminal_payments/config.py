"""Process-wide configuration, built once at startup and passed into components."""

import os
import logging
from typing import Optional

from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)

# Stripe refuses list calls with limit > 100
LEDGER_PAGE_CEILING = 100

DEFAULT_FALLBACK_CURRENCY = "eur"


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Settings(BaseModel):
    """Runtime settings for the terminal backend.

    Attributes:
        api_key: Shared secret terminals send in the ``X-API-Key`` header.
        stripe_secret_key: Stripe secret key used by the Stripe ledger client.
        ledger_provider: ``stripe`` or ``simulator``.
        fallback_currency: Currency reported when no transaction matches.
        page_size: Records requested per ledger list call.
        max_pages: Upper bound on sequential list calls per report.
        capture_method: ``automatic`` or ``manual`` for newly created intents.
        reader_id_matching: Enables the legacy reader-id attribution strategy.
        rate_limit: slowapi limit string applied to every route.
        rate_limit_enabled: Turns the limiter off entirely when False.
        port: Port used by ``terminal-payments serve``.
    """

    api_key: Optional[str] = None
    stripe_secret_key: Optional[str] = None
    ledger_provider: str = "stripe"
    fallback_currency: str = DEFAULT_FALLBACK_CURRENCY
    page_size: int = Field(default=LEDGER_PAGE_CEILING, ge=1)
    max_pages: int = Field(default=50, ge=1)
    capture_method: str = "automatic"
    reader_id_matching: bool = True
    rate_limit: str = "120/minute"
    rate_limit_enabled: bool = True
    port: int = 4242

    @field_validator("fallback_currency")
    @classmethod
    def _lowercase_currency(cls, value: str) -> str:
        if not value:
            raise ValueError("fallback_currency must not be empty")
        return value.lower()

    @field_validator("page_size")
    @classmethod
    def _clamp_page_size(cls, value: int) -> int:
        if value > LEDGER_PAGE_CEILING:
            logger.warning(
                f"page_size {value} exceeds ledger ceiling, using {LEDGER_PAGE_CEILING}"
            )
            return LEDGER_PAGE_CEILING
        return value

    @field_validator("capture_method")
    @classmethod
    def _check_capture_method(cls, value: str) -> str:
        if value not in ("automatic", "manual"):
            raise ValueError("capture_method must be 'automatic' or 'manual'")
        return value

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables.

        Returns:
            Settings populated from the process environment, with defaults for
            anything unset.
        """
        values = {
            "api_key": os.getenv("API_KEY") or None,
            "stripe_secret_key": (
                os.getenv("STRIPE_SECRET_KEY") or os.getenv("STRIPE_API_KEY") or None
            ),
            "ledger_provider": os.getenv("LEDGER_PROVIDER", "stripe"),
            "fallback_currency": os.getenv("FALLBACK_CURRENCY", DEFAULT_FALLBACK_CURRENCY),
            "capture_method": os.getenv("CAPTURE_METHOD", "automatic"),
            "reader_id_matching": _env_bool("READER_ID_MATCHING", True),
            "rate_limit": os.getenv("RATE_LIMIT", "120/minute"),
            "rate_limit_enabled": _env_bool("RATE_LIMIT_ENABLED", True),
        }
        if os.getenv("LEDGER_PAGE_SIZE"):
            values["page_size"] = int(os.environ["LEDGER_PAGE_SIZE"])
        if os.getenv("LEDGER_MAX_PAGES"):
            values["max_pages"] = int(os.environ["LEDGER_MAX_PAGES"])
        if os.getenv("PORT"):
            values["port"] = int(os.environ["PORT"])
        return cls(**values)
