"""Shared test fixtures and configuration."""

import pytest
from unittest.mock import MagicMock
from typing import Dict, Any, Optional

from terminal_payments.config import Settings
from terminal_payments.ledger import SimulatorLedgerClient

# 2024-01-01T00:00:00Z
JAN_1 = 1704067200
HOUR = 3600


@pytest.fixture
def settings() -> Settings:
    """Settings wired to the simulator with rate limiting off."""
    return Settings(
        api_key="test_api_key_12345",
        ledger_provider="simulator",
        rate_limit_enabled=False,
    )


@pytest.fixture
def ledger() -> SimulatorLedgerClient:
    return SimulatorLedgerClient()


@pytest.fixture
def seed(ledger):
    """Create intents on the simulator ledger with a chosen outcome."""

    def _seed(
        amount: int,
        currency: str = "eur",
        created: int = JAN_1 + HOUR,
        terminal_label: Optional[str] = None,
        operator_name: Optional[str] = None,
        outcome: str = "succeeded",
    ) -> Dict[str, Any]:
        metadata = {}
        if terminal_label:
            metadata["terminal_label"] = terminal_label
        if operator_name:
            metadata["operator_name"] = operator_name
        pi = ledger.create_transaction(
            amount, currency, metadata=metadata, created=created
        )
        if outcome == "succeeded":
            return ledger.present_card(pi["id"])
        if outcome == "failed":
            return ledger.decline_card(pi["id"])
        if outcome == "canceled":
            return ledger.cancel(pi["id"])
        return pi

    return _seed


def make_payment_intent(**overrides) -> Dict[str, Any]:
    """Build a payment-intent dict shaped like the processor's API object."""
    pi = {
        "id": "pi_3OabcDEF1234567890abcd",
        "object": "payment_intent",
        "amount": 1000,
        "amount_received": 1000,
        "currency": "eur",
        "status": "succeeded",
        "created": JAN_1 + HOUR,
        "client_secret": "pi_3OabcDEF1234567890abcd_secret_xyz",
        "description": "Terminal Transaction",
        "receipt_email": None,
        "metadata": {},
        "latest_charge": "ch_3OabcDEF1234567890abcd",
        "last_payment_error": None,
    }
    pi.update(overrides)
    return pi


@pytest.fixture
def payment_intent_factory():
    return make_payment_intent


@pytest.fixture
def mock_stripe_object():
    """Wrap a dict the way the Stripe SDK returns objects."""

    def _wrap(data: Dict[str, Any]) -> MagicMock:
        obj = MagicMock()
        obj.id = data.get("id")
        obj.to_dict.return_value = data
        return obj

    return _wrap
