"""Payment ledger clients."""

from typing import Optional

from ..config import Settings
from .base import LedgerClientBase, LedgerPage
from .stripe_ledger import StripeLedgerClient
from .simulator_ledger import (
    SimulatorLedgerClient,
    SimulatorConfig,
    SimulatedIntent,
)


def get_ledger_client(
    provider: Optional[str] = None,
    settings: Optional[Settings] = None,
) -> LedgerClientBase:
    """Factory function to get the ledger client for a provider.

    Args:
        provider: Ledger provider name. Defaults to ``settings.ledger_provider``.
        settings: Settings carrying provider credentials.

    Returns:
        LedgerClientBase implementation for the provider.

    Raises:
        ValueError: If the provider is not supported.
    """
    settings = settings or Settings()
    provider = (provider or settings.ledger_provider).lower()
    if provider == "stripe":
        return StripeLedgerClient(api_key=settings.stripe_secret_key)
    if provider == "simulator":
        return SimulatorLedgerClient()
    raise ValueError(f"Unsupported ledger provider: {provider}")


__all__ = [
    "LedgerClientBase",
    "LedgerPage",
    "StripeLedgerClient",
    "SimulatorLedgerClient",
    "SimulatorConfig",
    "SimulatedIntent",
    "get_ledger_client",
]
