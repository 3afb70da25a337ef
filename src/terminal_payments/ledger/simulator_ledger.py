"""Simulator ledger for exercising terminal flows without real processor calls."""

import time
import uuid
import logging
import threading
from typing import Dict, Any, Optional, List
from dataclasses import dataclass, field

from ..errors import ConflictError, NotFoundError, UpstreamError
from .base import LedgerClientBase, LedgerPage

logger = logging.getLogger(__name__)

SUPPORTED_CURRENCIES = frozenset(["eur", "usd", "gbp", "chf", "sek", "dkk", "nok", "pln"])

# Fields the processor lets callers change after creation
UPDATABLE_FIELDS = frozenset(["receipt_email", "description", "metadata"])


@dataclass
class SimulatorConfig:
    """Configuration for simulator behavior."""
    delay_ms: int = 0  # Simulated response delay in ms
    unavailable: bool = False  # Every call fails as if the ledger were unreachable
    populate_reader_id: bool = False  # Record a reader id on the charge when a card is presented


@dataclass
class SimulatedIntent:
    """In-memory representation of a simulated payment intent."""
    id: str
    amount: int
    currency: str
    status: str
    created: int
    capture_method: str = "automatic"
    amount_received: int = 0
    amount_capturable: int = 0
    description: Optional[str] = None
    receipt_email: Optional[str] = None
    metadata: Dict[str, str] = field(default_factory=dict)
    reader_id: Optional[str] = None
    last_payment_error: Optional[Dict[str, Any]] = None

    @property
    def client_secret(self) -> str:
        return f"{self.id}_secret_{self.id[-8:]}"

    def to_dict(self) -> Dict[str, Any]:
        """Render the intent the way the processor's API would."""
        latest_charge = None
        if self.status in ("requires_capture", "succeeded"):
            latest_charge = {
                "id": f"ch_{self.id[3:]}",
                "object": "charge",
                "amount": self.amount,
                "payment_method_details": {
                    "type": "card_present",
                    "card_present": {"reader": self.reader_id},
                },
            }
        return {
            "id": self.id,
            "object": "payment_intent",
            "amount": self.amount,
            "amount_received": self.amount_received,
            "amount_capturable": self.amount_capturable,
            "currency": self.currency,
            "status": self.status,
            "created": self.created,
            "capture_method": self.capture_method,
            "client_secret": self.client_secret,
            "description": self.description,
            "receipt_email": self.receipt_email,
            "metadata": dict(self.metadata),
            "payment_method_types": ["card_present"],
            "latest_charge": latest_charge,
            "last_payment_error": self.last_payment_error,
        }


class SimulatorLedgerClient(LedgerClientBase):
    """
    In-memory ledger that mimics the processor's payment-intent API.

    Features:
    - Card-present intents with automatic or manual capture
    - Newest-first listing with cursor pagination and ``has_more``
    - Card presentment, decline and cancel helpers standing in for a reader
    - Outage simulation
    """

    def __init__(self, config: Optional[SimulatorConfig] = None):
        """Initialize the simulator with optional configuration."""
        self.config = config or SimulatorConfig()
        self._intents: Dict[str, SimulatedIntent] = {}
        self._lock = threading.Lock()
        self._clock = int(time.time())
        self.list_calls = 0
        logger.info("SimulatorLedgerClient initialized")

    def _generate_id(self) -> str:
        return f"pi_{uuid.uuid4().hex[:24]}"

    def _before_call(self) -> None:
        if self.config.delay_ms > 0:
            time.sleep(self.config.delay_ms / 1000.0)
        if self.config.unavailable:
            raise UpstreamError("Simulated ledger outage")

    def _get(self, transaction_id: str) -> SimulatedIntent:
        intent = self._intents.get(transaction_id)
        if not intent:
            raise NotFoundError(f"No such payment_intent: '{transaction_id}'")
        return intent

    def create_transaction(
        self,
        amount: int,
        currency: str,
        *,
        capture_method: str = "automatic",
        description: Optional[str] = None,
        receipt_email: Optional[str] = None,
        metadata: Optional[Dict[str, str]] = None,
        created: Optional[int] = None,
    ) -> Dict[str, Any]:
        """Create a simulated intent.

        ``created`` overrides the creation timestamp (simulator-specific, for
        placing records inside a reporting window).
        """
        self._before_call()
        if not isinstance(amount, int) or amount < 0:
            raise UpstreamError("This value must be greater than or equal to 0.")
        if currency.lower() not in SUPPORTED_CURRENCIES:
            raise UpstreamError(f"Invalid currency: {currency.lower()}")
        with self._lock:
            if created is None:
                # Strictly increasing so listing order is deterministic
                self._clock = max(self._clock + 1, int(time.time()))
                created = self._clock
            intent = SimulatedIntent(
                id=self._generate_id(),
                amount=amount,
                currency=currency.lower(),
                status="requires_payment_method",
                created=created,
                capture_method=capture_method,
                description=description,
                receipt_email=receipt_email,
                metadata=dict(metadata or {}),
            )
            self._intents[intent.id] = intent
        return intent.to_dict()

    def capture_transaction(
        self, transaction_id: str, amount_to_capture: Optional[int] = None
    ) -> Dict[str, Any]:
        self._before_call()
        with self._lock:
            intent = self._get(transaction_id)
            if intent.status != "requires_capture":
                raise ConflictError(
                    f"This PaymentIntent could not be captured because it has a status "
                    f"of {intent.status}."
                )
            amount = intent.amount if amount_to_capture is None else amount_to_capture
            if amount > intent.amount_capturable:
                raise UpstreamError(
                    "The amount_to_capture must be less than or equal to the amount_capturable."
                )
            intent.amount_received = amount
            intent.amount_capturable = 0
            intent.status = "succeeded"
            return intent.to_dict()

    def update_transaction(self, transaction_id: str, **fields: Any) -> Dict[str, Any]:
        self._before_call()
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise UpstreamError(f"Received unknown parameter: {sorted(unknown)[0]}")
        with self._lock:
            intent = self._get(transaction_id)
            for name, value in fields.items():
                if name == "metadata":
                    intent.metadata.update(value or {})
                else:
                    setattr(intent, name, value)
            return intent.to_dict()

    def list_transactions(
        self,
        created: Dict[str, int],
        limit: int,
        starting_after: Optional[str] = None,
        expand: Optional[List[str]] = None,
    ) -> LedgerPage:
        self._before_call()
        with self._lock:
            self.list_calls += 1
            ordered = sorted(
                self._intents.values(), key=lambda i: (i.created, i.id), reverse=True
            )
            if starting_after:
                cursor = self._get(starting_after)
                position = ordered.index(cursor)
                ordered = ordered[position + 1:]
            in_range = [
                i for i in ordered
                if created.get("gte", i.created) <= i.created <= created.get("lte", i.created)
            ]
            page = in_range[:limit]
            data = []
            for intent in page:
                rendered = intent.to_dict()
                if not expand or "data.latest_charge" not in expand:
                    # Unexpanded, the processor returns only the charge id
                    charge = rendered["latest_charge"]
                    rendered["latest_charge"] = charge["id"] if charge else None
                data.append(rendered)
            return LedgerPage(data=data, has_more=len(in_range) > limit)

    def issue_connection_credential(self) -> Dict[str, Any]:
        self._before_call()
        return {"object": "terminal.connection_token", "secret": f"pst_test_{uuid.uuid4().hex}"}

    def present_card(self, transaction_id: str, reader_id: str = "tmr_simulated") -> Dict[str, Any]:
        """Process a card on a reader (simulator-specific method).

        Manual-capture intents move to ``requires_capture``; automatic ones
        succeed immediately.
        """
        with self._lock:
            intent = self._get(transaction_id)
            if intent.status != "requires_payment_method":
                raise ConflictError(f"Cannot process payment with status {intent.status}")
            if self.config.populate_reader_id:
                intent.reader_id = reader_id
            intent.last_payment_error = None
            if intent.capture_method == "manual":
                intent.status = "requires_capture"
                intent.amount_capturable = intent.amount
            else:
                intent.status = "succeeded"
                intent.amount_received = intent.amount
            return intent.to_dict()

    def decline_card(self, transaction_id: str) -> Dict[str, Any]:
        """Simulate a declined card (simulator-specific method)."""
        with self._lock:
            intent = self._get(transaction_id)
            intent.last_payment_error = {"code": "card_declined", "type": "card_error"}
            return intent.to_dict()

    def cancel(self, transaction_id: str) -> Dict[str, Any]:
        """Cancel an uncaptured intent (simulator-specific method)."""
        with self._lock:
            intent = self._get(transaction_id)
            if intent.status == "succeeded":
                raise ConflictError("Cannot cancel a succeeded PaymentIntent")
            intent.status = "canceled"
            return intent.to_dict()

    def get_transaction(self, transaction_id: str) -> Optional[Dict[str, Any]]:
        """Get an intent from in-memory storage (for testing)."""
        intent = self._intents.get(transaction_id)
        return intent.to_dict() if intent else None

    def clear_transactions(self) -> None:
        """Clear all stored intents (for test cleanup)."""
        with self._lock:
            self._intents.clear()

    def health_check(self) -> Dict[str, Any]:
        """Return health status of the simulator."""
        return {
            "ok": not self.config.unavailable,
            "provider": "simulator",
            "transaction_count": len(self._intents),
        }
