"""Normalized view of ledger transaction records."""

import enum
from datetime import datetime, timezone
from typing import Optional, Dict, Any, Mapping

from pydantic import BaseModel, ConfigDict, Field

# Metadata keys written at creation and read back by the attribution policy.
TERMINAL_LABEL_KEY = "terminal_label"
OPERATOR_NAME_KEY = "operator_name"
# Older terminals stored the operator under this key.
LEGACY_OPERATOR_KEY = "staff_name"


class TransactionStatus(str, enum.Enum):
    """Canonical transaction status used for reporting."""
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELED = "canceled"


def map_ledger_status(status: Optional[str], last_payment_error: Any = None) -> TransactionStatus:
    """Map a processor payment-intent status onto the canonical status.

    Args:
        status: Raw status string from the ledger.
        last_payment_error: The intent's ``last_payment_error``, if any.

    Returns:
        Canonical TransactionStatus.
    """
    if status == "succeeded":
        return TransactionStatus.SUCCEEDED
    if status == "canceled":
        return TransactionStatus.CANCELED
    if status == "requires_payment_method" and last_payment_error:
        return TransactionStatus.FAILED
    return TransactionStatus.PENDING


def _clean(value: Any) -> Optional[str]:
    if value is None:
        return None
    value = str(value)
    return value or None


def _get(obj: Any, key: str) -> Any:
    if isinstance(obj, Mapping):
        return obj.get(key)
    return None


def _reader_from_charge(charge: Any) -> Optional[str]:
    details = _get(charge, "payment_method_details")
    card_present = _get(details, "card_present")
    return _clean(_get(card_present, "reader"))


def extract_reader_id(payment_intent: Mapping[str, Any]) -> Optional[str]:
    """Find the physical reader id recorded against an intent's charge.

    The processor only returns it when ``latest_charge`` is expanded, or on
    older API versions through the embedded ``charges`` list. Any other shape
    yields None.
    """
    reader = _reader_from_charge(_get(payment_intent, "latest_charge"))
    if reader:
        return reader
    charges = _get(_get(payment_intent, "charges"), "data")
    if isinstance(charges, list) and charges:
        return _reader_from_charge(charges[0])
    return None


class Attribution(BaseModel):
    """Caller-supplied identity carried opaquely by the ledger."""
    model_config = ConfigDict(frozen=True)

    operator_name: Optional[str] = None
    terminal_label: Optional[str] = None
    reader_id: Optional[str] = None

    def to_metadata(self) -> Dict[str, str]:
        """Metadata entries to store on a new intent.

        Only non-empty fields are written. The reader id is never written
        here: it is recorded by the processor against the charge.
        """
        metadata = {}
        if self.terminal_label:
            metadata[TERMINAL_LABEL_KEY] = self.terminal_label
        if self.operator_name:
            metadata[OPERATOR_NAME_KEY] = self.operator_name
        return metadata

    def is_empty(self) -> bool:
        return not (self.operator_name or self.terminal_label or self.reader_id)


class TransactionRecord(BaseModel):
    """A ledger transaction as seen by the reporting pipeline."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Ledger-assigned transaction id")
    amount: int = Field(..., ge=0, description="Amount in minor currency units")
    currency: str = Field(..., description="Lowercase ISO-4217 code")
    status: TransactionStatus
    created_at: int = Field(..., description="Creation time, seconds since epoch")
    attribution: Attribution = Field(default_factory=Attribution)
    description: Optional[str] = None
    receipt_email: Optional[str] = None

    @property
    def created_datetime(self) -> datetime:
        return datetime.fromtimestamp(self.created_at, tz=timezone.utc)

    @property
    def is_succeeded(self) -> bool:
        return self.status == TransactionStatus.SUCCEEDED

    @classmethod
    def from_ledger(cls, payment_intent: Mapping[str, Any]) -> "TransactionRecord":
        """Normalize a processor payment intent.

        Args:
            payment_intent: Payment-intent mapping as returned by the ledger.

        Returns:
            TransactionRecord.
        """
        metadata = payment_intent.get("metadata") or {}
        amount = payment_intent.get("amount") or 0
        status = map_ledger_status(
            payment_intent.get("status"), payment_intent.get("last_payment_error")
        )
        # A capture with amount_to_capture lowers amount_received, not amount
        received = payment_intent.get("amount_received")
        if status == TransactionStatus.SUCCEEDED and received:
            amount = received

        attribution = Attribution(
            operator_name=_clean(
                metadata.get(OPERATOR_NAME_KEY) or metadata.get(LEGACY_OPERATOR_KEY)
            ),
            terminal_label=_clean(metadata.get(TERMINAL_LABEL_KEY)),
            reader_id=extract_reader_id(payment_intent),
        )
        return cls(
            id=payment_intent["id"],
            amount=int(amount),
            currency=(payment_intent.get("currency") or "").lower(),
            status=status,
            created_at=int(payment_intent.get("created") or 0),
            attribution=attribution,
            description=payment_intent.get("description"),
            receipt_email=payment_intent.get("receipt_email"),
        )

    def to_summary_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "amount": self.amount,
            "currency": self.currency,
            "status": self.status.value,
            "created": self.created_at,
            "terminal_label": self.attribution.terminal_label,
            "operator_name": self.attribution.operator_name,
            "reader_id": self.attribution.reader_id,
            "description": self.description,
            "receipt_email": self.receipt_email,
        }
