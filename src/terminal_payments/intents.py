"""Intent lifecycle layer: create, capture and update card-present payments."""

import asyncio
import logging
from typing import Optional, Dict, Any

from pydantic import BaseModel

from .config import Settings
from .errors import ValidationError
from .ledger.base import LedgerClientBase
from .models import Attribution, TransactionRecord

logger = logging.getLogger(__name__)

DEFAULT_DESCRIPTION = "Terminal Transaction"


class CreatedIntent(BaseModel):
    id: str
    client_secret: Optional[str] = None


class CapturedIntent(BaseModel):
    id: str
    client_secret: Optional[str] = None
    record: TransactionRecord


class IntentLifecycleManager:
    """Passthrough to the ledger for single-intent operations.

    This is the only writer of attribution metadata: whatever the reporting
    pipeline matches on is stored here under the keys defined in
    ``terminal_payments.models``.
    """

    def __init__(self, ledger: LedgerClientBase, settings: Optional[Settings] = None):
        """Initialize the manager.

        Args:
            ledger: Ledger client used for every call.
            settings: Settings providing the capture method.
        """
        self.ledger = ledger
        self.settings = settings or Settings()

    async def create(
        self,
        amount: int,
        currency: str,
        description: Optional[str] = None,
        receipt_email: Optional[str] = None,
        attribution: Optional[Attribution] = None,
    ) -> CreatedIntent:
        """Create a card-present payment intent.

        Args:
            amount: Amount in minor units.
            currency: ISO-4217 currency code.
            description: Optional description, defaults to "Terminal Transaction".
            receipt_email: Optional receipt address.
            attribution: Operator/terminal identity to store as metadata.

        Returns:
            CreatedIntent with the intent id and client secret.

        Raises:
            ValidationError: If amount is not an integer or currency is missing.
            UpstreamError: If the ledger rejects the amount or currency (a
                negative amount, an unsupported currency) or is unreachable.
        """
        if isinstance(amount, bool) or not isinstance(amount, int):
            raise ValidationError("amount must be an integer number of minor units")
        if not currency:
            raise ValidationError("Missing currency")

        metadata = (attribution or Attribution()).to_metadata()
        logger.info(
            f"Creating intent amount={amount} currency={currency.lower()} "
            f"terminal_label={metadata.get('terminal_label')} "
            f"operator_name={metadata.get('operator_name')}"
        )
        pi = await asyncio.to_thread(
            self.ledger.create_transaction,
            amount,
            currency,
            capture_method=self.settings.capture_method,
            description=description or DEFAULT_DESCRIPTION,
            receipt_email=receipt_email or None,
            metadata=metadata,
        )
        logger.info(f"Created intent {pi['id']} with metadata {pi.get('metadata')}")
        return CreatedIntent(id=pi["id"], client_secret=pi.get("client_secret"))

    async def capture(
        self,
        transaction_id: str,
        amount_to_capture: Optional[int] = None,
    ) -> CapturedIntent:
        """Capture an authorized intent.

        Args:
            transaction_id: Ledger id of the intent.
            amount_to_capture: Amount to capture; the full authorized amount
                when omitted.

        Returns:
            CapturedIntent including the normalized record after capture.

        Raises:
            ValidationError: If the id is empty or the amount is negative.
            NotFoundError: If the ledger does not know the id.
            ConflictError: If the intent is not capturable.
        """
        if not transaction_id:
            raise ValidationError("Missing payment_intent_id")
        if amount_to_capture is not None and amount_to_capture < 0:
            raise ValidationError("amount_to_capture must not be negative")

        pi = await asyncio.to_thread(
            self.ledger.capture_transaction, transaction_id, amount_to_capture
        )
        record = TransactionRecord.from_ledger(pi)
        logger.info(f"Captured {record.amount} {record.currency} for intent {record.id}")
        return CapturedIntent(id=pi["id"], client_secret=pi.get("client_secret"), record=record)

    async def update_receipt_email(self, transaction_id: str, receipt_email: str) -> Dict[str, Any]:
        """Attach a receipt address to an existing intent.

        Only ``receipt_email`` is sent; amount and attribution are untouched.

        Raises:
            ValidationError: If either argument is empty. No ledger call is made.
        """
        if not transaction_id or not receipt_email:
            raise ValidationError("Missing payment_intent_id or receipt_email")

        pi = await asyncio.to_thread(
            self.ledger.update_transaction, transaction_id, receipt_email=receipt_email
        )
        logger.info(f"Updated receipt email for intent {transaction_id}")
        return pi

    async def issue_connection_token(self) -> Dict[str, Any]:
        """Issue a connection credential for a terminal reader."""
        token = await asyncio.to_thread(self.ledger.issue_connection_credential)
        logger.info("Issued terminal connection token")
        return token
