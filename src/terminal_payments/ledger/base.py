from abc import ABC, abstractmethod
from typing import Optional, Dict, Any, List

from pydantic import BaseModel, Field


class LedgerPage(BaseModel):
    """One page of a ledger list call."""
    data: List[Dict[str, Any]] = Field(default_factory=list)
    has_more: bool = False

    @property
    def last_id(self) -> Optional[str]:
        return self.data[-1]["id"] if self.data else None


class LedgerClientBase(ABC):
    """
    Contract of the external payment ledger. Records come back as
    payment-intent mappings shaped like the processor's API objects.
    Implementations raise the errors from ``terminal_payments.errors``
    and never retry on their own.
    """

    @abstractmethod
    def create_transaction(
        self,
        amount: int,
        currency: str,
        *,
        capture_method: str = "automatic",
        description: Optional[str] = None,
        receipt_email: Optional[str] = None,
        metadata: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        """
        Create a card-present payment intent.
        """
        raise NotImplementedError

    @abstractmethod
    def capture_transaction(
        self, transaction_id: str, amount_to_capture: Optional[int] = None
    ) -> Dict[str, Any]:
        raise NotImplementedError

    @abstractmethod
    def update_transaction(self, transaction_id: str, **fields: Any) -> Dict[str, Any]:
        raise NotImplementedError

    @abstractmethod
    def list_transactions(
        self,
        created: Dict[str, int],
        limit: int,
        starting_after: Optional[str] = None,
        expand: Optional[List[str]] = None,
    ) -> LedgerPage:
        """
        List intents created within ``created`` ({"gte": ..., "lte": ...}),
        newest first, resuming after ``starting_after`` when given.
        """
        raise NotImplementedError

    @abstractmethod
    def issue_connection_credential(self) -> Dict[str, Any]:
        raise NotImplementedError

    def health_check(self) -> Dict[str, Any]:
        return {"ok": True}
