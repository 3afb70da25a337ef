"""Stripe implementation of the ledger client."""

import logging
from typing import Optional, Dict, Any, List

import stripe

from ..errors import (
    ConflictError,
    NotFoundError,
    UpstreamError,
    ValidationError,
)
from .base import LedgerClientBase, LedgerPage

logger = logging.getLogger(__name__)

# Stripe error codes with a dedicated meaning for callers
NOT_FOUND_CODES = frozenset(["resource_missing"])
CONFLICT_CODES = frozenset(["payment_intent_unexpected_state"])


def _to_dict(obj: Any) -> Dict[str, Any]:
    if hasattr(obj, "to_dict"):
        return obj.to_dict()
    return dict(obj)


class StripeLedgerClient(LedgerClientBase):
    """
    Ledger client backed by Stripe PaymentIntents and Terminal connection
    tokens. The secret key is passed per request rather than through the
    module-level ``stripe.api_key``.
    """

    def __init__(self, api_key: Optional[str]):
        """Initialize the Stripe ledger client.

        Args:
            api_key: Stripe secret key.

        Raises:
            ValidationError: If no API key is provided.
        """
        if not api_key:
            raise ValidationError("STRIPE_SECRET_KEY is not set")
        self._api_key = api_key

    def _translate_error(self, operation: str, error: stripe.StripeError) -> Exception:
        """Map a Stripe SDK error onto the error taxonomy.

        Args:
            operation: Name of the ledger operation, for logging.
            error: The Stripe error.

        Returns:
            The exception to raise.
        """
        message = getattr(error, "user_message", None) or str(error) or type(error).__name__
        code = getattr(error, "code", None)
        if isinstance(error, stripe.InvalidRequestError):
            if code in NOT_FOUND_CODES:
                logger.warning(f"Stripe {operation}: resource not found ({message})")
                return NotFoundError(message)
            if code in CONFLICT_CODES:
                logger.warning(f"Stripe {operation}: unexpected state ({message})")
                return ConflictError(message)
        if isinstance(error, stripe.APIConnectionError):
            logger.error(f"Stripe {operation}: failed to connect to Stripe API")
        else:
            logger.error(f"Stripe {operation} failed: {type(error).__name__}: {message}")
        return UpstreamError(message)

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
        params: Dict[str, Any] = {
            "amount": amount,
            "currency": currency.lower(),
            "capture_method": capture_method,
            "payment_method_types": ["card_present"],
            "metadata": metadata or {},
        }
        if description:
            params["description"] = description
        if receipt_email:
            params["receipt_email"] = receipt_email
        try:
            pi = stripe.PaymentIntent.create(api_key=self._api_key, **params)
        except stripe.StripeError as e:
            raise self._translate_error("create", e) from e
        return _to_dict(pi)

    def capture_transaction(
        self, transaction_id: str, amount_to_capture: Optional[int] = None
    ) -> Dict[str, Any]:
        params: Dict[str, Any] = {}
        if amount_to_capture is not None:
            params["amount_to_capture"] = amount_to_capture
        try:
            pi = stripe.PaymentIntent.capture(transaction_id, api_key=self._api_key, **params)
        except stripe.StripeError as e:
            raise self._translate_error("capture", e) from e
        return _to_dict(pi)

    def update_transaction(self, transaction_id: str, **fields: Any) -> Dict[str, Any]:
        try:
            pi = stripe.PaymentIntent.modify(transaction_id, api_key=self._api_key, **fields)
        except stripe.StripeError as e:
            raise self._translate_error("update", e) from e
        return _to_dict(pi)

    def list_transactions(
        self,
        created: Dict[str, int],
        limit: int,
        starting_after: Optional[str] = None,
        expand: Optional[List[str]] = None,
    ) -> LedgerPage:
        params: Dict[str, Any] = {"created": created, "limit": limit}
        if starting_after:
            params["starting_after"] = starting_after
        if expand:
            params["expand"] = expand
        try:
            result = stripe.PaymentIntent.list(api_key=self._api_key, **params)
        except stripe.StripeError as e:
            raise self._translate_error("list", e) from e
        return LedgerPage(
            data=[_to_dict(pi) for pi in result.data],
            has_more=bool(result.has_more),
        )

    def issue_connection_credential(self) -> Dict[str, Any]:
        try:
            token = stripe.terminal.ConnectionToken.create(api_key=self._api_key)
        except stripe.StripeError as e:
            raise self._translate_error("connection_token", e) from e
        return _to_dict(token)

    def health_check(self) -> Dict[str, Any]:
        return {"ok": True, "provider": "stripe"}
