"""Tests for the Stripe ledger client."""

from unittest.mock import MagicMock, patch

import pytest
import stripe

from terminal_payments.errors import (
    ConflictError,
    NotFoundError,
    UpstreamError,
    ValidationError,
)
from terminal_payments.ledger import StripeLedgerClient, get_ledger_client, SimulatorLedgerClient
from terminal_payments.config import Settings

from conftest import JAN_1, HOUR


@pytest.fixture
def client():
    return StripeLedgerClient(api_key="sk_test_123")


class TestInit:
    """Tests for client construction."""

    def test_requires_key(self):
        with pytest.raises(ValidationError, match="STRIPE_SECRET_KEY"):
            StripeLedgerClient(api_key=None)

    def test_factory(self):
        settings = Settings(stripe_secret_key="sk_test_123")
        assert isinstance(get_ledger_client("stripe", settings), StripeLedgerClient)
        assert isinstance(get_ledger_client("simulator", settings), SimulatorLedgerClient)

    def test_factory_unknown_provider(self):
        with pytest.raises(ValueError, match="Unsupported ledger provider"):
            get_ledger_client("paypal", Settings())


class TestCalls:
    """Tests for the parameters sent to Stripe."""

    def test_create(self, client, payment_intent_factory, mock_stripe_object):
        pi = payment_intent_factory(status="requires_payment_method")
        with patch("stripe.PaymentIntent.create", return_value=mock_stripe_object(pi)) as create:
            result = client.create_transaction(
                1000, "EUR",
                capture_method="manual",
                receipt_email="guest@example.com",
                metadata={"terminal_label": "Register-1"},
            )

        assert result == pi
        create.assert_called_once_with(
            api_key="sk_test_123",
            amount=1000,
            currency="eur",
            capture_method="manual",
            payment_method_types=["card_present"],
            metadata={"terminal_label": "Register-1"},
            receipt_email="guest@example.com",
        )

    def test_capture_with_amount(self, client, payment_intent_factory, mock_stripe_object):
        pi = payment_intent_factory(amount_received=600)
        with patch("stripe.PaymentIntent.capture", return_value=mock_stripe_object(pi)) as capture:
            client.capture_transaction(pi["id"], 600)

        capture.assert_called_once_with(pi["id"], api_key="sk_test_123", amount_to_capture=600)

    def test_capture_full(self, client, payment_intent_factory, mock_stripe_object):
        pi = payment_intent_factory()
        with patch("stripe.PaymentIntent.capture", return_value=mock_stripe_object(pi)) as capture:
            client.capture_transaction(pi["id"])

        capture.assert_called_once_with(pi["id"], api_key="sk_test_123")

    def test_update(self, client, payment_intent_factory, mock_stripe_object):
        pi = payment_intent_factory(receipt_email="guest@example.com")
        with patch("stripe.PaymentIntent.modify", return_value=mock_stripe_object(pi)) as modify:
            result = client.update_transaction(pi["id"], receipt_email="guest@example.com")

        assert result["receipt_email"] == "guest@example.com"
        modify.assert_called_once_with(
            pi["id"], api_key="sk_test_123", receipt_email="guest@example.com"
        )

    def test_list(self, client, payment_intent_factory, mock_stripe_object):
        pi = payment_intent_factory()
        listing = MagicMock(data=[mock_stripe_object(pi)], has_more=True)
        created = {"gte": JAN_1, "lte": JAN_1 + HOUR}
        with patch("stripe.PaymentIntent.list", return_value=listing) as list_call:
            page = client.list_transactions(
                created, 100, starting_after="pi_prev", expand=["data.latest_charge"]
            )

        assert page.data == [pi]
        assert page.has_more is True
        list_call.assert_called_once_with(
            api_key="sk_test_123",
            created=created,
            limit=100,
            starting_after="pi_prev",
            expand=["data.latest_charge"],
        )

    def test_connection_token(self, client, mock_stripe_object):
        token = {"object": "terminal.connection_token", "secret": "pst_test_abc"}
        with patch(
            "stripe.terminal.ConnectionToken.create", return_value=mock_stripe_object(token)
        ):
            assert client.issue_connection_credential()["secret"] == "pst_test_abc"


class TestErrorTranslation:
    """Tests for mapping Stripe errors."""

    def test_resource_missing(self, client):
        error = stripe.InvalidRequestError(
            "No such payment_intent: 'pi_x'", "intent", code="resource_missing"
        )
        with patch("stripe.PaymentIntent.capture", side_effect=error):
            with pytest.raises(NotFoundError, match="No such payment_intent"):
                client.capture_transaction("pi_x")

    def test_unexpected_state(self, client):
        error = stripe.InvalidRequestError(
            "This PaymentIntent could not be captured",
            None,
            code="payment_intent_unexpected_state",
        )
        with patch("stripe.PaymentIntent.capture", side_effect=error):
            with pytest.raises(ConflictError):
                client.capture_transaction("pi_x")

    def test_other_invalid_request(self, client):
        error = stripe.InvalidRequestError("Invalid currency: xyz", "currency")
        with patch("stripe.PaymentIntent.create", side_effect=error):
            with pytest.raises(UpstreamError, match="Invalid currency"):
                client.create_transaction(100, "xyz")

    def test_connection_error(self, client):
        error = stripe.APIConnectionError("Network down")
        with patch("stripe.PaymentIntent.list", side_effect=error):
            with pytest.raises(UpstreamError):
                client.list_transactions({"gte": 0, "lte": 1}, 100)

    def test_authentication_error(self, client):
        error = stripe.AuthenticationError("Invalid API Key provided")
        with patch("stripe.terminal.ConnectionToken.create", side_effect=error):
            with pytest.raises(UpstreamError, match="Invalid API Key"):
                client.issue_connection_credential()
