"""Tests for the simulator ledger."""

import pytest

from terminal_payments.errors import ConflictError, NotFoundError, UpstreamError
from terminal_payments.ledger import SimulatorConfig, SimulatorLedgerClient

from conftest import JAN_1, HOUR


class TestCreate:
    """Tests for creating simulated intents."""

    def test_create(self, ledger):
        pi = ledger.create_transaction(
            1000, "EUR", description="Coffee", metadata={"terminal_label": "Register-1"}
        )

        assert pi["id"].startswith("pi_")
        assert pi["status"] == "requires_payment_method"
        assert pi["currency"] == "eur"
        assert pi["client_secret"].startswith(pi["id"] + "_secret_")
        assert pi["metadata"] == {"terminal_label": "Register-1"}
        assert pi["latest_charge"] is None

    def test_created_timestamps_increase(self, ledger):
        first = ledger.create_transaction(100, "eur")
        second = ledger.create_transaction(100, "eur")
        assert second["created"] > first["created"]

    def test_unsupported_currency(self, ledger):
        with pytest.raises(UpstreamError, match="Invalid currency"):
            ledger.create_transaction(100, "xyz")

    def test_negative_amount(self, ledger):
        with pytest.raises(UpstreamError):
            ledger.create_transaction(-1, "eur")


class TestLifecycle:
    """Tests for presentment, capture, decline and cancel."""

    def test_automatic_capture_succeeds_on_present(self, ledger):
        pi = ledger.create_transaction(1000, "eur")
        pi = ledger.present_card(pi["id"])

        assert pi["status"] == "succeeded"
        assert pi["amount_received"] == 1000

    def test_manual_capture(self, ledger):
        pi = ledger.create_transaction(1000, "eur", capture_method="manual")
        pi = ledger.present_card(pi["id"])
        assert pi["status"] == "requires_capture"

        pi = ledger.capture_transaction(pi["id"], 700)
        assert pi["status"] == "succeeded"
        assert pi["amount_received"] == 700

    def test_capture_more_than_authorized(self, ledger):
        pi = ledger.create_transaction(1000, "eur", capture_method="manual")
        ledger.present_card(pi["id"])

        with pytest.raises(UpstreamError):
            ledger.capture_transaction(pi["id"], 1500)

    def test_capture_wrong_state(self, ledger):
        pi = ledger.create_transaction(1000, "eur")
        with pytest.raises(ConflictError):
            ledger.capture_transaction(pi["id"])

    def test_capture_unknown(self, ledger):
        with pytest.raises(NotFoundError):
            ledger.capture_transaction("pi_missing")

    def test_decline(self, ledger):
        pi = ledger.create_transaction(1000, "eur")
        pi = ledger.decline_card(pi["id"])

        assert pi["status"] == "requires_payment_method"
        assert pi["last_payment_error"]["code"] == "card_declined"

    def test_cancel_succeeded(self, ledger):
        pi = ledger.create_transaction(1000, "eur")
        ledger.present_card(pi["id"])
        with pytest.raises(ConflictError):
            ledger.cancel(pi["id"])


class TestUpdate:
    """Tests for updating simulated intents."""

    def test_update_receipt_email(self, ledger):
        pi = ledger.create_transaction(1000, "eur", metadata={"operator_name": "Anna"})
        pi = ledger.update_transaction(pi["id"], receipt_email="guest@example.com")

        assert pi["receipt_email"] == "guest@example.com"
        assert pi["metadata"] == {"operator_name": "Anna"}

    def test_rejects_unknown_field(self, ledger):
        pi = ledger.create_transaction(1000, "eur")
        with pytest.raises(UpstreamError, match="unknown parameter: amount"):
            ledger.update_transaction(pi["id"], amount=5)


class TestList:
    """Tests for listing simulated intents."""

    def test_filters_by_created_range(self, ledger):
        ledger.create_transaction(100, "eur", created=JAN_1 - 1)
        inside = ledger.create_transaction(200, "eur", created=JAN_1)
        ledger.create_transaction(300, "eur", created=JAN_1 + HOUR + 1)

        page = ledger.list_transactions({"gte": JAN_1, "lte": JAN_1 + HOUR}, limit=10)

        assert [pi["id"] for pi in page.data] == [inside["id"]]
        assert page.has_more is False

    def test_cursor_pagination(self, ledger):
        ids = [
            ledger.create_transaction(100, "eur", created=JAN_1 + i)["id"]
            for i in range(3)
        ]
        window = {"gte": JAN_1, "lte": JAN_1 + HOUR}

        first = ledger.list_transactions(window, limit=2)
        second = ledger.list_transactions(window, limit=2, starting_after=first.last_id)

        assert [pi["id"] for pi in first.data] == [ids[2], ids[1]]
        assert first.has_more is True
        assert [pi["id"] for pi in second.data] == [ids[0]]
        assert second.has_more is False
        assert ledger.list_calls == 2

    def test_latest_charge_collapsed_unless_expanded(self):
        ledger = SimulatorLedgerClient(SimulatorConfig(populate_reader_id=True))
        pi = ledger.create_transaction(100, "eur", created=JAN_1)
        ledger.present_card(pi["id"], reader_id="tmr_1")
        window = {"gte": JAN_1, "lte": JAN_1}

        plain = ledger.list_transactions(window, limit=10).data[0]
        expanded = ledger.list_transactions(
            window, limit=10, expand=["data.latest_charge"]
        ).data[0]

        assert isinstance(plain["latest_charge"], str)
        assert expanded["latest_charge"]["payment_method_details"]["card_present"]["reader"] == "tmr_1"


class TestOutage:
    """Tests for simulated unavailability."""

    def test_unavailable(self):
        ledger = SimulatorLedgerClient(SimulatorConfig(unavailable=True))

        with pytest.raises(UpstreamError):
            ledger.list_transactions({"gte": 0, "lte": 1}, limit=10)
        assert ledger.health_check()["ok"] is False

    def test_connection_credential(self, ledger):
        assert ledger.issue_connection_credential()["object"] == "terminal.connection_token"
