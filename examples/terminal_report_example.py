"""
End-of-shift example for a small terminal fleet.

Runs a few card-present sales through the simulator ledger, the way a
terminal app would via the HTTP API, then asks the reporting service how
much each register and each operator took during the shift.
"""
import asyncio
import os
from datetime import datetime, timedelta, timezone

from terminal_payments import (
    Attribution,
    IdentitySelector,
    IntentLifecycleManager,
    ReportingService,
    ReportingWindow,
    Settings,
    SimulatorLedgerClient,
    get_ledger_client,
)

SALES = [
    # (amount in cents, terminal label, operator)
    (450, "Register-1", "Anna"),
    (1290, "Register-1", "Anna"),
    (800, "Register-2", "Ben"),
    (2300, "Register-1", "Ben"),
]


async def ring_up_sales(manager: IntentLifecycleManager, ledger: SimulatorLedgerClient):
    for amount, label, operator in SALES:
        created = await manager.create(
            amount=amount,
            currency="eur",
            attribution=Attribution(terminal_label=label, operator_name=operator),
        )
        # Stands in for the customer tapping a card on the reader
        ledger.present_card(created.id)
        captured = await manager.capture(created.id)
        print(f"Captured {captured.record.amount} cents on {label} by {operator}")

    # A declined card never shows up in the totals
    declined = await manager.create(
        amount=9999, currency="eur", attribution=Attribution(terminal_label="Register-1")
    )
    ledger.decline_card(declined.id)


async def shift_report():
    settings = Settings(capture_method="manual", ledger_provider="simulator")
    ledger = SimulatorLedgerClient()
    manager = IntentLifecycleManager(ledger, settings)
    reporting = ReportingService(ledger, settings)

    shift_start = datetime.now(timezone.utc) - timedelta(minutes=1)
    await ring_up_sales(manager, ledger)
    shift_end = datetime.now(timezone.utc) + timedelta(minutes=1)

    for selector in (
        IdentitySelector(terminal_label="Register-1"),
        IdentitySelector(terminal_label="Register-2"),
        IdentitySelector(operator_name="Anna"),
        IdentitySelector(operator_name="Ben"),
    ):
        summary = await reporting.report(
            ReportingWindow(start=shift_start, end=shift_end, selector=selector)
        )
        print()
        print(reporting.generate_report(summary, format="text"))


async def stripe_report():
    """
    Same question against a real Stripe account. Requires STRIPE_SECRET_KEY
    (a test key is fine) and reports on the last 24 hours.
    """
    settings = Settings.from_env()
    ledger = get_ledger_client("stripe", settings)
    reporting = ReportingService(ledger, settings)
    now = datetime.now(timezone.utc)
    summary = await reporting.report(ReportingWindow(
        start=now - timedelta(days=1),
        end=now,
        selector=IdentitySelector(terminal_label="Register-1"),
    ))
    print(summary.model_dump_json(indent=2, exclude={"transactions"}))


if __name__ == "__main__":
    asyncio.run(shift_report())

    if os.getenv("STRIPE_SECRET_KEY"):
        asyncio.run(stripe_report())
    else:
        print("\nNote: set STRIPE_SECRET_KEY to run the report against Stripe.")
