"""Report generation for transaction summaries."""

import csv
import io
import json
from datetime import datetime, timezone

from .models import ReportingSummary


# Currencies the processor already expresses in whole units
ZERO_DECIMAL_CURRENCIES = frozenset([
    "bif", "clp", "djf", "gnf", "jpy", "kmf", "krw", "mga",
    "pyg", "rwf", "ugx", "vnd", "vuv", "xaf", "xof", "xpf",
])


def _iso(seconds: int) -> str:
    return datetime.fromtimestamp(seconds, tz=timezone.utc).isoformat()


def format_amount(amount: int, currency: str) -> str:
    if currency.lower() in ZERO_DECIMAL_CURRENCIES:
        return f"{amount} {currency.upper()}"
    return f"{amount / 100:.2f} {currency.upper()}"


class ReportGenerator:
    """Generator for reporting summaries in various formats."""

    CSV_COLUMNS = [
        "id", "created_at", "amount", "currency", "status",
        "terminal_label", "operator_name", "reader_id",
    ]

    def __init__(self, summary: ReportingSummary):
        """Initialize the report generator.

        Args:
            summary: The summary to generate output from.
        """
        self.summary = summary

    def to_json(self, include_transactions: bool = True, indent: int = 2) -> str:
        """Generate JSON representation of the summary.

        Args:
            include_transactions: If True, include matching transactions.
            indent: JSON indentation level.

        Returns:
            JSON string representation of the summary.
        """
        data = self.summary.to_full_dict()
        if not include_transactions:
            data.pop("transactions", None)
        return json.dumps(data, indent=indent)

    def to_csv(self) -> str:
        """Generate one CSV row per matching transaction."""
        output = io.StringIO()
        writer = csv.writer(output)
        writer.writerow(self.CSV_COLUMNS)
        for record in self.summary.transactions:
            writer.writerow([
                record.id,
                _iso(record.created_at),
                record.amount,
                record.currency,
                record.status.value,
                record.attribution.terminal_label or "",
                record.attribution.operator_name or "",
                record.attribution.reader_id or "",
            ])
        return output.getvalue()

    def to_summary_text(self) -> str:
        """Generate a human-readable text summary.

        Returns:
            Formatted text summary of the report.
        """
        summary = self.summary
        lines = [
            "=" * 60,
            "TERMINAL TRANSACTION REPORT",
            "=" * 60,
            f"Selector: {summary.selector.describe()}",
        ]
        if summary.query:
            lines.extend([
                "",
                "Time Range:",
                f"  Start: {_iso(summary.query.gte)}",
                f"  End: {_iso(summary.query.lte)}",
            ])
        lines.extend([
            "",
            "Totals:",
            f"  Transactions: {summary.count}",
            f"  Total: {format_amount(summary.total, summary.currency)}",
            f"  Total (minor units): {summary.total}",
        ])
        if summary.truncated:
            lines.extend([
                "",
                "Warning:",
                "  The ledger returned more transactions than were fetched;",
                "  totals cover the newest transactions only.",
            ])
        lines.extend([
            "",
            f"Generated At: {summary.generated_at.isoformat()}",
            "=" * 60,
        ])
        return "\n".join(lines)
