"""Service layer for transaction reporting."""

import logging
from typing import Optional

from ..config import Settings
from ..ledger.base import LedgerClientBase
from .aggregator import Aggregator
from .attribution import AttributionPolicy
from .models import ReportingSummary, ReportingWindow
from .planner import WindowQueryPlanner
from .report import ReportGenerator

logger = logging.getLogger(__name__)

READER_EXPANSION = ["data.latest_charge"]


class ReportingService:
    """Runs the reporting pipeline: plan, fetch, attribute, aggregate."""

    def __init__(
        self,
        ledger: LedgerClientBase,
        settings: Optional[Settings] = None,
        policy: Optional[AttributionPolicy] = None,
    ):
        """Initialize the reporting service.

        Args:
            ledger: Ledger client the planner lists from.
            settings: Settings with paging limits and the fallback currency.
            policy: Attribution policy. Built from settings if not provided.
        """
        self.settings = settings or Settings()
        self.planner = WindowQueryPlanner(
            ledger,
            page_size=self.settings.page_size,
            max_pages=self.settings.max_pages,
        )
        self.policy = policy or AttributionPolicy.from_settings(
            reader_id_matching=self.settings.reader_id_matching
        )
        self.aggregator = Aggregator(self.settings.fallback_currency)

    async def report(self, window: ReportingWindow) -> ReportingSummary:
        """Compute the summary for a reporting window.

        Args:
            window: Time bounds and identity selector.

        Returns:
            ReportingSummary for succeeded, attributed transactions.

        Raises:
            ValidationError: If the window is missing bounds or inverted.
            UpstreamError: If any ledger page fails.
        """
        query = self.planner.to_query(window.start, window.end)
        selector = window.selector

        logger.info(
            f"Reporting transactions for {selector.describe()} "
            f"between {query.gte} and {query.lte}"
        )

        expand = None
        if selector.reader_id and self.settings.reader_id_matching:
            expand = READER_EXPANSION

        fetched = await self.planner.fetch(query, expand=expand)
        matched = self.policy.filter(selector, fetched.records)
        summary = self.aggregator.fold(matched, truncated=fetched.truncated)
        summary.query = query
        summary.selector = selector

        logger.info(
            f"Found {summary.count} of {len(fetched.records)} transactions for "
            f"{selector.describe()}: total={summary.total} {summary.currency}"
            + (" (truncated)" if summary.truncated else "")
        )
        return summary

    def generate_report(
        self,
        summary: ReportingSummary,
        format: str = "json",
        include_transactions: bool = True,
    ) -> str:
        """Render a summary as text.

        Args:
            summary: Summary to format.
            format: Output format ('json', 'csv', 'text').
            include_transactions: Include matching transactions (for JSON format).

        Returns:
            Formatted report string.
        """
        generator = ReportGenerator(summary)

        if format == "json":
            return generator.to_json(include_transactions=include_transactions)
        elif format == "csv":
            return generator.to_csv()
        elif format == "text":
            return generator.to_summary_text()
        else:
            raise ValueError(f"Unsupported report format: {format}")
