"""Folds matching transactions into a reporting summary."""

from typing import Sequence

from ..config import DEFAULT_FALLBACK_CURRENCY
from ..models import TransactionRecord
from .models import ReportingSummary


class Aggregator:
    """Sums matching records.

    ``currency`` comes from the first record in ledger order, or the
    fallback when there is none. Mixed-currency sets are summed as-is.
    """

    def __init__(self, fallback_currency: str = DEFAULT_FALLBACK_CURRENCY):
        self.fallback_currency = fallback_currency.lower()

    def fold(self, records: Sequence[TransactionRecord], truncated: bool = False) -> ReportingSummary:
        return ReportingSummary(
            total=sum(r.amount for r in records),
            count=len(records),
            currency=records[0].currency if records else self.fallback_currency,
            truncated=truncated,
            transactions=list(records),
        )
