"""Window query planning: time-range conversion and paginated ledger fetching."""

import asyncio
import logging
import math
from datetime import date, datetime, time, timedelta, timezone
from typing import List, Optional

from ..config import LEDGER_PAGE_CEILING
from ..errors import ValidationError
from ..ledger.base import LedgerClientBase
from ..models import TransactionRecord
from .models import FetchResult, LedgerQuery, TimeBound

logger = logging.getLogger(__name__)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

# Fallbacks for strings datetime.fromisoformat() rejects
DATETIME_FORMATS = [
    "%Y-%m-%dT%H:%M:%S.%f%z",
    "%Y-%m-%dT%H:%M:%S%z",
    "%Y-%m-%d %H:%M:%S",
    "%Y/%m/%d %H:%M:%S",
    "%Y/%m/%d",
]


def parse_datetime(value: str) -> datetime:
    """Parse a datetime string in ISO-8601 or a few common layouts.

    Args:
        value: Datetime string. ``Z`` is accepted as UTC.

    Returns:
        Parsed datetime, naive when the input carries no offset.

    Raises:
        ValidationError: If the string cannot be parsed.
    """
    text = value.strip()
    if text.endswith("Z") or text.endswith("z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        pass
    for fmt in DATETIME_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    raise ValidationError(
        f"Unable to parse datetime: {value}. "
        f"Expected ISO-8601, e.g. YYYY-MM-DD or YYYY-MM-DDTHH:MM:SSZ"
    )


def to_epoch_seconds(value: TimeBound) -> int:
    """Convert a window bound to whole seconds since epoch.

    Strings and datetimes go through millisecond precision and are floored,
    so sub-second parts never round up. Naive values are taken as UTC. Plain
    numbers and digit strings are already epoch seconds.
    """
    if isinstance(value, bool):
        raise ValidationError(f"Invalid time bound: {value!r}")
    if isinstance(value, (int, float)):
        if not math.isfinite(value):
            raise ValidationError(f"Invalid time bound: {value!r}")
        return int(value // 1)
    if isinstance(value, str):
        if value.strip().isdigit():
            return int(value.strip())
        value = parse_datetime(value)
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime.combine(value, time.min)
    else:
        raise ValidationError(f"Invalid time bound: {value!r}")
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    millis = (dt - EPOCH) // timedelta(milliseconds=1)
    return millis // 1000


class WindowQueryPlanner:
    """Turns a reporting window into ledger list calls."""

    def __init__(
        self,
        ledger: LedgerClientBase,
        page_size: int = LEDGER_PAGE_CEILING,
        max_pages: int = 50,
    ):
        """Initialize the planner.

        Args:
            ledger: Ledger client to list transactions from.
            page_size: Records per list call, capped at the ledger ceiling.
            max_pages: Maximum sequential list calls per fetch.
        """
        self.ledger = ledger
        self.page_size = max(1, min(page_size, LEDGER_PAGE_CEILING))
        self.max_pages = max(1, max_pages)

    def to_query(self, start: Optional[TimeBound], end: Optional[TimeBound]) -> LedgerQuery:
        """Validate a window and convert it to a ledger ``created`` filter.

        Raises:
            ValidationError: If a bound is missing, unparseable, or the range
                is inverted.
        """
        if start is None or start == "" or end is None or end == "":
            raise ValidationError("Missing start or end")
        gte = to_epoch_seconds(start)
        lte = to_epoch_seconds(end)
        if gte > lte:
            raise ValidationError("start must not be after end")
        return LedgerQuery(gte=gte, lte=lte)

    async def fetch(self, query: LedgerQuery, expand: Optional[List[str]] = None) -> FetchResult:
        """Fetch every record in the window, one page at a time.

        Pages are requested strictly in order because each cursor comes from
        the previous page. If the page cap is reached while the ledger still
        reports more, the result is flagged ``truncated``. A failure or
        cancellation on any page aborts the whole fetch.

        Args:
            query: Window filter.
            expand: Ledger expansions, e.g. ``["data.latest_charge"]``.

        Returns:
            FetchResult with normalized records in ledger order.
        """
        records: List[TransactionRecord] = []
        cursor: Optional[str] = None
        pages = 0
        has_more = True

        logger.info(
            f"Fetching ledger transactions created between {query.gte} and {query.lte} "
            f"(page_size={self.page_size}, max_pages={self.max_pages})"
        )

        while has_more and pages < self.max_pages:
            page = await asyncio.to_thread(
                self.ledger.list_transactions,
                query.as_filter(),
                self.page_size,
                cursor,
                expand,
            )
            pages += 1
            records.extend(TransactionRecord.from_ledger(pi) for pi in page.data)
            has_more = page.has_more and page.last_id is not None
            cursor = page.last_id

        truncated = has_more
        if truncated:
            logger.warning(
                f"Ledger still has more transactions after {pages} pages; "
                f"report covers the newest {len(records)} only"
            )
        else:
            logger.info(f"Fetched {len(records)} transactions in {pages} page(s)")
        return FetchResult(records=records, pages=pages, truncated=truncated)
