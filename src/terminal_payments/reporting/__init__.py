"""Transaction reporting for terminal fleets.

Answers "how much did operator/terminal X take between A and B?" from the
payment ledger:
- Convert the caller's window into a ledger ``created`` filter
- Page through the ledger sequentially, flagging truncation at the page cap
- Attribute each succeeded transaction with a prioritized strategy list
- Fold matches into total, count and currency
"""

from .models import (
    IdentitySelector,
    ReportingWindow,
    LedgerQuery,
    FetchResult,
    ReportingSummary,
)
from .attribution import (
    AttributionStrategy,
    AttributionPolicy,
    TERMINAL_LABEL,
    OPERATOR_NAME,
    READER_ID,
    DEFAULT_STRATEGIES,
)
from .planner import WindowQueryPlanner, parse_datetime, to_epoch_seconds
from .aggregator import Aggregator
from .report import ReportGenerator
from .service import ReportingService

__all__ = [
    # Models
    "IdentitySelector",
    "ReportingWindow",
    "LedgerQuery",
    "FetchResult",
    "ReportingSummary",
    # Attribution
    "AttributionStrategy",
    "AttributionPolicy",
    "TERMINAL_LABEL",
    "OPERATOR_NAME",
    "READER_ID",
    "DEFAULT_STRATEGIES",
    # Core Components
    "WindowQueryPlanner",
    "parse_datetime",
    "to_epoch_seconds",
    "Aggregator",
    "ReportGenerator",
    "ReportingService",
]
