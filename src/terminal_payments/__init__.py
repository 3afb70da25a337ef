# terminal_payments package
__version__ = "0.1.0"

from .config import Settings
from .errors import (
    TerminalPaymentsError,
    ValidationError,
    NotFoundError,
    ConflictError,
    UpstreamError,
)
from .models import Attribution, TransactionRecord, TransactionStatus
from .intents import IntentLifecycleManager, CreatedIntent, CapturedIntent
from .ledger import (
    LedgerClientBase,
    StripeLedgerClient,
    SimulatorLedgerClient,
    get_ledger_client,
)

# Reporting exports
from .reporting import (
    IdentitySelector,
    ReportingWindow,
    ReportingSummary,
    AttributionPolicy,
    WindowQueryPlanner,
    Aggregator,
    ReportingService,
    ReportGenerator,
)
