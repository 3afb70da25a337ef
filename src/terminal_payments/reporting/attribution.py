"""Attribution policy: decides whether a record belongs to a requested identity."""

import logging
from typing import Callable, List, NamedTuple, Optional, Sequence

from ..models import TransactionRecord
from .models import IdentitySelector

logger = logging.getLogger(__name__)


class AttributionStrategy(NamedTuple):
    """A named matching rule.

    ``applies`` says whether the rule can decide for a (selector, record)
    pair; ``decide`` gives the decision when it does. Both must be pure.
    """
    name: str
    applies: Callable[[IdentitySelector, TransactionRecord], bool]
    decide: Callable[[IdentitySelector, TransactionRecord], bool]


TERMINAL_LABEL = AttributionStrategy(
    name="terminal_label",
    applies=lambda sel, rec: bool(sel.terminal_label) and bool(rec.attribution.terminal_label),
    decide=lambda sel, rec: rec.attribution.terminal_label == sel.terminal_label,
)

OPERATOR_NAME = AttributionStrategy(
    name="operator_name",
    applies=lambda sel, rec: bool(sel.operator_name) and bool(rec.attribution.operator_name),
    decide=lambda sel, rec: rec.attribution.operator_name == sel.operator_name,
)

# Legacy: the processor rarely reports the reader on the charge, in which
# case this never matches.
READER_ID = AttributionStrategy(
    name="reader_id",
    applies=lambda sel, rec: bool(sel.reader_id),
    decide=lambda sel, rec: (
        rec.attribution.reader_id is not None and rec.attribution.reader_id == sel.reader_id
    ),
)

DEFAULT_STRATEGIES = (TERMINAL_LABEL, OPERATOR_NAME, READER_ID)


class AttributionPolicy:
    """Prioritized list of attribution strategies.

    A record matches when it succeeded and the first applicable strategy
    accepts it. An empty selector accepts every succeeded record; a non-empty
    selector with no applicable strategy rejects.
    """

    def __init__(self, strategies: Optional[Sequence[AttributionStrategy]] = None):
        self.strategies: List[AttributionStrategy] = list(
            DEFAULT_STRATEGIES if strategies is None else strategies
        )

    @classmethod
    def from_settings(cls, reader_id_matching: bool = True) -> "AttributionPolicy":
        strategies = [
            s for s in DEFAULT_STRATEGIES
            if reader_id_matching or s is not READER_ID
        ]
        return cls(strategies)

    def deciding_strategy(
        self, selector: IdentitySelector, record: TransactionRecord
    ) -> Optional[AttributionStrategy]:
        """Return the first strategy applicable to the pair, if any."""
        for strategy in self.strategies:
            if strategy.applies(selector, record):
                return strategy
        return None

    def matches(self, selector: IdentitySelector, record: TransactionRecord) -> bool:
        if not record.is_succeeded:
            return False
        if selector.is_empty():
            return True
        strategy = self.deciding_strategy(selector, record)
        if strategy is None:
            return False
        return strategy.decide(selector, record)

    def filter(
        self, selector: IdentitySelector, records: Sequence[TransactionRecord]
    ) -> List[TransactionRecord]:
        """Keep matching records, preserving ledger order."""
        matched = [r for r in records if self.matches(selector, r)]
        logger.debug(
            f"Attribution kept {len(matched)} of {len(records)} records for {selector.describe()}"
        )
        return matched
