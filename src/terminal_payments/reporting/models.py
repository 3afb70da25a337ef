"""Models for transaction reporting."""

from datetime import date, datetime, timezone
from typing import Optional, Dict, Any, List, Union

from pydantic import BaseModel, ConfigDict, Field

from ..models import TransactionRecord

# Accepted representations of a window bound
TimeBound = Union[str, datetime, date, int, float]


class IdentitySelector(BaseModel):
    """Identity a report is restricted to. Empty means every succeeded record."""
    model_config = ConfigDict(frozen=True)

    operator_name: Optional[str] = None
    terminal_label: Optional[str] = None
    reader_id: Optional[str] = None

    def is_empty(self) -> bool:
        return not (self.operator_name or self.terminal_label or self.reader_id)

    def describe(self) -> str:
        parts = [
            f"{name}={value}"
            for name, value in (
                ("terminal_label", self.terminal_label),
                ("operator_name", self.operator_name),
                ("reader_id", self.reader_id),
            )
            if value
        ]
        return ", ".join(parts) or "all"


class ReportingWindow(BaseModel):
    """Caller input for a report: inclusive time bounds plus a selector."""
    start: Optional[TimeBound] = Field(None, description="Inclusive lower bound")
    end: Optional[TimeBound] = Field(None, description="Inclusive upper bound")
    selector: IdentitySelector = Field(default_factory=IdentitySelector)


class LedgerQuery(BaseModel):
    """Ledger ``created`` filter in whole seconds since epoch."""
    model_config = ConfigDict(frozen=True)

    gte: int
    lte: int

    def as_filter(self) -> Dict[str, int]:
        return {"gte": self.gte, "lte": self.lte}


class FetchResult(BaseModel):
    """Records collected for a query and whether the ledger had more."""
    records: List[TransactionRecord] = Field(default_factory=list)
    pages: int = 0
    truncated: bool = False


class ReportingSummary(BaseModel):
    """Aggregate answer for a reporting window."""
    total: int = Field(default=0, ge=0)
    currency: str
    count: int = Field(default=0, ge=0)
    truncated: bool = False
    transactions: List[TransactionRecord] = Field(default_factory=list)
    query: Optional[LedgerQuery] = None
    selector: IdentitySelector = Field(default_factory=IdentitySelector)
    generated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def to_response_dict(self, include_transactions: bool = True) -> Dict[str, Any]:
        """Return the summary in the shape terminals consume."""
        result: Dict[str, Any] = {
            "total": self.total,
            "currency": self.currency,
            "count": self.count,
            "truncated": self.truncated,
        }
        if include_transactions:
            result["transactions"] = [t.to_summary_dict() for t in self.transactions]
        return result

    def to_full_dict(self) -> Dict[str, Any]:
        """Return the summary along with the window and selector it answers."""
        result = self.to_response_dict()
        result["window"] = self.query.as_filter() if self.query else None
        result["selector"] = self.selector.model_dump(exclude_none=True)
        result["generated_at"] = self.generated_at.isoformat()
        return result
