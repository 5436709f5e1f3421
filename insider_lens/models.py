from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional


def _share_count(x: float) -> float | int:
    # whole share counts go out as integers
    return int(x) if float(x).is_integer() else x


@dataclass(frozen=True)
class FilingReference:
    accession_number: str
    ticker: str
    form_type: str
    filing_date: date
    document_url: str
    issuer_name: str


@dataclass(frozen=True)
class FilingIndexPage:
    filings: List[FilingReference]
    total_count: int
    next_url: str | None = None


@dataclass(frozen=True)
class LocatedDocument:
    url: str
    text: str
    # "index_primary" | "index_xml" | "index_archive_path" | "direct"
    strategy: str


@dataclass(frozen=True)
class RawTrade:
    insider_name: str
    role: str
    transaction_code: str
    shares_traded: float
    share_price: float
    shares_owned_after: float
    filing_date: date
    ticker: str
    is_scheduled_plan: bool
    accession_number: str = ""
    is_derivative: bool = False


@dataclass(frozen=True)
class ProcessedTrade:
    """A RawTrade plus every derived field shown to users.

    `transaction_code` is the display code (always P, S or A).
    `raw_transaction_code` keeps the code exactly as filed.
    """

    ticker: str
    insider_name: str
    role: str
    transaction_code: str
    raw_transaction_code: str
    shares_traded: float
    share_price: float
    shares_owned_after: float
    total_holdings_before: float
    date: date
    transaction_label: str
    trade_value: float
    percentage_change: float
    conviction_score: int
    is_scheduled_plan: bool = False
    accession_number: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ticker": self.ticker,
            "insiderName": self.insider_name,
            "role": self.role,
            "transactionCode": self.transaction_code,
            "rawTransactionCode": self.raw_transaction_code,
            "sharesTraded": _share_count(self.shares_traded),
            "sharePrice": self.share_price,
            "sharesOwnedAfter": _share_count(self.shares_owned_after),
            "totalHoldingsBefore": _share_count(self.total_holdings_before),
            "date": self.date.isoformat(),
            "transactionLabel": self.transaction_label,
            "tradeValue": self.trade_value,
            "percentageChange": self.percentage_change,
            "convictionScore": self.conviction_score,
            "isScheduledPlan": self.is_scheduled_plan,
            "accessionNumber": self.accession_number,
        }


@dataclass(frozen=True)
class ConfidenceSignal:
    kind: str
    text: str
    points: int

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "text": self.text, "points": self.points}


@dataclass(frozen=True)
class ConfidenceResult:
    score: int
    label: str
    signals: List[ConfidenceSignal] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "score": self.score,
            "label": self.label,
            "signals": [s.to_dict() for s in self.signals],
        }


@dataclass(frozen=True)
class TickerDetails:
    ticker: str
    name: str
    description: str = ""
    sector: str = "Unknown"
    industry: str = "Unknown"
    market_cap: float = 0
    homepage_url: str = ""
    icon_url: str = ""
    list_date: str = ""
    total_employees: int = 0

    @classmethod
    def placeholder(cls, ticker: str) -> "TickerDetails":
        """Stand-in used when the metadata lookup fails."""
        return cls(ticker=ticker, name=ticker)


@dataclass(frozen=True)
class StockPrice:
    ticker: str
    close: float
    open: float
    high: float
    low: float
    volume: float
    date: str


@dataclass(frozen=True)
class InsiderReport:
    ticker: str
    lookback_days: int
    company: TickerDetails
    price: Optional[StockPrice]
    filing_count: int
    trades: List[ProcessedTrade]
    confidence: ConfidenceResult
    source: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ticker": self.ticker,
            "lookbackDays": self.lookback_days,
            "company": {
                "name": self.company.name,
                "sector": self.company.sector,
                "marketCap": self.company.market_cap,
                "description": self.company.description,
            },
            "price": (
                {"close": self.price.close, "volume": self.price.volume, "date": self.price.date}
                if self.price is not None
                else None
            ),
            "filings": {"recentForm4Count": self.filing_count},
            "trades": [t.to_dict() for t in self.trades],
            "confidence": self.confidence.to_dict(),
            "_meta": {"source": self.source},
        }
