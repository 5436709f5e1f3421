from __future__ import annotations

from typing import Iterable, List

from insider_lens.compute.scoring import round_half_up, score_conviction
from insider_lens.models import ProcessedTrade, RawTrade


TRANSACTION_LABELS = {
    "P": "Used Personal Cash",
    "S": "Insider Selling",
    "A": "Company Award",
    "M": "Option Exercise",
    "G": "Gift",
    "F": "Tax Withholding",
}

DISPLAY_CODES = ("P", "S", "A")

# Codes where the reported post-transaction holdings already include the new shares.
_NET_OF_TRADE_CODES = ("P", "A")


def holdings_before(code: str, shares_traded: float, shares_owned_after: float) -> float:
    c = (code or "").upper()
    if c in _NET_OF_TRADE_CODES:
        return max(0.0, shares_owned_after - shares_traded)
    return shares_owned_after + shares_traded


def percentage_change(shares_traded: float, before: float) -> float:
    """Trade size relative to holdings before the trade, in percent (unrounded)."""
    if before > 0:
        return (shares_traded / before) * 100.0
    return 0.0


def transaction_label(code: str) -> str:
    c = (code or "").upper()
    return TRANSACTION_LABELS.get(c, f"Transaction ({c})")


def display_code(code: str) -> str:
    c = (code or "").upper()
    return c if c in DISPLAY_CODES else "A"


def process_trade(raw: RawTrade) -> ProcessedTrade:
    """Derive value, holdings, % change, label and conviction for one raw trade.

    Conviction is computed from the filed code; the display code collapses
    everything outside P/S/A to A afterwards.
    """
    code = (raw.transaction_code or "").upper()
    before = holdings_before(code, raw.shares_traded, raw.shares_owned_after)
    pct = percentage_change(raw.shares_traded, before)

    return ProcessedTrade(
        ticker=raw.ticker,
        insider_name=raw.insider_name,
        role=raw.role,
        transaction_code=display_code(code),
        raw_transaction_code=code,
        shares_traded=raw.shares_traded,
        share_price=raw.share_price,
        shares_owned_after=raw.shares_owned_after,
        total_holdings_before=before,
        date=raw.filing_date,
        transaction_label=transaction_label(code),
        trade_value=raw.shares_traded * raw.share_price,
        percentage_change=round_half_up(pct * 100) / 100,
        conviction_score=score_conviction(code, pct),
        is_scheduled_plan=raw.is_scheduled_plan,
        accession_number=raw.accession_number,
    )


def process_trades(raws: Iterable[RawTrade]) -> List[ProcessedTrade]:
    """Process and order newest first (stable for same-day filings)."""
    processed = [process_trade(r) for r in raws]
    return sorted(processed, key=lambda t: t.date, reverse=True)
