from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor
from datetime import date
from typing import Any, List, Optional, Tuple

from insider_lens.compute.scoring import calculate_confidence
from insider_lens.compute.trades import process_trades
from insider_lens.config import Config
from insider_lens.models import FilingReference, InsiderReport, RawTrade, TickerDetails
from insider_lens.polygon.client import fetch_latest_price, fetch_ticker_details
from insider_lens.sec.discovery import discover_filings
from insider_lens.sec.locator import locate_document
from insider_lens.sec.parser import ParsedDocument, extract_document
from insider_lens.util.throttle import RateLimiter


REPORT_SOURCE = "polygon.io + sec-edgar-parsed"


def _debug(msg: str) -> None:
    print(f"[pipeline] {msg}")


def _check_issuer(ref: FilingReference, parsed: ParsedDocument) -> None:
    symbol = (parsed.issuer_trading_symbol or "").strip().upper()
    _debug(f"accession={ref.accession_number} issuer={parsed.issuer_name!r} symbol={symbol or '?'} method={parsed.method}")
    if symbol and symbol != ref.ticker.upper():
        # logged only; the trades are still attributed to ref.ticker
        _debug(f"Issuer symbol mismatch accession={ref.accession_number} expected={ref.ticker} got={symbol}")


def fetch_insider_trades(
    cfg: Config,
    ticker: str,
    lookback_days: int,
    max_filings: int,
    *,
    limiter: RateLimiter | None = None,
    today: date | None = None,
) -> Tuple[List[FilingReference], List[RawTrade]]:
    """Discover filings and parse them one at a time.

    Filings are processed strictly in order, and every SEC fetch goes through
    the same `limiter`, so EDGAR sees at most one request per interval from this
    request. A filing that cannot be located or parsed contributes no trades.
    """
    t = (ticker or "").strip().upper()
    lim = limiter if limiter is not None else RateLimiter(cfg.SEC_MIN_INTERVAL_SECONDS)

    refs = discover_filings(cfg, t, lookback_days, max_filings, limiter=lim, today=today)
    _debug(f"ticker={t} lookback={lookback_days}d filings={len(refs)}")

    raws: List[RawTrade] = []
    for ref in refs:
        try:
            doc = locate_document(ref, cfg.SEC_USER_AGENT, limiter=lim, timeout=cfg.HTTP_TIMEOUT_SECONDS)
            if doc is None:
                _debug(f"Skipping accession={ref.accession_number}: no document")
                continue
            parsed = extract_document(doc.text)
            _check_issuer(ref, parsed)
            trades = parsed.to_raw_trades(
                ticker=ref.ticker,
                filing_date=ref.filing_date,
                accession_number=ref.accession_number,
            )
        except Exception as e:
            # Skip bad filings to avoid breaking the whole request
            _debug(f"Skipping accession={ref.accession_number}: {e}")
            continue
        _debug(f"accession={ref.accession_number} strategy={doc.strategy} trades={len(trades)}")
        raws.extend(trades)

    return refs, raws


def _result_or(fut: Future, default: Any, what: str) -> Any:
    try:
        return fut.result()
    except Exception as e:
        _debug(f"{what} failed, using fallback: {e}")
        return default


def build_report(
    cfg: Config,
    ticker: str,
    *,
    extended: bool = False,
    max_filings: Optional[int] = None,
    limiter: RateLimiter | None = None,
    today: date | None = None,
) -> InsiderReport:
    """Full report for one ticker: company, latest price, scored trades, confidence.

    The three upstream lookups run concurrently and are each optional:
      - ticker details -> placeholder record keyed by the bare ticker
      - latest price   -> None
      - filings/trades -> no trades (neutral confidence)
    """
    t = (ticker or "").strip().upper()
    if not t:
        raise RuntimeError("Ticker is blank")

    lookback = cfg.EXTENDED_LOOKBACK_DAYS if extended else cfg.STANDARD_LOOKBACK_DAYS
    n_filings = int(max_filings if max_filings is not None else cfg.MAX_FILINGS)

    with ThreadPoolExecutor(max_workers=3) as ex:
        f_details = ex.submit(
            fetch_ticker_details, cfg.POLYGON_BASE_URL, cfg.POLYGON_API_KEY, t, timeout=cfg.HTTP_TIMEOUT_SECONDS
        )
        f_trades = ex.submit(fetch_insider_trades, cfg, t, lookback, n_filings, limiter=limiter, today=today)
        f_price = ex.submit(
            fetch_latest_price, cfg.POLYGON_BASE_URL, cfg.POLYGON_API_KEY, t, timeout=cfg.HTTP_TIMEOUT_SECONDS
        )

        company: TickerDetails = _result_or(f_details, TickerDetails.placeholder(t), "ticker details")
        price = _result_or(f_price, None, "latest price")
        refs, raws = _result_or(f_trades, ([], []), "insider filings")

    trades = process_trades(raws)
    confidence = calculate_confidence(trades)
    _debug(f"ticker={t} trades={len(trades)} confidence={confidence.score} ({confidence.label})")

    return InsiderReport(
        ticker=t,
        lookback_days=lookback,
        company=company,
        price=price,
        filing_count=len(refs),
        trades=trades,
        confidence=confidence,
        source=REPORT_SOURCE,
    )
