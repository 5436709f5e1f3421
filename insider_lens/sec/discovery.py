from __future__ import annotations

from datetime import date
from typing import Iterable, List, Set

from insider_lens.config import Config
from insider_lens.models import FilingReference
from insider_lens.polygon.client import FORM4_TYPES, fetch_filing_index
from insider_lens.sec.search import search_filings
from insider_lens.util.throttle import RateLimiter
from insider_lens.util.time import days_ago, today_utc


def _debug(msg: str) -> None:
    print(f"[discovery] {msg}")


def _finalize(refs: Iterable[FilingReference], date_from: date, max_count: int) -> List[FilingReference]:
    """Drop out-of-window and duplicate references, newest first, capped at max_count."""
    seen: Set[str] = set()
    kept: List[FilingReference] = []
    for r in refs:
        if r.filing_date < date_from:
            continue
        if r.accession_number in seen:
            continue
        seen.add(r.accession_number)
        kept.append(r)
    # sorted() is stable: same-day filings keep the source's order
    kept = sorted(kept, key=lambda r: r.filing_date, reverse=True)
    return kept[: max(0, int(max_count))]


def discover_filings(
    cfg: Config,
    ticker: str,
    lookback_days: int,
    max_count: int,
    *,
    limiter: RateLimiter | None = None,
    today: date | None = None,
) -> List[FilingReference]:
    """Find recent Form 4 / 4/A filings for a ticker, newest first.

    Primary source: Polygon's EDGAR filing index. If it yields no reference with
    a usable document URL (including when it fails outright), SEC full-text
    search is queried instead and its result *replaces* the primary one.

    Never raises for source failures: the worst case is an empty list.
    """
    t = (ticker or "").strip().upper()
    if not t or max_count <= 0:
        return []

    end = today or today_utc()
    date_from = days_ago(lookback_days, today=end)

    primary: List[FilingReference] = []
    try:
        page = fetch_filing_index(
            cfg.POLYGON_BASE_URL,
            cfg.POLYGON_API_KEY,
            t,
            date_from=date_from,
            form_types=FORM4_TYPES,
            limit=max_count,
            timeout=cfg.HTTP_TIMEOUT_SECONDS,
        )
        primary = _finalize(page.filings, date_from, max_count)
    except RuntimeError as e:
        _debug(f"Primary filing index failed ticker={t}: {e}")

    if any(r.document_url for r in primary):
        _debug(f"Primary filing index ticker={t} refs={len(primary)}")
        return primary

    _debug(f"No usable document URLs from primary index ticker={t}; using full-text search")
    try:
        secondary = search_filings(
            cfg.SEC_SEARCH_URL,
            cfg.SEC_USER_AGENT,
            t,
            start_date=date_from,
            end_date=end,
            form_types=FORM4_TYPES,
            max_results=max_count,
            page_size=cfg.SEC_SEARCH_PAGE_SIZE,
            limiter=limiter,
            timeout=cfg.HTTP_TIMEOUT_SECONDS,
        )
    except RuntimeError as e:
        _debug(f"Full-text search failed ticker={t}: {e}")
        return []

    return _finalize(secondary, date_from, max_count)
