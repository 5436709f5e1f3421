from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from insider_lens.models import FilingIndexPage, FilingReference, StockPrice, TickerDetails
from insider_lens.util.http import SourceError, get_json
from insider_lens.util.time import parse_iso_date


FORM4_TYPES = ("4", "4/A")


def _debug(msg: str) -> None:
    print(f"[polygon] {msg}")


def _require_key(api_key: str | None) -> str:
    if not api_key:
        raise RuntimeError("POLYGON_API_KEY is not configured. Add it to .env.")
    return api_key


def _to_float(x: Any, default: float = 0.0) -> float:
    try:
        if x is None:
            return default
        return float(x)
    except (TypeError, ValueError):
        return default


def _to_int(x: Any, default: int = 0) -> int:
    try:
        if x is None:
            return default
        # sometimes strings, sometimes floats
        return int(float(x))
    except (TypeError, ValueError):
        return default


def _polygon_get(base_url: str, api_key: str | None, path: str, params: Optional[Dict[str, Any]] = None, timeout: float = 30.0) -> Dict[str, Any]:
    url = f"{base_url.rstrip('/')}{path}"
    q: Dict[str, Any] = {"apiKey": _require_key(api_key)}
    if params:
        q.update(params)
    data = get_json(url, params=q, timeout=timeout)
    if not isinstance(data, dict):
        raise SourceError(f"Polygon {path} returned unexpected payload: {str(data)[:200]}")
    return data


def fetch_ticker_details(base_url: str, api_key: str | None, ticker: str, *, timeout: float = 30.0) -> TickerDetails:
    """Company name, SIC description (used as sector/industry) and market cap.

    Endpoint: GET /v3/reference/tickers/{ticker}
    """
    t = (ticker or "").strip().upper()
    data = _polygon_get(base_url, api_key, f"/v3/reference/tickers/{t}", timeout=timeout)
    r = data.get("results")
    if not isinstance(r, dict):
        raise SourceError(f"Polygon ticker details for {t} has no results")

    sic = r.get("sic_description") or "Unknown"
    branding = r.get("branding") or {}
    return TickerDetails(
        ticker=str(r.get("ticker") or t),
        name=str(r.get("name") or t),
        description=str(r.get("description") or ""),
        sector=str(sic),
        industry=str(sic),
        market_cap=_to_float(r.get("market_cap")),
        homepage_url=str(r.get("homepage_url") or ""),
        icon_url=str(branding.get("icon_url") or "") if isinstance(branding, dict) else "",
        list_date=str(r.get("list_date") or ""),
        total_employees=_to_int(r.get("total_employees")),
    )


def fetch_filing_index(
    base_url: str,
    api_key: str | None,
    ticker: str,
    *,
    date_from: date,
    form_types: Sequence[str] = FORM4_TYPES,
    limit: int = 20,
    timeout: float = 30.0,
) -> FilingIndexPage:
    """Form 4 filing metadata from the EDGAR filing index, newest first.

    Endpoint: GET /stocks/filings/vX/index
    Polygon only indexes metadata (dates, URLs); the transaction fields come
    from the ownership document itself.
    """
    t = (ticker or "").strip().upper()
    wanted = {f.upper() for f in form_types}
    data = _polygon_get(
        base_url,
        api_key,
        "/stocks/filings/vX/index",
        params={
            "ticker": t,
            "form_type.any_of": ",".join(form_types),
            "filing_date.gte": date_from.isoformat(),
            "limit": str(int(limit)),
            "sort": "filing_date.desc",
        },
        timeout=timeout,
    )

    results = data.get("results") or []
    if not isinstance(results, list):
        raise SourceError(f"Polygon filing index for {t} has malformed results: {str(results)[:200]}")

    filings: List[FilingReference] = []
    for r in results:
        if not isinstance(r, dict):
            continue
        form_type = str(r.get("form_type") or "").strip().upper()
        if form_type not in wanted:
            continue
        filed = parse_iso_date(r.get("filing_date"))
        acc = str(r.get("accession_number") or "").strip()
        if filed is None or not acc:
            continue
        filings.append(
            FilingReference(
                accession_number=acc,
                ticker=str(r.get("ticker") or t).upper(),
                form_type=form_type,
                filing_date=filed,
                document_url=str(r.get("filing_url") or "").strip(),
                issuer_name=str(r.get("issuer_name") or ""),
            )
        )

    total = _to_int(data.get("count"), default=len(filings))
    _debug(f"Filing index ticker={t} from={date_from} returned={len(filings)} count={total}")
    return FilingIndexPage(filings=filings, total_count=total, next_url=data.get("next_url") or None)


def fetch_latest_price(base_url: str, api_key: str | None, ticker: str, *, timeout: float = 30.0) -> StockPrice | None:
    """Previous session's OHLCV bar. Returns None when Polygon has no bar.

    Endpoint: GET /v2/aggs/ticker/{ticker}/prev
    """
    t = (ticker or "").strip().upper()
    data = _polygon_get(base_url, api_key, f"/v2/aggs/ticker/{t}/prev", timeout=timeout)
    results = data.get("results") or []
    if not isinstance(results, list) or not results or not isinstance(results[0], dict):
        return None
    r = results[0]

    day = ""
    ts = r.get("t")
    if ts is not None:
        try:
            day = datetime.fromtimestamp(float(ts) / 1000.0, tz=timezone.utc).date().isoformat()
        except (TypeError, ValueError, OverflowError):
            day = ""

    return StockPrice(
        ticker=str(r.get("T") or t),
        close=_to_float(r.get("c")),
        open=_to_float(r.get("o")),
        high=_to_float(r.get("h")),
        low=_to_float(r.get("l")),
        volume=_to_float(r.get("v")),
        date=day,
    )
