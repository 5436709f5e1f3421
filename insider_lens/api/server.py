from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional

from fastapi import Depends, FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from insider_lens.cache import TTLCache
from insider_lens.config import Config, load_config
from insider_lens.models import InsiderReport
from insider_lens.pipeline import build_report


def _debug(msg: str) -> None:
    print(f"[api] {msg}")


ReportBuilder = Callable[[str, bool], InsiderReport]

app = FastAPI(title="Insider Lens", version="0.1.0")
cfg: Config = load_config()

# Reports are cached per (ticker, mode) for a few minutes; one cache per process.
_response_cache = TTLCache(cfg.RESPONSE_CACHE_TTL_SECONDS)

_cors_origins = [o.strip() for o in (cfg.CORS_ALLOW_ORIGINS or "").split(",") if o.strip()]
if _cors_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


def get_response_cache() -> TTLCache:
    return _response_cache


def get_report_builder() -> ReportBuilder:
    def _build(ticker: str, extended: bool) -> InsiderReport:
        return build_report(cfg, ticker, extended=extended)

    return _build


# -----------------------------
# Response models
# -----------------------------


class HealthResponse(BaseModel):
    status: str


class CompanyOut(BaseModel):
    name: str
    sector: str
    marketCap: float
    description: str


class PriceOut(BaseModel):
    close: float
    volume: float
    date: str


class SignalOut(BaseModel):
    kind: str
    text: str
    points: int


class ConfidenceOut(BaseModel):
    score: int
    label: str
    signals: List[SignalOut]


class FilingsOut(BaseModel):
    recentForm4Count: int


class InsiderTradesResponse(BaseModel):
    ticker: str
    lookbackDays: int
    company: CompanyOut
    price: Optional[PriceOut] = None
    filings: FilingsOut
    # camelCase trade rows, see ProcessedTrade.to_dict
    trades: List[Dict[str, Any]]
    confidence: ConfidenceOut
    meta: Dict[str, str] = Field(alias="_meta")


# -----------------------------
# Health
# -----------------------------


@app.get("/health", response_model=HealthResponse)
def health() -> Dict[str, Any]:
    return {"status": "ok"}


# -----------------------------
# Insider trades
# -----------------------------


@app.get("/api/insider-trades", response_model=InsiderTradesResponse)
def insider_trades(
    ticker: Optional[str] = Query(None),
    extended: bool = Query(False),
    cache: TTLCache = Depends(get_response_cache),
    builder: ReportBuilder = Depends(get_report_builder),
) -> Dict[str, Any]:
    """Scored insider trades + confidence for a ticker.

    Standard mode looks back STANDARD_LOOKBACK_DAYS (30), extended mode
    EXTENDED_LOOKBACK_DAYS (180). Upstream failures never surface as errors:
    the worst case is an empty trade list with a neutral confidence.
    """
    t = (ticker or "").strip().upper()
    if not t:
        raise HTTPException(status_code=400, detail="missing_ticker")

    key = (t, "extended" if extended else "standard")
    cached = cache.get(key)
    if cached is not None:
        _debug(f"Cache hit ticker={t} mode={key[1]}")
        return cached

    report = builder(t, extended)
    data = report.to_dict()
    cache.set(key, data)
    return data
