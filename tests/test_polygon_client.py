import pytest

from insider_lens.polygon.client import fetch_latest_price, fetch_ticker_details
from insider_lens.util.http import SourceError


BASE = "https://polygon.test"


def test_ticker_details(http):
    http.add(
        BASE + "/v3/reference/tickers/TSLA",
        json={
            "results": {
                "ticker": "TSLA",
                "name": "Tesla, Inc. Common Stock",
                "description": "Electric vehicles.",
                "sic_description": "MOTOR VEHICLES & PASSENGER CAR BODIES",
                "market_cap": 1.2e12,
                "total_employees": "140473",
            }
        },
    )

    d = fetch_ticker_details(BASE, "k", "tsla")

    assert d.name == "Tesla, Inc. Common Stock"
    assert d.sector == "MOTOR VEHICLES & PASSENGER CAR BODIES"
    assert d.industry == d.sector
    assert d.market_cap == 1.2e12
    assert d.total_employees == 140473


def test_ticker_details_without_sic(http):
    http.add(BASE + "/v3/reference/tickers/ACME", json={"results": {"name": "Acme"}})

    d = fetch_ticker_details(BASE, "k", "ACME")

    assert d.sector == "Unknown"
    assert d.market_cap == 0


def test_ticker_details_error(http):
    http.add(BASE + "/v3/reference/tickers/NOPE", status=404, text='{"status":"NOT_FOUND"}')

    with pytest.raises(SourceError):
        fetch_ticker_details(BASE, "k", "NOPE")


def test_missing_key_raises_before_any_request(http):
    with pytest.raises(RuntimeError):
        fetch_ticker_details(BASE, None, "TSLA")
    assert http.calls == []


def test_latest_price(http):
    http.add(
        BASE + "/v2/aggs/ticker/TSLA/prev",
        json={"results": [{"T": "TSLA", "c": 250.5, "o": 245.0, "h": 252.0, "l": 244.1, "v": 98000000, "t": 1760659200000}]},
    )

    p = fetch_latest_price(BASE, "k", "TSLA")

    assert p is not None
    assert p.close == 250.5
    assert p.volume == 98000000
    assert p.date == "2025-10-17"


def test_latest_price_empty(http):
    http.add(BASE + "/v2/aggs/ticker/TSLA/prev", json={"results": []})

    assert fetch_latest_price(BASE, "k", "TSLA") is None


def test_filing_index_rejects_malformed_results(http):
    from datetime import date

    from insider_lens.polygon.client import fetch_filing_index

    http.add(BASE + "/stocks/filings/vX/index", json={"results": 7})

    with pytest.raises(SourceError):
        fetch_filing_index(BASE, "k", "TSLA", date_from=date(2026, 9, 19))


def test_latest_price_with_malformed_results(http):
    http.add(BASE + "/v2/aggs/ticker/TSLA/prev", json={"results": {"c": 1}})

    assert fetch_latest_price(BASE, "k", "TSLA") is None
