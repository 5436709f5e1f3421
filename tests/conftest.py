from __future__ import annotations

import threading
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest
import requests

from insider_lens.config import Config


FIXTURES = Path(__file__).resolve().parent / "fixtures"


def load_fixture(name: str) -> str:
    return (FIXTURES / name).read_text(encoding="utf-8")


def sample_form4(remarks: str = "") -> str:
    return load_fixture("form4_sample.xml").replace("REMARKS_PLACEHOLDER", remarks)


class FakeResponse:
    def __init__(self, status_code: int = 200, text: str = "", payload: Any = None) -> None:
        self.status_code = status_code
        self._payload = payload
        if payload is not None and not text:
            text = "{json}"
        self.text = text

    def json(self) -> Any:
        if self._payload is None:
            raise ValueError("No JSON object could be decoded")
        return self._payload


class FakeHttp:
    """Stand-in for requests.get keyed by exact URL.

    A route holds a list of responses served in order; the last one repeats.
    Unknown URLs answer 404.
    """

    def __init__(self) -> None:
        self.routes: Dict[str, List[Any]] = {}
        self.calls: List[Dict[str, Any]] = []
        self._lock = threading.Lock()

    def add(
        self,
        url: str,
        *,
        status: int = 200,
        text: str = "",
        json: Any = None,
        exc: Optional[Exception] = None,
    ) -> None:
        item: Any = exc if exc is not None else FakeResponse(status, text, json)
        self.routes.setdefault(url, []).append(item)

    def urls(self) -> List[str]:
        return [c["url"] for c in self.calls]

    def __call__(self, url, params=None, headers=None, timeout=None, allow_redirects=True, **kwargs):
        with self._lock:
            self.calls.append({"url": url, "params": dict(params or {}), "headers": dict(headers or {})})
            queue = self.routes.get(url)
            if not queue:
                return FakeResponse(404, "Not Found")
            item = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(item, Exception):
            raise item
        return item


@pytest.fixture
def http(monkeypatch) -> FakeHttp:
    fake = FakeHttp()
    monkeypatch.setattr(requests, "get", fake)
    return fake


@pytest.fixture
def cfg() -> Config:
    return Config(
        POLYGON_API_KEY="test-key",
        POLYGON_BASE_URL="https://polygon.test",
        SEC_USER_AGENT="InsiderLensTests/1.0 (tests@example.com)",
        SEC_SEARCH_URL="https://efts.test/LATEST/search-index",
        SEC_SEARCH_PAGE_SIZE=100,
        SEC_MIN_INTERVAL_SECONDS=0.0,
        HTTP_TIMEOUT_SECONDS=5.0,
        STANDARD_LOOKBACK_DAYS=30,
        EXTENDED_LOOKBACK_DAYS=180,
        MAX_FILINGS=10,
        RESPONSE_CACHE_TTL_SECONDS=300.0,
    )


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
