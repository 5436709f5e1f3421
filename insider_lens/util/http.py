from __future__ import annotations

from typing import Any, Dict, Optional

import requests

from insider_lens.util.throttle import RateLimiter


class SourceError(RuntimeError):
    """An upstream data source answered badly (network error, non-200, bad payload)."""


def _debug(msg: str) -> None:
    print(f"[http] {msg}")


def _get(
    url: str,
    *,
    params: Optional[Dict[str, Any]] = None,
    headers: Optional[Dict[str, str]] = None,
    timeout: float = 30.0,
    limiter: RateLimiter | None = None,
) -> requests.Response:
    if limiter is not None:
        limiter.wait()
    # params are left out: they can carry API keys.
    _debug(f"GET {url}")
    try:
        r = requests.get(url, params=params, headers=headers or {}, timeout=timeout, allow_redirects=True)
    except requests.RequestException as e:
        raise SourceError(f"GET {url} failed: {e}") from e
    if r.status_code != 200:
        raise SourceError(f"GET {url} failed {r.status_code}: {(r.text or '')[:500]}")
    return r


def get_json(
    url: str,
    *,
    params: Optional[Dict[str, Any]] = None,
    headers: Optional[Dict[str, str]] = None,
    timeout: float = 30.0,
    limiter: RateLimiter | None = None,
) -> Any:
    r = _get(url, params=params, headers=headers, timeout=timeout, limiter=limiter)
    try:
        return r.json()
    except ValueError as e:
        raise SourceError(f"GET {url} returned invalid JSON: {e}") from e


def get_text(
    url: str,
    *,
    headers: Optional[Dict[str, str]] = None,
    timeout: float = 30.0,
    limiter: RateLimiter | None = None,
) -> str:
    r = _get(url, headers=headers, timeout=timeout, limiter=limiter)
    return r.text or ""
