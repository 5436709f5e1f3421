import os
from dataclasses import dataclass
from typing import Optional

# Optional: load a local .env file if present.
try:
    from dotenv import load_dotenv

    load_dotenv()
except Exception:
    # If python-dotenv isn't installed or .env isn't present, that's fine.
    pass


_PLACEHOLDER_KEYS = {"", "your_api_key_here"}


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_key(name: str) -> Optional[str]:
    """Read an API key, treating blank and template values as unset."""
    raw = (os.environ.get(name) or "").strip()
    if raw in _PLACEHOLDER_KEYS:
        return None
    return raw


@dataclass(frozen=True)
class Config:
    """Runtime configuration.

    IMPORTANT: Provide API keys via environment variables or a .env file.
    Do not hardcode secrets in source code.
    """

    # -----------------
    # Polygon (ticker details, filing index, prices)
    # -----------------
    POLYGON_API_KEY: str | None = _env_key("POLYGON_API_KEY")
    POLYGON_BASE_URL: str = os.environ.get("POLYGON_BASE_URL", "https://api.polygon.io")

    # -----------------
    # SEC (EDGAR requires a descriptive User-Agent)
    # -----------------
    SEC_USER_AGENT: str = os.environ.get(
        "SEC_USER_AGENT",
        "InsiderLens/0.1 (contact: you@example.com)",
    )
    SEC_SEARCH_URL: str = os.environ.get("SEC_SEARCH_URL", "https://efts.sec.gov/LATEST/search-index")
    SEC_SEARCH_PAGE_SIZE: int = _env_int("SEC_SEARCH_PAGE_SIZE", 100)

    # Fixed pause between successive SEC fetches inside one request.
    # EDGAR's published ceiling is 10 requests/second; 0.2s keeps us well below it.
    SEC_MIN_INTERVAL_SECONDS: float = _env_float("SEC_MIN_INTERVAL_SECONDS", 0.2)

    HTTP_TIMEOUT_SECONDS: float = _env_float("HTTP_TIMEOUT_SECONDS", 30.0)

    # -----------------
    # Pipeline
    # -----------------
    STANDARD_LOOKBACK_DAYS: int = _env_int("STANDARD_LOOKBACK_DAYS", 30)
    EXTENDED_LOOKBACK_DAYS: int = _env_int("EXTENDED_LOOKBACK_DAYS", 180)
    MAX_FILINGS: int = _env_int("MAX_FILINGS", 10)

    # -----------------
    # API
    # -----------------
    RESPONSE_CACHE_TTL_SECONDS: float = _env_float("RESPONSE_CACHE_TTL_SECONDS", 300.0)

    # If you develop a frontend on another port, list its origin here.
    CORS_ALLOW_ORIGINS: str = os.environ.get(
        "CORS_ALLOW_ORIGINS",
        "http://localhost:3000,http://127.0.0.1:3000",
    )


def load_config() -> Config:
    return Config()
