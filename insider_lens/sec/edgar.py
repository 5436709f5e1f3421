from __future__ import annotations

import re
from typing import Optional

from insider_lens.util.http import get_text
from insider_lens.util.throttle import RateLimiter


ARCHIVES_BASE = "https://www.sec.gov/Archives/edgar/data"

_OWNERSHIP_START_RE = re.compile(r"<ownershipdocument\b", flags=re.IGNORECASE)
_OWNERSHIP_END_RE = re.compile(r"</ownershipdocument\s*>", flags=re.IGNORECASE)


def accession_nodash(accession_number: str) -> str:
    return str(accession_number or "").replace("-", "").strip()


def cik_path_component(cik: str) -> str:
    # EDGAR path uses integer CIK without leading zeros
    digits = "".join(ch for ch in str(cik or "") if ch.isdigit())
    if not digits:
        raise ValueError(f"Not a CIK: {cik!r}")
    return str(int(digits))


def archive_url(cik_path: str, acc_nodash: str, filename: str | None = None) -> str:
    base = f"{ARCHIVES_BASE}/{cik_path}/{acc_nodash}/"
    return base + filename if filename else base


def looks_like_ownership_document(text: str | None) -> bool:
    """Sniff for the Form 4 root element."""
    if not isinstance(text, str):
        return False
    return _OWNERSHIP_START_RE.search(text) is not None


def extract_ownership_fragment(text: str | None) -> Optional[str]:
    """Cut the <ownershipDocument>...</ownershipDocument> element out of a larger file.

    Some accessions embed the ownership XML inside a .txt submission. When the
    closing tag is missing (truncated file) everything from the opening tag on is
    returned so the tolerant parser can still try.
    """
    if not isinstance(text, str):
        return None
    m_start = _OWNERSHIP_START_RE.search(text)
    if not m_start:
        return None
    m_end = _OWNERSHIP_END_RE.search(text, m_start.end())
    if not m_end:
        return text[m_start.start() :]
    return text[m_start.start() : m_end.end()]


def fetch_sec_text(url: str, user_agent: str, *, limiter: RateLimiter | None = None, timeout: float = 30.0) -> str:
    """GET an EDGAR archive page or document. Raises SourceError on failure."""
    return get_text(url, headers={"User-Agent": user_agent}, timeout=timeout, limiter=limiter)
