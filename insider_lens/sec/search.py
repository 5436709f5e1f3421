from __future__ import annotations

import re
from datetime import date
from typing import Any, Dict, List, Sequence

from insider_lens.models import FilingReference
from insider_lens.sec.edgar import accession_nodash, archive_url, cik_path_component
from insider_lens.util.http import SourceError, get_json
from insider_lens.util.throttle import RateLimiter
from insider_lens.util.time import parse_iso_date


def _debug(msg: str) -> None:
    print(f"[search] {msg}")


_CIK_SUFFIX_RE = re.compile(r"\(CIK\s*\d+\)", flags=re.IGNORECASE)


def _clean_display_name(name: str) -> str:
    """'Tesla, Inc.  (TSLA)  (CIK 0001318605)' -> 'Tesla, Inc.'"""
    s = _CIK_SUFFIX_RE.sub("", name or "")
    s = re.sub(r"\([A-Z0-9.\-, ]{1,20}\)", "", s)
    return " ".join(s.split()).strip()


def _issuer_name(display_names: List[str], ticker: str) -> str:
    # The issuer entry carries the ticker in parentheses; owners do not.
    marker = f"({ticker.upper()}"
    for dn in display_names:
        if marker in str(dn).upper():
            return _clean_display_name(str(dn))
    return _clean_display_name(str(display_names[0])) if display_names else ""


def _as_list(value: Any) -> List[Any]:
    # ciks / display_names are lists, but single values show up as bare strings
    if isinstance(value, (list, tuple)):
        return list(value)
    if isinstance(value, str) and value.strip():
        return [value]
    return []


def _document_filename(name: str) -> str:
    """Drop xsl rendering directories: "xslF345X05/wk-form4_1.xml" -> "wk-form4_1.xml"."""
    parts = [p for p in (name or "").strip().split("/") if p]
    kept = [p for p in parts[:-1] if not p.lower().startswith("xsl")] + parts[-1:]
    return "/".join(kept)


def parse_search_hit(hit: Dict[str, Any], ticker: str) -> FilingReference | None:
    """Turn one full-text search hit into a FilingReference.

    Hit ids look like "0001127602-24-001234:wk-form4_1700000000.xml"; the part after
    the colon is the document filename inside the accession directory. Ids that point
    at an xsl-rendered view (HTML) are mapped back to the raw XML file.
    """
    src = hit.get("_source") or {}
    if not isinstance(src, dict):
        return None

    hit_id = str(hit.get("_id") or "")
    acc_from_id, _, raw_filename = hit_id.partition(":")
    filename = _document_filename(raw_filename)
    acc = str(src.get("adsh") or acc_from_id).strip()
    filed = parse_iso_date(src.get("file_date"))
    if not acc or filed is None:
        return None

    form_type = str(src.get("form") or src.get("file_type") or "").strip().upper()

    ciks = [str(c) for c in _as_list(src.get("ciks")) if str(c).strip()]
    document_url = ""
    if ciks:
        try:
            cik_path = cik_path_component(ciks[0])
        except ValueError:
            cik_path = ""
        if cik_path:
            if filename:
                document_url = archive_url(cik_path, accession_nodash(acc), filename)
            else:
                document_url = archive_url(cik_path, accession_nodash(acc))

    display_names = [str(d) for d in _as_list(src.get("display_names"))]
    return FilingReference(
        accession_number=acc,
        ticker=ticker.upper(),
        form_type=form_type,
        filing_date=filed,
        document_url=document_url,
        issuer_name=_issuer_name(display_names, ticker),
    )


def search_filings(
    search_url: str,
    user_agent: str,
    ticker: str,
    *,
    start_date: date,
    end_date: date,
    form_types: Sequence[str],
    max_results: int,
    page_size: int = 100,
    limiter: RateLimiter | None = None,
    timeout: float = 30.0,
) -> List[FilingReference]:
    """Query SEC full-text search for a ticker's filings in [start_date, end_date].

    Pages through results with from/size until max_results references are
    collected or the hits run out. Each page request passes through `limiter`.
    Raises SourceError if any page fails; callers decide how to degrade.
    """
    t = (ticker or "").strip().upper()
    wanted = {f.upper() for f in form_types}
    size = max(1, min(int(page_size), 100))
    headers = {"User-Agent": user_agent, "Accept": "application/json"}

    out: List[FilingReference] = []
    offset = 0
    while len(out) < max_results:
        params = {
            "q": f'"{t}"',
            "forms": ",".join(form_types),
            "dateRange": "custom",
            "startdt": start_date.isoformat(),
            "enddt": end_date.isoformat(),
            "from": str(offset),
            "size": str(size),
        }
        data = get_json(search_url, params=params, headers=headers, timeout=timeout, limiter=limiter)
        if not isinstance(data, dict):
            raise SourceError(f"Full-text search returned unexpected payload: {str(data)[:200]}")

        hits_obj = data.get("hits") or {}
        hits = hits_obj.get("hits") if isinstance(hits_obj, dict) else None
        if not isinstance(hits, list) or not hits:
            break

        for hit in hits:
            if not isinstance(hit, dict):
                continue
            ref = parse_search_hit(hit, t)
            if ref is None or (wanted and ref.form_type not in wanted):
                continue
            out.append(ref)
            if len(out) >= max_results:
                break

        offset += len(hits)
        total = hits_obj.get("total") if isinstance(hits_obj, dict) else None
        total_value = total.get("value") if isinstance(total, dict) else total
        if len(hits) < size or (isinstance(total_value, int) and offset >= total_value):
            break

    _debug(f"Full-text search ticker={t} {start_date}..{end_date} refs={len(out)}")
    return out
