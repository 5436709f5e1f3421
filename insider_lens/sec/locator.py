from __future__ import annotations

import posixpath
import re
from typing import List, Optional, Tuple
from urllib.parse import urljoin, urlsplit

from insider_lens.models import FilingReference, LocatedDocument
from insider_lens.sec.edgar import extract_ownership_fragment, fetch_sec_text, looks_like_ownership_document
from insider_lens.util.throttle import RateLimiter


def _debug(msg: str) -> None:
    print(f"[locator] {msg}")


_HREF_RE = re.compile(r"""href\s*=\s*["']([^"']+)["']""", flags=re.IGNORECASE)

# Filenames EDGAR filer agents commonly give the Form 4 XML.
_PRIMARY_NAME_RE = re.compile(r"(form4|doc4|primary_doc|ownership|edgardoc)", flags=re.IGNORECASE)

_ARCHIVE_PATH_RE = re.compile(r"""(/Archives/edgar/data/\d+/\d+/[^\s"'<>]+?\.xml)\b""", flags=re.IGNORECASE)


def normalize_index_url(url: str) -> str:
    """Add a trailing slash when the URL names a directory (no file extension in the last segment)."""
    u = (url or "").strip()
    if not u or u.endswith("/"):
        return u
    parts = urlsplit(u)
    last = posixpath.basename(parts.path)
    if "." in last:
        return u
    return u + "/"


def _is_rendered_view(href: str) -> bool:
    # /xslF345X05/form4.xml is the HTML rendering, not the XML
    return any(seg.lower().startswith("xsl") for seg in href.split("/")[:-1])


def _xml_links(markup: str) -> List[str]:
    links: List[str] = []
    for m in _HREF_RE.finditer(markup or ""):
        href = m.group(1).strip()
        path = urlsplit(href).path
        if not path.lower().endswith(".xml") or _is_rendered_view(path):
            continue
        links.append(href)
    return links


def find_document_link(markup: str, index_url: str) -> Tuple[Optional[str], Optional[str]]:
    """Pick the ownership document link out of an index page.

    Candidate patterns, first match wins:
      1) a link whose filename looks like the primary Form 4 document
      2) any link ending in .xml
      3) an absolute /Archives/edgar/data/... path ending in .xml anywhere in the text

    Returns (absolute_url, strategy) or (None, None).
    """
    links = _xml_links(markup)

    for href in links:
        filename = posixpath.basename(urlsplit(href).path)
        if _PRIMARY_NAME_RE.search(filename):
            return urljoin(index_url, href), "index_primary"

    if links:
        return urljoin(index_url, links[0]), "index_xml"

    for m in _ARCHIVE_PATH_RE.finditer(markup or ""):
        path = m.group(1)
        if _is_rendered_view(path):
            continue
        return urljoin(index_url, path), "index_archive_path"

    return None, None


def _direct_fetch_and_sniff(
    url: str,
    user_agent: str,
    *,
    limiter: RateLimiter | None,
    timeout: float,
) -> LocatedDocument | None:
    try:
        text = fetch_sec_text(url, user_agent, limiter=limiter, timeout=timeout)
    except RuntimeError as e:
        _debug(f"Direct fetch failed url={url}: {e}")
        return None
    return _sniffed(url, text)


def _sniffed(url: str, text: str) -> LocatedDocument | None:
    if not looks_like_ownership_document(text):
        _debug(f"No ownershipDocument marker at url={url}")
        return None
    fragment = extract_ownership_fragment(text) or text
    return LocatedDocument(url=url, text=fragment, strategy="direct")


def locate_document(
    ref: FilingReference,
    user_agent: str,
    *,
    limiter: RateLimiter | None = None,
    timeout: float = 30.0,
) -> LocatedDocument | None:
    """Resolve the ownership document for one filing, or None if nothing usable exists.

    The reference URL is treated as an index page first. If that fetch fails, or
    no link pattern matches, or the linked file is not an ownership document, the
    original URL is fetched directly and accepted only if it carries the
    <ownershipDocument> root tag.
    """
    original = (ref.document_url or "").strip()
    if not original:
        _debug(f"No document URL accession={ref.accession_number}")
        return None

    index_url = normalize_index_url(original)
    try:
        markup = fetch_sec_text(index_url, user_agent, limiter=limiter, timeout=timeout)
    except RuntimeError as e:
        _debug(f"Index fetch failed url={index_url}: {e}; trying direct fetch")
        return _direct_fetch_and_sniff(original, user_agent, limiter=limiter, timeout=timeout)

    link, strategy = find_document_link(markup, index_url)
    if link is not None:
        try:
            text = fetch_sec_text(link, user_agent, limiter=limiter, timeout=timeout)
        except RuntimeError as e:
            _debug(f"Linked document fetch failed url={link}: {e}")
        else:
            fragment = extract_ownership_fragment(text)
            if fragment:
                _debug(f"Selected document accession={ref.accession_number} strategy={strategy} url={link}")
                return LocatedDocument(url=link, text=fragment, strategy=str(strategy))
            _debug(f"Linked file is not an ownership document url={link}")

    # The index URL was the reference itself: its body is what a direct fetch would return.
    if index_url == original:
        return _sniffed(original, markup)
    return _direct_fetch_and_sniff(original, user_agent, limiter=limiter, timeout=timeout)
