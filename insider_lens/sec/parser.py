from __future__ import annotations

import html
import re
from dataclasses import dataclass, field, replace
from datetime import date
from typing import List, Optional
from xml.etree import ElementTree as ET

from insider_lens.models import RawTrade
from insider_lens.util.normalization import normalize_display_name


def _debug(msg: str) -> None:
    print(f"[parser] {msg}")


# Shares added to the insider's position.
ACQUISITION_CODES = frozenset(
    {
        "P",  # open market or private purchase
        "A",  # grant / award from the company
        "J",  # other acquisition
        "K",  # equity swap
        "I",  # discretionary transaction
        "M",  # option exercise
        "C",  # conversion of derivative security
    }
)

# Shares removed from the insider's position.
DISPOSITION_CODES = frozenset(
    {
        "S",  # open market or private sale
        "F",  # tax withholding
        "G",  # gift
        "D",  # other disposition (e.g. to the issuer)
    }
)

RECOGNIZED_CODES = ACQUISITION_CODES | DISPOSITION_CODES

UNKNOWN_INSIDER = "Unknown Insider"
DEFAULT_ROLE = "Insider"

_SCHEDULED_PLAN_RE = re.compile(r"10b5-1", flags=re.IGNORECASE)


@dataclass(frozen=True)
class TransactionBlock:
    is_derivative: bool
    transaction_code: str | None
    shares: float
    price: float
    shares_owned_following: float


@dataclass(frozen=True)
class ParsedDocument:
    owner_name: str
    role: str
    is_scheduled_plan: bool
    issuer_name: str | None
    issuer_trading_symbol: str | None
    blocks: List[TransactionBlock] = field(default_factory=list)
    # "xml" when ElementTree parsed the document, "scan" for the tolerant fallback
    method: str = "xml"

    def to_raw_trades(self, *, ticker: str, filing_date: date, accession_number: str = "") -> List[RawTrade]:
        """Valid blocks as RawTrade records. Unrecognized codes and non-positive share counts are dropped."""
        out: List[RawTrade] = []
        for b in self.blocks:
            code = (b.transaction_code or "").strip().upper()
            if code not in RECOGNIZED_CODES:
                continue
            if not b.shares > 0:
                continue
            out.append(
                RawTrade(
                    insider_name=self.owner_name,
                    role=self.role,
                    transaction_code=code,
                    shares_traded=b.shares,
                    share_price=max(0.0, b.price),
                    shares_owned_after=max(0.0, b.shares_owned_following),
                    filing_date=filing_date,
                    ticker=ticker,
                    is_scheduled_plan=self.is_scheduled_plan,
                    accession_number=accession_number,
                    is_derivative=b.is_derivative,
                )
            )
        return out


def _parse_float(s: Optional[str]) -> Optional[float]:
    if s is None:
        return None
    t = str(s).strip()
    if not t:
        return None
    # Remove commas and dollar signs
    t = t.replace(",", "").replace("$", "")
    try:
        return float(t)
    except ValueError:
        return None


def _to_bool(v: Optional[str]) -> bool:
    if v is None:
        return False
    return v.strip().lower() in ("1", "true", "yes", "y", "x")


def _role_from(
    officer_title: Optional[str],
    is_director: Optional[str],
    is_officer: Optional[str],
    is_ten_percent: Optional[str],
) -> str:
    title = (officer_title or "").strip()
    if title:
        return title
    if _to_bool(is_director):
        return "Director"
    if _to_bool(is_officer):
        return "Officer"
    if _to_bool(is_ten_percent):
        return "10% Owner"
    return DEFAULT_ROLE


# ---------------------------------------------------------------------------
# ElementTree path
# ---------------------------------------------------------------------------


def _strip_ns(tag: str) -> str:
    if "}" in tag:
        return tag.split("}", 1)[1]
    return tag


def _find_child(parent: ET.Element | None, name: str) -> Optional[ET.Element]:
    if parent is None:
        return None
    for child in parent:
        if _strip_ns(child.tag) == name:
            return child
    return None


def _find_text(parent: ET.Element | None, path: List[str]) -> Optional[str]:
    cur: Optional[ET.Element] = parent
    for p in path:
        if cur is None:
            return None
        cur = _find_child(cur, p)
    if cur is None:
        return None
    text = (cur.text or "").strip()
    return text if text else None


def _find_value_text(parent: ET.Element | None, path: List[str]) -> Optional[str]:
    """Common SEC pattern: <foo><value>TEXT</value></foo>"""
    return _find_text(parent, path + ["value"])


def _first_descendant(root: ET.Element, name: str) -> Optional[ET.Element]:
    for el in root.iter():
        if _strip_ns(el.tag) == name:
            return el
    return None


def _block_from_element(tx_el: ET.Element, is_derivative: bool) -> TransactionBlock:
    shares = _parse_float(_find_value_text(tx_el, ["transactionAmounts", "transactionShares"]))
    price = _parse_float(_find_value_text(tx_el, ["transactionAmounts", "transactionPricePerShare"]))
    owned = _parse_float(_find_value_text(tx_el, ["postTransactionAmounts", "sharesOwnedFollowingTransaction"]))
    return TransactionBlock(
        is_derivative=is_derivative,
        transaction_code=_find_text(tx_el, ["transactionCoding", "transactionCode"]),
        shares=shares if shares is not None else 0.0,
        price=price if price is not None else 0.0,
        shares_owned_following=owned if owned is not None else 0.0,
    )


def _parse_with_etree(xml_text: str) -> ParsedDocument:
    root = ET.fromstring(xml_text.strip())

    # Some filings wrap ownershipDocument; search for it
    if _strip_ns(root.tag).lower() != "ownershipdocument":
        for el in root.iter():
            if _strip_ns(el.tag).lower() == "ownershipdocument":
                root = el
                break

    issuer_el = _find_child(root, "issuer")
    issuer_name = _find_text(issuer_el, ["issuerName"])
    issuer_symbol = _find_text(issuer_el, ["issuerTradingSymbol"])

    owner_name: Optional[str] = None
    name_el = _first_descendant(root, "rptOwnerName")
    if name_el is not None:
        owner_name = (name_el.text or "").strip() or None

    role = DEFAULT_ROLE
    ro_el = _find_child(root, "reportingOwner")
    rel = _find_child(ro_el, "reportingOwnerRelationship")
    if rel is not None:
        role = _role_from(
            _find_text(rel, ["officerTitle"]),
            _find_text(rel, ["isDirector"]),
            _find_text(rel, ["isOfficer"]),
            _find_text(rel, ["isTenPercentOwner"]),
        )

    aff = _first_descendant(root, "aff10b5One")
    scheduled = _to_bool(aff.text if aff is not None else None)

    blocks: List[TransactionBlock] = []
    for table_name, tx_name, is_derivative in (
        ("nonDerivativeTable", "nonDerivativeTransaction", False),
        ("derivativeTable", "derivativeTransaction", True),
    ):
        table = _find_child(root, table_name)
        if table is None:
            continue
        for tx in table:
            if _strip_ns(tx.tag) != tx_name:
                continue
            blocks.append(_block_from_element(tx, is_derivative=is_derivative))

    return ParsedDocument(
        owner_name=normalize_display_name(owner_name) or UNKNOWN_INSIDER,
        role=role,
        is_scheduled_plan=scheduled,
        issuer_name=issuer_name,
        issuer_trading_symbol=issuer_symbol,
        blocks=blocks,
        method="xml",
    )


# ---------------------------------------------------------------------------
# Tolerant scan for documents ElementTree rejects (truncated, bad entities, stray markup)
# ---------------------------------------------------------------------------


def _open_tag(name: str) -> str:
    return rf"<(?:[\w.\-]+:)?{name}\b[^>]*>"


def _close_tag(name: str) -> str:
    return rf"</(?:[\w.\-]+:)?{name}\s*>"


def _scan_text(text: str, name: str) -> Optional[str]:
    m = re.search(_open_tag(name) + r"(.*?)" + _close_tag(name), text, flags=re.IGNORECASE | re.DOTALL)
    if not m:
        return None
    inner = re.sub(r"<[^>]*>", " ", m.group(1))
    value = " ".join(html.unescape(inner).split())
    return value or None


def _scan_value(text: str, name: str) -> Optional[str]:
    """<name> ... <value>TEXT</value> ... </name>, or <name>TEXT</name> when there is no <value>."""
    m = re.search(_open_tag(name) + r"(.*?)" + _close_tag(name), text, flags=re.IGNORECASE | re.DOTALL)
    if not m:
        return None
    inner = m.group(1)
    v = re.search(_open_tag("value") + r"(.*?)" + _close_tag("value"), inner, flags=re.IGNORECASE | re.DOTALL)
    raw = v.group(1) if v else inner
    raw = re.sub(r"<[^>]*>", " ", raw)
    value = html.unescape(raw).strip()
    return value or None


def _scan_blocks(text: str) -> List[TransactionBlock]:
    blocks: List[TransactionBlock] = []
    pattern = re.compile(
        r"<(?:[\w.\-]+:)?(nonDerivativeTransaction|derivativeTransaction)\b[^>]*>(.*?)</(?:[\w.\-]+:)?\1\s*>",
        flags=re.IGNORECASE | re.DOTALL,
    )
    for m in pattern.finditer(text):
        is_derivative = m.group(1).lower() == "derivativetransaction"
        body = m.group(2)
        shares = _parse_float(_scan_value(body, "transactionShares"))
        price = _parse_float(_scan_value(body, "transactionPricePerShare"))
        owned = _parse_float(_scan_value(body, "sharesOwnedFollowingTransaction"))
        blocks.append(
            TransactionBlock(
                is_derivative=is_derivative,
                transaction_code=_scan_text(body, "transactionCode"),
                shares=shares if shares is not None else 0.0,
                price=price if price is not None else 0.0,
                shares_owned_following=owned if owned is not None else 0.0,
            )
        )
    return blocks


def _parse_with_scan(text: str) -> ParsedDocument:
    role = _role_from(
        _scan_text(text, "officerTitle"),
        _scan_text(text, "isDirector"),
        _scan_text(text, "isOfficer"),
        _scan_text(text, "isTenPercentOwner"),
    )
    return ParsedDocument(
        owner_name=normalize_display_name(_scan_text(text, "rptOwnerName")) or UNKNOWN_INSIDER,
        role=role,
        is_scheduled_plan=_to_bool(_scan_text(text, "aff10b5One")),
        issuer_name=_scan_text(text, "issuerName"),
        issuer_trading_symbol=_scan_text(text, "issuerTradingSymbol"),
        blocks=_scan_blocks(text),
        method="scan",
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def extract_document(text: str | None) -> ParsedDocument:
    """Extract owner, role, 10b5-1 flag and transaction blocks from one Form 4 document.

    Never raises on bad input: a document ElementTree cannot parse is scanned with
    tag patterns instead, and missing fields fall back to defaults
    ("Unknown Insider", "Insider", 0).
    """
    raw = text if isinstance(text, str) else ""
    try:
        parsed = _parse_with_etree(raw)
    except (ET.ParseError, ValueError) as e:
        _debug(f"XML parse failed ({e}); scanning raw text")
        parsed = _parse_with_scan(raw)

    # A plan mentioned anywhere (remarks, footnotes) counts as well as the checkbox.
    if not parsed.is_scheduled_plan and _SCHEDULED_PLAN_RE.search(raw):
        parsed = replace(parsed, is_scheduled_plan=True)

    _debug(
        f"Parsed ownership document: method={parsed.method} owner={parsed.owner_name!r} role={parsed.role!r} "
        f"blocks={len(parsed.blocks)} plan_10b5_1={parsed.is_scheduled_plan}"
    )
    return parsed


def extract_trades(
    text: str | None,
    *,
    ticker: str,
    filing_date: date,
    accession_number: str = "",
) -> List[RawTrade]:
    """Raw trades from one ownership document (possibly none)."""
    parsed = extract_document(text)
    return parsed.to_raw_trades(ticker=ticker, filing_date=filing_date, accession_number=accession_number)
