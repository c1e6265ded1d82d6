"""
Read side of the opportunity corpus.

Criteria are mutually exclusive and evaluated in this order:
search -> source -> companies -> everything. Search, source and default views
use opaque cursors; the company view uses a plain stringified offset because it
is sorted and sliced in memory.
"""

from __future__ import annotations

import base64
import binascii
import json
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from tracker.db.repo_postings import list_by_company, list_distinct_companies, list_recent, search_titles
from tracker.services.models import Posting, to_iso

_WORD_RE = re.compile(r"\w+", re.UNICODE)


class InvalidCursor(ValueError):
    pass


@dataclass
class QueryCriteria:
    search: Optional[str] = None
    source: Optional[str] = None
    companies: Sequence[str] = field(default_factory=list)


@dataclass
class Pagination:
    num_items: int = 25
    cursor: Optional[str] = None


@dataclass
class Page:
    page: List[Posting]
    is_done: bool
    continue_cursor: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "page": [p.to_dict() for p in self.page],
            "isDone": self.is_done,
            "continueCursor": self.continue_cursor,
        }


def _encode_cursor(payload: Dict[str, Any]) -> str:
    raw = json.dumps(payload, separators=(",", ":"), sort_keys=True).encode("utf-8")
    return base64.urlsafe_b64encode(raw).decode("ascii")


def _decode_cursor(cursor: str) -> Dict[str, Any]:
    try:
        data = json.loads(base64.urlsafe_b64decode(cursor.encode("ascii")).decode("utf-8"))
    except (binascii.Error, UnicodeError, ValueError) as e:
        raise InvalidCursor(f"malformed cursor: {cursor!r}") from e
    if not isinstance(data, dict):
        raise InvalidCursor(f"malformed cursor: {cursor!r}")
    return data


def _keyset_from_cursor(cursor: Optional[str]) -> Optional[Tuple[str, int]]:
    if not cursor:
        return None
    data = _decode_cursor(cursor)
    try:
        return str(data["c"]), int(data["i"])
    except (KeyError, TypeError, ValueError) as e:
        raise InvalidCursor(f"malformed cursor: {cursor!r}") from e


def _offset_from_search_cursor(cursor: Optional[str]) -> int:
    if not cursor:
        return 0
    data = _decode_cursor(cursor)
    try:
        offset = int(data["o"])
    except (KeyError, TypeError, ValueError) as e:
        raise InvalidCursor(f"malformed cursor: {cursor!r}") from e
    if offset < 0:
        raise InvalidCursor(f"malformed cursor: {cursor!r}")
    return offset


def _offset_from_plain_cursor(cursor: Optional[str]) -> int:
    if not cursor:
        return 0
    try:
        offset = int(cursor)
    except ValueError as e:
        raise InvalidCursor(f"malformed cursor: {cursor!r}") from e
    if offset < 0:
        raise InvalidCursor(f"malformed cursor: {cursor!r}")
    return offset


def build_match_expression(search: str) -> Optional[str]:
    """
    Turns free text into an FTS5 MATCH expression: every word must appear,
    the last one may be a prefix (search-as-you-type).
    """
    words = _WORD_RE.findall(search or "")
    if not words:
        return None
    quoted = [f'"{w}"' for w in words]
    quoted[-1] = quoted[-1] + "*"
    return " ".join(quoted)


def _search(con, search: str, pagination: Pagination) -> Page:
    match = build_match_expression(search)
    offset = _offset_from_search_cursor(pagination.cursor)
    if match is None:
        return Page(page=[], is_done=True, continue_cursor="")

    rows = search_titles(con, match, limit=pagination.num_items + 1, offset=offset)
    page = rows[: pagination.num_items]
    is_done = len(rows) <= pagination.num_items
    next_cursor = "" if is_done else _encode_cursor({"o": offset + len(page)})
    return Page(page=page, is_done=is_done, continue_cursor=next_cursor)


def _recent(con, pagination: Pagination, source: Optional[str] = None) -> Page:
    after = _keyset_from_cursor(pagination.cursor)
    rows = list_recent(con, limit=pagination.num_items + 1, source=source, after=after)
    page = rows[: pagination.num_items]
    is_done = len(rows) <= pagination.num_items
    if is_done or not page:
        return Page(page=page, is_done=True, continue_cursor="")
    last = page[-1]
    return Page(
        page=page,
        is_done=False,
        continue_cursor=_encode_cursor({"c": to_iso(last.created_at), "i": last.id}),
    )


def _by_companies(con, companies: Sequence[str], pagination: Pagination) -> Page:
    # one lookup per company, merged in memory; fine for picker-sized sets
    merged: List[Posting] = []
    for company in dict.fromkeys(companies):
        merged.extend(list_by_company(con, company))
    merged.sort(key=lambda p: (p.created_at, p.id or 0), reverse=True)

    start = _offset_from_plain_cursor(pagination.cursor)
    end = start + pagination.num_items
    page = merged[start:end]
    is_done = end >= len(merged)
    return Page(page=page, is_done=is_done, continue_cursor="" if is_done else str(end))


def query_postings(con, criteria: QueryCriteria, pagination: Pagination) -> Page:
    if pagination.num_items < 1:
        raise ValueError("num_items must be >= 1")

    search = (criteria.search or "").strip()
    if search:
        return _search(con, search, pagination)
    if criteria.source:
        return _recent(con, pagination, source=criteria.source)
    companies = [c for c in (criteria.companies or []) if c]
    if companies:
        return _by_companies(con, companies, pagination)
    return _recent(con, pagination)


def list_companies(con) -> List[str]:
    """Distinct company names across the whole corpus (filter pickers)."""
    return list_distinct_companies(con)
