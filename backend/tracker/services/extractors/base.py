from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from tracker.core.config import SourceKind
from tracker.services.dates import DEFAULT_RETENTION_DAYS, is_recent
from tracker.services.models import RawRow, now_utc

# Company cell marker meaning "same company as the row above"
CONTINUATION_MARKER = "↳"

_HEADER_WORDS = ("company", "name")


def looks_like_header(company: str) -> bool:
    low = (company or "").lower()
    return any(w in low for w in _HEADER_WORDS)


class RowBuilder:
    """
    Accept/reject predicate shared by all extractors.

    Holds the continuation state for one parse: the company of the last
    emitted row. Rejected rows never change it.
    """

    def __init__(self, now: datetime, retention_days: int = DEFAULT_RETENTION_DAYS):
        self.now = now
        self.retention_days = retention_days
        self.last_company = ""

    def resolve_company(self, company: str) -> str:
        company = (company or "").strip()
        if company == CONTINUATION_MARKER:
            return self.last_company
        return company

    def build(
        self,
        *,
        company: str,
        title: str,
        location: Optional[str],
        application_link: Optional[str],
        created_at: datetime,
    ) -> Optional[RawRow]:
        company = (company or "").strip()
        title = (title or "").strip()
        link = (application_link or "").strip()

        if looks_like_header(company):
            return None
        if not company or not title or not link:
            return None
        if not is_recent(created_at, self.now, self.retention_days):
            return None

        self.last_company = company
        return RawRow(
            company=company,
            title=title,
            location=(location or "").strip() or None,
            application_link=link,
            created_at=created_at,
        )


class TableExtractor:
    kind: SourceKind

    def __init__(self, retention_days: int = DEFAULT_RETENTION_DAYS):
        self.retention_days = retention_days

    def extract(self, raw_text: str, now: Optional[datetime] = None) -> List[RawRow]:
        return self._extract(raw_text or "", now or now_utc())

    def _extract(self, raw_text: str, now: datetime) -> List[RawRow]:
        raise NotImplementedError
