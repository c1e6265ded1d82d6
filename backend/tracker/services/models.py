from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def to_iso(dt: datetime) -> str:
    # Fixed-width UTC text so lexical order == chronological order in SQLite
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat(timespec="milliseconds")


def from_iso(s: str) -> datetime:
    dt = datetime.fromisoformat(s)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


@dataclass
class RawRow:
    """One accepted table row, before it is tagged with a source."""

    company: str
    title: str
    location: Optional[str]
    application_link: str
    created_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "company": self.company,
            "title": self.title,
            "location": self.location,
            "applicationLink": self.application_link,
            "createdAt": to_iso(self.created_at),
        }


@dataclass
class Posting:
    company: str
    title: str
    source: str
    created_at: datetime
    location: Optional[str] = None
    application_link: Optional[str] = None
    id: Optional[int] = None

    @property
    def key(self) -> Tuple[str, str]:
        return (self.company, self.title)

    @classmethod
    def from_raw(cls, row: RawRow, source: str) -> "Posting":
        return cls(
            company=row.company,
            title=row.title,
            location=row.location,
            application_link=row.application_link or None,
            source=source,
            created_at=row.created_at,
        )

    @classmethod
    def from_db_row(cls, row) -> "Posting":
        return cls(
            id=row["id"],
            company=row["company"],
            title=row["title"],
            location=row["location"],
            application_link=row["application_link"],
            source=row["source"],
            created_at=from_iso(row["created_at"]),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "company": self.company,
            "title": self.title,
            "location": self.location,
            "applicationLink": self.application_link,
            "source": self.source,
            "createdAt": to_iso(self.created_at),
        }
