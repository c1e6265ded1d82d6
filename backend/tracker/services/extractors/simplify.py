from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from tracker.core.config import SourceKind
from tracker.services.dates import resolve_relative_age
from tracker.services.extractors.base import RowBuilder, TableExtractor
from tracker.services.extractors.tokenizer import Cell, iter_html_rows
from tracker.services.models import RawRow
from tracker.services.normalize import remove_emojis

APPLY_LABEL = "Apply"


def find_apply_link(cell: Cell) -> Optional[str]:
    """The styled Apply button: an <a> whose text or image alt says Apply."""
    for link in cell.links:
        if APPLY_LABEL in link.label:
            return link.href
    return None


class SimplifyExtractor(TableExtractor):
    """
    SimplifyJobs-style README: HTML rows only, ages as "0d" / "2w" / "1mo".
    The company link points at a Simplify profile, never at the application.
    """

    kind = SourceKind.SIMPLIFY

    def _extract(self, raw_text: str, now: datetime) -> List[RawRow]:
        builder = RowBuilder(now, self.retention_days)
        out: List[RawRow] = []

        for cells in iter_html_rows(raw_text):
            company_cell, title_cell, location_cell, link_cell, date_cell = cells

            named = company_cell.first_named_link()
            company = named.text if named else company_cell.text

            application_link = find_apply_link(link_cell)
            if not application_link:
                fallback = company_cell.first_link()
                application_link = fallback.href if fallback else ""

            row = builder.build(
                company=builder.resolve_company(company),
                title=remove_emojis(title_cell.text),
                location=location_cell.text,
                application_link=application_link,
                created_at=resolve_relative_age(date_cell.text, now),
            )
            if row:
                out.append(row)

        return out
