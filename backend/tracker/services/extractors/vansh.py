from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from tracker.core.config import SourceKind
from tracker.services.dates import resolve_month_day
from tracker.services.extractors.base import RowBuilder, TableExtractor
from tracker.services.extractors.tokenizer import Cell, iter_html_rows, iter_markdown_rows
from tracker.services.models import RawRow
from tracker.services.normalize import remove_emojis, strip_markdown


def _cell(cells: List[Cell], idx: int) -> Optional[Cell]:
    return cells[idx] if idx < len(cells) else None


class VanshExtractor(TableExtractor):
    """
    vanshb03-style README: Company | Role | Location | Application | Date Posted,
    dates as "Sep 24". HTML rows first, markdown pipe rows when no HTML row survives.
    """

    kind = SourceKind.VANSH

    def _extract(self, raw_text: str, now: datetime) -> List[RawRow]:
        rows = self._from_html(raw_text, now)
        if rows:
            return rows
        return self._from_markdown(raw_text, now)

    def _from_html(self, raw_text: str, now: datetime) -> List[RawRow]:
        builder = RowBuilder(now, self.retention_days)
        out: List[RawRow] = []

        for cells in iter_html_rows(raw_text):
            company_cell, title_cell, location_cell, link_cell, date_cell = cells

            application_link = ""
            named = company_cell.first_named_link()
            if named:
                company = named.text
                application_link = named.href
            else:
                company = company_cell.text

            if not application_link:
                link = link_cell.first_link()
                if link:
                    application_link = link.href

            row = builder.build(
                company=builder.resolve_company(company),
                title=remove_emojis(title_cell.text),
                location=location_cell.text,
                application_link=application_link,
                created_at=resolve_month_day(date_cell.text, now),
            )
            if row:
                out.append(row)

        return out

    def _from_markdown(self, raw_text: str, now: datetime) -> List[RawRow]:
        builder = RowBuilder(now, self.retention_days)
        out: List[RawRow] = []

        for cells in iter_markdown_rows(raw_text):
            company_cell, title_cell, location_cell = cells[0], cells[1], cells[2]

            named = company_cell.first_named_link()
            company = named.text if named else company_cell.text

            # Last link after the location column; the company link is never used here
            application_link = ""
            for cell in cells[3:]:
                for link in cell.links:
                    application_link = link.href

            date_cell = _cell(cells, 4)
            row = builder.build(
                company=builder.resolve_company(strip_markdown(company)),
                title=strip_markdown(remove_emojis(title_cell.text)),
                location=strip_markdown(location_cell.text),
                application_link=application_link,
                created_at=resolve_month_day(date_cell.text if date_cell else None, now),
            )
            if row:
                out.append(row)

        return out
