"""
Cell tokenizers for README job tables.

Two layouts show up in the wild:
- HTML tables embedded in markdown (<tr> with five <td> cells)
- plain markdown pipe tables (| Company | Role | Location | Link | Date |)

Both are reduced to the same Cell shape so the row builders never touch markup.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterator, List, Optional

from bs4 import BeautifulSoup
from bs4.element import Tag

from tracker.services.normalize import normalize_whitespace, strip_markdown

HTML_ROW_WIDTH = 5
MIN_MARKDOWN_CELLS = 3

_MD_LINK_RE = re.compile(r"\[([^\]]*)\]\(([^)\s]+)\)")


@dataclass(frozen=True)
class Link:
    href: str
    text: str = ""
    alt: str = ""

    @property
    def label(self) -> str:
        return f"{self.text} {self.alt}".strip()


@dataclass
class Cell:
    text: str
    links: List[Link] = field(default_factory=list)

    def first_link(self) -> Optional[Link]:
        return self.links[0] if self.links else None

    def first_named_link(self) -> Optional[Link]:
        """First link that carries visible text (not just an image)."""
        for link in self.links:
            if link.text:
                return link
        return None


def _links_from_tag(node: Tag) -> List[Link]:
    links: List[Link] = []
    for a in node.find_all("a", href=True):
        alts = [img.get("alt") or "" for img in a.find_all("img")]
        links.append(
            Link(
                href=a["href"].strip(),
                text=normalize_whitespace(a.get_text()),
                alt=normalize_whitespace(" ".join(alts)),
            )
        )
    return links


def _text_from_tag(node: Tag) -> str:
    for br in node.find_all("br"):
        br.replace_with(", ")
    return normalize_whitespace(node.get_text())


def cell_from_tag(td: Tag) -> Cell:
    links = _links_from_tag(td)
    return Cell(text=_text_from_tag(td), links=links)


def cell_from_markdown(raw: str) -> Cell:
    """A markdown table cell may hold inline HTML, markdown links, or both."""
    md_links = [Link(href=m.group(2), text=normalize_whitespace(m.group(1))) for m in _MD_LINK_RE.finditer(raw)]
    without_md_links = _MD_LINK_RE.sub(lambda m: m.group(1), raw)

    soup = BeautifulSoup(without_md_links, "html.parser")
    html_links = _links_from_tag(soup)
    text = strip_markdown(_text_from_tag(soup))
    return Cell(text=text, links=html_links + md_links)


def iter_html_rows(raw_text: str, width: int = HTML_ROW_WIDTH) -> Iterator[List[Cell]]:
    """Yields every <tr> that has exactly `width` direct <td> children."""
    soup = BeautifulSoup(raw_text or "", "html.parser")
    for tr in soup.find_all("tr"):
        tds = tr.find_all("td", recursive=False)
        if len(tds) != width:
            continue
        yield [cell_from_tag(td) for td in tds]


def iter_markdown_rows(raw_text: str, min_cells: int = MIN_MARKDOWN_CELLS) -> Iterator[List[Cell]]:
    """Yields pipe-table lines split into non-empty cells; separator lines are skipped."""
    for line in (raw_text or "").splitlines():
        line = line.strip()
        if not line.startswith("|") or "---" in line:
            continue
        parts = [p.strip() for p in line.split("|")]
        parts = [p for p in parts if p]
        if len(parts) < min_cells:
            continue
        yield [cell_from_markdown(p) for p in parts]
