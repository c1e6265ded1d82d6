# tests/conftest.py
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Union

import pytest

from tracker.core.config import DEFAULT_SOURCES, RuntimeConfig
from tracker.db.conn import connect
from tracker.db.schema import create_schema
from tracker.services.errors import ContentFetchError
from tracker.services.fetchers.github_content import FetchedFile

# Fixed "scrape time" used across extractor / ingestion tests
NOW = datetime(2026, 9, 30, 12, 0, tzinfo=timezone.utc)

VANSH = DEFAULT_SOURCES[0]
SIMPLIFY = DEFAULT_SOURCES[1]


# ---------------------------------------------------------------------
# README builders
# ---------------------------------------------------------------------
def html_row(*cells: str) -> str:
    return "<tr>\n" + "\n".join(f"<td>{c}</td>" for c in cells) + "\n</tr>"


def html_table(*rows: str) -> str:
    header = (
        "<thead><tr><th>Company</th><th>Role</th><th>Location</th>"
        "<th>Application</th><th>Date Posted</th></tr></thead>"
    )
    return (
        "# Summer 2026 Internships\n\n"
        "### SWE Internship Roles\n\n"
        "<table>\n" + header + "\n<tbody>\n" + "\n".join(rows) + "\n</tbody>\n</table>\n"
    )


def apply_button(href: str) -> str:
    return (
        '<div align="center">'
        f'<a href="{href}"><img src="https://i.imgur.com/apply.png" width="118" alt="Apply"></a> '
        '<a href="https://simplify.jobs/p/123"><img src="https://i.imgur.com/simplify.png" width="118" alt="Simplify"></a>'
        "</div>"
    )


def vansh_readme() -> str:
    return html_table(
        html_row('<a href="https://acme.com/jobs/1">Acme</a>', "SWE Intern 🚀", "NYC", "", "Sep 24"),
        html_row("↳", "Data Intern", "Remote", '<a href="https://acme.com/jobs/2">Apply</a>', "Sep 25"),
        html_row("Globex", "ML Intern", "SF<br>Seattle", '<a href="https://globex.com/ml">Apply</a>', "Sep 28"),
        html_row("Initech", "Old Intern", "Austin", '<a href="https://initech.com/x">Apply</a>', "Aug 01"),
    )


def simplify_readme() -> str:
    return html_table(
        html_row(
            '<strong><a href="https://simplify.jobs/c/Hooli">Hooli</a></strong>',
            "Platform Intern",
            "Palo Alto, CA",
            apply_button("https://hooli.com/apply/1"),
            "2d",
        ),
        html_row("↳", "Infra Intern", "Remote", apply_button("https://hooli.com/apply/2"), "1w"),
        html_row("Umbrella", "Bio Intern", "Raccoon City", apply_button("https://umbrella.com/a"), "20mo"),
        html_row(
            '<a href="https://simplify.jobs/c/Acme">Acme</a>',
            "SWE Intern",
            "NYC",
            apply_button("https://acme.com/simplify"),
            "0d",
        ),
    )


# ---------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------
class FakeFetcher:
    """Serves README text per source owner; an Exception value is raised instead."""

    def __init__(self, contents: Dict[str, Union[str, Exception]]):
        self.contents = dict(contents)
        self.calls: List[str] = []

    def fetch(self, src):
        self.calls.append(src.owner)
        value = self.contents.get(src.owner)
        if isinstance(value, Exception):
            raise value
        if value is None:
            raise ContentFetchError(f"no fixture for {src.owner}")
        return FetchedFile(content=value, metadata={"path": src.path, "name": src.path})


def make_runtime_config(**overrides) -> RuntimeConfig:
    values = dict(
        db_path=":memory:",
        retention_days=14,
        http_timeout_s=5,
        default_page_size=25,
        max_page_size=200,
        scheduler_mode="off",
        refresh_interval_minutes=60,
        github_token=None,
        cron_secret=None,
        sources=DEFAULT_SOURCES,
    )
    values.update(overrides)
    return RuntimeConfig(**values)


# ---------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------
@pytest.fixture
def con():
    c = connect(":memory:")
    create_schema(c)
    yield c
    c.close()


@pytest.fixture
def fake_fetcher():
    return FakeFetcher({VANSH.owner: vansh_readme(), SIMPLIFY.owner: simplify_readme()})


@pytest.fixture
def clock():
    return lambda: NOW


def at(days_ago: float = 0, base: Optional[datetime] = None) -> datetime:
    return (base or NOW) - timedelta(days=days_ago)
