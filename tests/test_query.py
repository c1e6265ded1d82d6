# tests/test_query.py
import base64
import json

import pytest

from tracker.services.dedupe import SqlitePostingState
from tracker.services.models import Posting
from tracker.services.query import (
    InvalidCursor,
    Pagination,
    QueryCriteria,
    build_match_expression,
    list_companies,
    query_postings,
)

from conftest import at


def _seed(con, rows):
    state = SqlitePostingState(con)
    for company, title, days_ago, source in rows:
        state.insert_new(
            [Posting(company=company, title=title, source=source, created_at=at(days_ago), application_link="https://x.co")],
            source,
        )


@pytest.fixture
def seeded(con):
    _seed(
        con,
        [
            ("Initech", "Data Analyst Intern", 5, "vanshb03"),
            ("Hooli", "Platform Engineer", 4, "SimplifyJobs"),
            ("Globex", "ML Intern", 3, "vanshb03"),
            ("Acme", "Data Intern", 2, "vanshb03"),
            ("Acme", "SWE Intern", 1, "vanshb03"),
        ],
    )
    return con


def _titles(page):
    return [p.title for p in page.page]


def _walk(con, criteria, size):
    seen, cursor, pages = [], None, 0
    while True:
        page = query_postings(con, criteria, Pagination(num_items=size, cursor=cursor))
        pages += 1
        seen.extend(page.page)
        if page.is_done:
            assert page.continue_cursor == ""
            return seen, pages
        assert page.continue_cursor
        cursor = page.continue_cursor


# ----------------------------------------------------------------------
# Default view
# ----------------------------------------------------------------------
def test_default_view_is_newest_first(seeded):
    page = query_postings(seeded, QueryCriteria(), Pagination(num_items=25))
    assert _titles(page) == ["SWE Intern", "Data Intern", "ML Intern", "Platform Engineer", "Data Analyst Intern"]
    assert page.is_done is True
    assert page.continue_cursor == ""


def test_default_view_walks_every_posting_once(seeded):
    seen, pages = _walk(seeded, QueryCriteria(), 2)
    assert pages == 3
    assert [p.title for p in seen] == ["SWE Intern", "Data Intern", "ML Intern", "Platform Engineer", "Data Analyst Intern"]


def test_keyset_cursor_handles_equal_timestamps(con):
    _seed(con, [("A", "One", 1, "vanshb03"), ("B", "Two", 1, "vanshb03"), ("C", "Three", 1, "vanshb03")])
    seen, _ = _walk(con, QueryCriteria(), 1)
    # same created_at: newest id first
    assert [p.title for p in seen] == ["Three", "Two", "One"]


def test_empty_corpus(con):
    page = query_postings(con, QueryCriteria(), Pagination())
    assert page.page == []
    assert page.is_done is True


def test_page_dict_shape(seeded):
    data = query_postings(seeded, QueryCriteria(), Pagination(num_items=1)).to_dict()
    assert set(data) == {"page", "isDone", "continueCursor"}
    assert data["isDone"] is False
    item = data["page"][0]
    assert item["company"] == "Acme"
    assert item["applicationLink"] == "https://x.co"
    assert item["createdAt"].endswith("+00:00")


# ----------------------------------------------------------------------
# Source filter
# ----------------------------------------------------------------------
def test_source_filter(seeded):
    page = query_postings(seeded, QueryCriteria(source="SimplifyJobs"), Pagination())
    assert _titles(page) == ["Platform Engineer"]


def test_unknown_source_is_empty(seeded):
    assert query_postings(seeded, QueryCriteria(source="nobody"), Pagination()).page == []


# ----------------------------------------------------------------------
# Company filter
# ----------------------------------------------------------------------
def test_company_filter_skips_companies_without_postings(con):
    _seed(
        con,
        [
            ("Acme", "Old Intern", 6, "vanshb03"),
            ("Acme", "New Intern", 1, "vanshb03"),
            ("Hooli", "Platform Intern", 0, "SimplifyJobs"),
        ],
    )
    page = query_postings(con, QueryCriteria(companies=["Acme", "Globex"]), Pagination())
    assert [(p.company, p.title) for p in page.page] == [("Acme", "New Intern"), ("Acme", "Old Intern")]
    assert page.is_done is True


def test_company_filter_merges_and_pages_by_offset(seeded):
    criteria = QueryCriteria(companies=["Globex", "Acme", "Acme"])

    first = query_postings(seeded, criteria, Pagination(num_items=2))
    assert _titles(first) == ["SWE Intern", "Data Intern"]
    assert first.is_done is False
    assert first.continue_cursor == "2"

    second = query_postings(seeded, criteria, Pagination(num_items=2, cursor=first.continue_cursor))
    assert _titles(second) == ["ML Intern"]
    assert second.is_done is True
    assert second.continue_cursor == ""


def test_company_match_is_exact(seeded):
    assert query_postings(seeded, QueryCriteria(companies=["acme"]), Pagination()).page == []


# ----------------------------------------------------------------------
# Title search
# ----------------------------------------------------------------------
def test_match_expression():
    assert build_match_expression("data intern") == '"data" "intern"*'
    assert build_match_expression('ml "OR" -x') == '"ml" "OR" "x"*'
    assert build_match_expression("🔥 !!") is None


def test_search_matches_prefix_of_last_word(seeded):
    page = query_postings(seeded, QueryCriteria(search="dat"), Pagination())
    assert sorted(_titles(page)) == ["Data Analyst Intern", "Data Intern"]


def test_search_requires_every_word(seeded):
    page = query_postings(seeded, QueryCriteria(search="data intern"), Pagination())
    assert sorted(_titles(page)) == ["Data Analyst Intern", "Data Intern"]
    page = query_postings(seeded, QueryCriteria(search="analyst intern"), Pagination())
    assert _titles(page) == ["Data Analyst Intern"]


def test_search_takes_precedence_over_other_filters(seeded):
    page = query_postings(
        seeded,
        QueryCriteria(search="ml", source="SimplifyJobs", companies=["Acme"]),
        Pagination(),
    )
    assert _titles(page) == ["ML Intern"]


def test_search_pages(seeded):
    seen, pages = _walk(seeded, QueryCriteria(search="intern"), 2)
    assert pages == 2
    assert sorted(p.title for p in seen) == ["Data Analyst Intern", "Data Intern", "ML Intern", "SWE Intern"]


def test_search_without_words_returns_nothing(seeded):
    page = query_postings(seeded, QueryCriteria(search="🔥"), Pagination())
    assert page.page == []
    assert page.is_done is True


def test_blank_search_is_ignored(seeded):
    page = query_postings(seeded, QueryCriteria(search="   ", source="SimplifyJobs"), Pagination())
    assert _titles(page) == ["Platform Engineer"]


# ----------------------------------------------------------------------
# Bad input
# ----------------------------------------------------------------------
def _b64(obj):
    return base64.urlsafe_b64encode(json.dumps(obj).encode()).decode()


@pytest.mark.parametrize(
    "criteria,cursor",
    [
        (QueryCriteria(), "%%%"),
        (QueryCriteria(), _b64([1, 2])),
        (QueryCriteria(), _b64({"c": "2026-01-01"})),
        (QueryCriteria(search="intern"), _b64({"o": -1})),
        (QueryCriteria(companies=["Acme"]), "two"),
        (QueryCriteria(companies=["Acme"]), "-1"),
    ],
)
def test_invalid_cursor(seeded, criteria, cursor):
    with pytest.raises(InvalidCursor):
        query_postings(seeded, criteria, Pagination(cursor=cursor))


def test_page_size_must_be_positive(seeded):
    with pytest.raises(ValueError):
        query_postings(seeded, QueryCriteria(), Pagination(num_items=0))


# ----------------------------------------------------------------------
# Company list
# ----------------------------------------------------------------------
def test_list_companies_is_distinct_and_sorted(seeded):
    assert list_companies(seeded) == ["Acme", "Globex", "Hooli", "Initech"]


def test_list_companies_empty(con):
    assert list_companies(con) == []
