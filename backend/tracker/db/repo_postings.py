from typing import List, Optional, Sequence, Set, Tuple

from tracker.services.models import Posting, to_iso


def existing_keys(con, keys: Sequence[Tuple[str, str]]) -> Set[Tuple[str, str]]:
    """Returns the subset of (company, title) keys already present in the corpus."""
    found: Set[Tuple[str, str]] = set()
    cur = con.cursor()
    for company, title in dict.fromkeys(keys):
        # served by idx_postings_company_title
        row = cur.execute(
            "SELECT 1 FROM postings WHERE company=? AND title=?",
            (company, title),
        ).fetchone()
        if row is not None:
            found.add((company, title))
    return found


def insert_postings(con, postings: List[Posting]) -> List[Posting]:
    """Inserts postings; rows whose (company, title) already exist are skipped."""
    inserted: List[Posting] = []
    cur = con.cursor()
    for p in postings:
        cur.execute(
            """
            INSERT INTO postings(company, title, location, application_link, source, created_at)
            VALUES (?,?,?,?,?,?)
            ON CONFLICT(company, title) DO NOTHING
            """,
            (
                p.company,
                p.title,
                p.location,
                p.application_link,
                p.source,
                to_iso(p.created_at),
            ),
        )
        if cur.rowcount == 1:
            p.id = cur.lastrowid
            inserted.append(p)
    return inserted


def count_postings(con) -> int:
    row = con.execute("SELECT COUNT(*) AS c FROM postings").fetchone()
    return int(row["c"]) if row else 0


def list_distinct_companies(con) -> List[str]:
    rows = con.execute("SELECT DISTINCT company FROM postings ORDER BY company").fetchall()
    return [r["company"] for r in rows]


def list_recent(
    con,
    *,
    limit: int,
    source: Optional[str] = None,
    after: Optional[Tuple[str, int]] = None,
) -> List[Posting]:
    """Newest first, keyset-paginated on (created_at, id)."""
    where = []
    params: dict = {"limit": limit}

    if source is not None:
        where.append("source = :source")
        params["source"] = source

    if after is not None:
        where.append("(created_at < :after_created OR (created_at = :after_created AND id < :after_id))")
        params["after_created"], params["after_id"] = after

    where_sql = (" WHERE " + " AND ".join(where)) if where else ""
    rows = con.execute(
        "SELECT * FROM postings"
        + where_sql
        + " ORDER BY created_at DESC, id DESC LIMIT :limit",
        params,
    ).fetchall()
    return [Posting.from_db_row(r) for r in rows]


def search_titles(con, match: str, *, limit: int, offset: int) -> List[Posting]:
    """FTS5 title search, best match first."""
    rows = con.execute(
        """
        SELECT p.*
        FROM postings_fts
        JOIN postings p ON p.id = postings_fts.rowid
        WHERE postings_fts MATCH ?
        ORDER BY bm25(postings_fts), p.id
        LIMIT ? OFFSET ?
        """,
        (match, limit, offset),
    ).fetchall()
    return [Posting.from_db_row(r) for r in rows]


def list_by_company(con, company: str) -> List[Posting]:
    rows = con.execute(
        "SELECT * FROM postings WHERE company = ?",
        (company,),
    ).fetchall()
    return [Posting.from_db_row(r) for r in rows]
