import sqlite3
from pathlib import Path

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS postings (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  company TEXT NOT NULL,
  title TEXT NOT NULL,
  location TEXT,
  application_link TEXT,
  source TEXT NOT NULL,
  created_at TEXT NOT NULL
);
CREATE UNIQUE INDEX IF NOT EXISTS idx_postings_company_title ON postings(company, title);
CREATE INDEX IF NOT EXISTS idx_postings_source_created ON postings(source, created_at);
CREATE INDEX IF NOT EXISTS idx_postings_created_at ON postings(created_at);
CREATE INDEX IF NOT EXISTS idx_postings_company ON postings(company);

CREATE TABLE IF NOT EXISTS runs (
  run_id TEXT PRIMARY KEY,
  trigger TEXT NOT NULL DEFAULT 'manual',
  started_at TEXT NOT NULL,
  finished_at TEXT,
  stats_json TEXT NOT NULL
);
"""


def _has_table(con: sqlite3.Connection, table: str) -> bool:
    row = con.execute(
        "SELECT name FROM sqlite_master WHERE type IN ('table','view') AND name=?",
        (table,),
    ).fetchone()
    return bool(row)


def _ensure_schema(con: sqlite3.Connection) -> None:
    """Creates the FTS5 title index once and backfills it from existing rows."""

    # postings_fts: title search index, kept in sync on insert (postings are append-only)
    if not _has_table(con, "postings_fts"):
        con.executescript(
            """
            CREATE VIRTUAL TABLE IF NOT EXISTS postings_fts USING fts5(
              title,
              content='postings',
              content_rowid='id'
            );
            CREATE TRIGGER IF NOT EXISTS trg_postings_fts_insert AFTER INSERT ON postings BEGIN
              INSERT INTO postings_fts(rowid, title) VALUES (new.id, new.title);
            END;
            INSERT INTO postings_fts(postings_fts) VALUES ('rebuild');
            """
        )


def create_schema(con: sqlite3.Connection) -> None:
    con.executescript(SCHEMA_SQL)
    _ensure_schema(con)
    con.commit()


def init_db(db_path: str) -> None:
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    con = sqlite3.connect(db_path)
    try:
        create_schema(con)
    finally:
        con.close()
