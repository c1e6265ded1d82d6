# tests/test_schema.py
import sqlite3

from tracker.db.schema import create_schema, init_db


def _columns(con, table):
    return {r[1]: r for r in con.execute(f"PRAGMA table_info({table})").fetchall()}


def test_runs_table_declares_trigger_with_default(con):
    cols = _columns(con, "runs")
    assert set(cols) == {"run_id", "trigger", "started_at", "finished_at", "stats_json"}

    con.execute("INSERT INTO runs(run_id, started_at, stats_json) VALUES ('r1', 'x', '{}')")
    assert con.execute("SELECT trigger FROM runs WHERE run_id='r1'").fetchone()[0] == "manual"


def test_create_schema_is_idempotent(con):
    create_schema(con)
    create_schema(con)
    names = {r[0] for r in con.execute("SELECT name FROM sqlite_master").fetchall()}
    assert {"postings", "runs", "postings_fts", "trg_postings_fts_insert"} <= names


def test_init_db_creates_file_and_parent(tmp_path):
    path = tmp_path / "nested" / "tracker.sqlite3"
    init_db(str(path))

    con = sqlite3.connect(str(path))
    try:
        assert "trigger" in _columns(con, "runs")
    finally:
        con.close()
