import sqlite3


def connect(db_path: str) -> sqlite3.Connection:
    con = sqlite3.connect(db_path, check_same_thread=False)
    con.row_factory = sqlite3.Row
    if db_path != ":memory:":
        con.execute("PRAGMA journal_mode=WAL")
    return con
