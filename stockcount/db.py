from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Any, Iterable, Union

import streamlit as st

from stockcount.schema import SCHEMA_SQL


def open_conn(db_path: Union[Path, str]) -> sqlite3.Connection:
    conn = sqlite3.connect(str(db_path), check_same_thread=False)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON;")
    return conn


@st.cache_resource
def get_conn(db_path: Path) -> sqlite3.Connection:
    return open_conn(db_path)


def _column_exists(conn: sqlite3.Connection, table: str, column: str) -> bool:
    rows = conn.execute(f"PRAGMA table_info({table});").fetchall()
    cols = [r["name"] for r in rows]
    return column in cols


def ensure_schema(conn: sqlite3.Connection) -> None:
    # Create base schema (for new installs)
    conn.executescript(SCHEMA_SQL)

    # ---- migrations for existing installs ----
    # Location per catalog row (older catalogs were single-warehouse)
    if not _column_exists(conn, "stock_items", "location"):
        conn.execute("ALTER TABLE stock_items ADD COLUMN location TEXT;")

    # Optimistic-concurrency counters
    for table in ("counting_events", "counting_details"):
        if not _column_exists(conn, table, "version"):
            conn.execute(f"ALTER TABLE {table} ADD COLUMN version INTEGER NOT NULL DEFAULT 1;")

    conn.commit()


def q(conn: sqlite3.Connection, sql: str, params: Iterable[Any] = ()) -> list[sqlite3.Row]:
    cur = conn.execute(sql, tuple(params or ()))
    rows = cur.fetchall()
    cur.close()
    return rows


def insert_rows(conn: sqlite3.Connection, table: str, records: list[dict[str, Any]]) -> None:
    """
    Bulk insert of same-shaped dicts. Does not commit: callers wrap it in
    ``with conn:`` together with whatever else belongs to the same write.
    """
    if not records:
        return
    cols = list(records[0].keys())
    sql = f"INSERT INTO {table} ({', '.join(cols)}) VALUES ({', '.join('?' for _ in cols)})"
    conn.executemany(sql, [tuple(r[c] for c in cols) for r in records])
