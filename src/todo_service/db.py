from __future__ import annotations

import logging
import os
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass, field
from threading import Lock
from typing import Any, Generator, List, Sequence

from .context import RequestContext

logger = logging.getLogger(__name__)

# Number of SQLite VM instructions between cancellation checks.
_PROGRESS_INTERVAL = 1000


@dataclass(frozen=True)
class _Cols:
    table: str = "todos"
    id: str = "id"
    subject: str = "subject"
    description: str = "description"
    created_at: str = "created_at"
    updated_at: str = "updated_at"


COLS = _Cols()


@dataclass
class Result:
    """
    Outcome of one statement: fetched rows plus the cursor's write counters.
    """
    rows: List[sqlite3.Row] = field(default_factory=list)
    lastrowid: int = 0
    rowcount: int = 0


# PUBLIC_INTERFACE
class Database:
    """
    SQLite-backed store exposing a single "execute query, return rows" capability.

    A fresh connection is opened for every call and closed afterwards. The data
    directory and schema are created on first use.
    """

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path
        self._schema_lock = Lock()
        self._schema_ready = False

    @property
    def path(self) -> str:
        return self._db_path

    @contextmanager
    def _conn(self) -> Generator[sqlite3.Connection, None, None]:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        finally:
            conn.close()

    def _ensure_schema(self) -> None:
        if self._schema_ready:
            return
        with self._schema_lock:
            if self._schema_ready:
                return
            os.makedirs(os.path.dirname(self._db_path) or ".", exist_ok=True)
            with self._conn() as conn:
                conn.execute(
                    f"""
                    CREATE TABLE IF NOT EXISTS {COLS.table} (
                        {COLS.id} INTEGER PRIMARY KEY AUTOINCREMENT,
                        {COLS.subject} TEXT NOT NULL,
                        {COLS.description} TEXT NOT NULL DEFAULT '',
                        {COLS.created_at} TEXT NOT NULL,
                        {COLS.updated_at} TEXT NOT NULL
                    )
                    """
                )
            logger.info("Initialized todo schema at %s", self._db_path)
            self._schema_ready = True

    # PUBLIC_INTERFACE
    def execute(self, ctx: RequestContext, sql: str, params: Sequence[Any] = ()) -> Result:
        """
        Run one statement on behalf of a request and return its rows.

        Raises:
            RequestCancelledError: if ctx is cancelled before or while the statement runs.
            sqlite3.Error: for any other store failure.
        """
        ctx.raise_if_cancelled()
        self._ensure_schema()
        with self._conn() as conn:
            # A non-zero return aborts the running statement with OperationalError.
            conn.set_progress_handler(lambda: 1 if ctx.cancelled else 0, _PROGRESS_INTERVAL)
            try:
                cur = conn.execute(sql, params)
                rows = cur.fetchall()
            except sqlite3.OperationalError:
                ctx.raise_if_cancelled()
                raise
            ctx.raise_if_cancelled()
            return Result(rows=rows, lastrowid=cur.lastrowid or 0, rowcount=cur.rowcount)
