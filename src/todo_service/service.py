from __future__ import annotations

import logging
import sqlite3
from datetime import datetime, timezone
from typing import Iterable, List

from .context import RequestContext
from .db import COLS, Database
from .errors import InternalError, NotFoundError, RequestCancelledError
from .models import TodoEntity

logger = logging.getLogger(__name__)

_SELECT = (
    f"SELECT {COLS.id}, {COLS.subject}, {COLS.description}, {COLS.created_at}, {COLS.updated_at} "
    f"FROM {COLS.table}"
)


def _row_to_entity(row: sqlite3.Row) -> TodoEntity:
    return {
        "id": int(row[COLS.id]),
        "subject": str(row[COLS.subject]),
        "description": row[COLS.description] or "",
        "created_at": datetime.fromisoformat(row[COLS.created_at]),
        "updated_at": datetime.fromisoformat(row[COLS.updated_at]),
    }


# PUBLIC_INTERFACE
class TodoService:
    """
    Lifecycle operations for todo items.

    Every method takes the caller's RequestContext and hands it to each store
    call. Store failures and cancellations surface as InternalError; a missing
    item on update surfaces as NotFoundError.
    """

    def __init__(self, db: Database) -> None:
        self._db = db

    def _now(self) -> datetime:
        return datetime.now(timezone.utc)

    def _execute(self, ctx: RequestContext, sql: str, params: Iterable = ()):
        try:
            return self._db.execute(ctx, sql, tuple(params))
        except RequestCancelledError as e:
            logger.warning("Store call abandoned: %s", e)
            raise InternalError(str(e)) from e
        except (sqlite3.Error, OSError) as e:
            logger.exception("Store call failed")
            raise InternalError("store failure") from e
        except Exception as e:
            logger.exception("Unexpected store failure")
            raise InternalError("unexpected store failure") from e

    def _get(self, ctx: RequestContext, todo_id: int) -> TodoEntity:
        result = self._execute(ctx, f"{_SELECT} WHERE {COLS.id} = ?", (todo_id,))
        if not result.rows:
            raise NotFoundError(todo_id)
        return _row_to_entity(result.rows[0])

    # PUBLIC_INTERFACE
    def create(self, ctx: RequestContext, subject: str, description: str = "") -> TodoEntity:
        """Persist a new todo and return it with its assigned id and timestamps."""
        now = self._now().isoformat()
        result = self._execute(
            ctx,
            f"""
            INSERT INTO {COLS.table} ({COLS.subject}, {COLS.description}, {COLS.created_at}, {COLS.updated_at})
            VALUES (?, ?, ?, ?)
            """,
            (subject, description or "", now, now),
        )
        try:
            created = self._get(ctx, result.lastrowid)
        except NotFoundError as e:
            # Only possible if a concurrent delete removed the row in between.
            raise InternalError("created todo vanished") from e
        logger.info("Created todo %d", created["id"])
        return created

    # PUBLIC_INTERFACE
    def read(self, ctx: RequestContext, prev_id: int, size: int) -> List[TodoEntity]:
        """
        Return at most ``size`` todos ordered by id descending.

        With ``prev_id == 0`` the page starts at the newest todo; otherwise it
        holds only todos with an id strictly smaller than ``prev_id``. A short
        page means the end of the collection was reached.
        """
        if size <= 0:
            return []
        if prev_id:
            result = self._execute(
                ctx,
                f"{_SELECT} WHERE {COLS.id} < ? ORDER BY {COLS.id} DESC LIMIT ?",
                (prev_id, size),
            )
        else:
            result = self._execute(ctx, f"{_SELECT} ORDER BY {COLS.id} DESC LIMIT ?", (size,))
        return [_row_to_entity(r) for r in result.rows]

    # PUBLIC_INTERFACE
    def update(self, ctx: RequestContext, todo_id: int, subject: str, description: str = "") -> TodoEntity:
        """
        Overwrite subject and description of an existing todo and advance updated_at.

        Raises:
            NotFoundError: if no todo has ``todo_id``; nothing is written.
            InternalError: on store failure.
        """
        result = self._execute(
            ctx,
            f"""
            UPDATE {COLS.table}
            SET {COLS.subject} = ?, {COLS.description} = ?, {COLS.updated_at} = ?
            WHERE {COLS.id} = ?
            """,
            (subject, description or "", self._now().isoformat(), todo_id),
        )
        if result.rowcount == 0:
            raise NotFoundError(todo_id)
        updated = self._get(ctx, todo_id)
        logger.info("Updated todo %d", todo_id)
        return updated

    # PUBLIC_INTERFACE
    def delete(self, ctx: RequestContext, ids: Iterable[int]) -> None:
        """Delete every todo whose id is in ``ids``. Unknown ids are skipped."""
        unique = sorted(set(ids))
        if not unique:
            return
        placeholders = ", ".join("?" for _ in unique)
        result = self._execute(
            ctx,
            f"DELETE FROM {COLS.table} WHERE {COLS.id} IN ({placeholders})",
            unique,
        )
        logger.info("Deleted %d of %d requested todos", result.rowcount, len(unique))
