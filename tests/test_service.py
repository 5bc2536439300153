import asyncio
import sqlite3
import time
from datetime import datetime, timedelta
from types import SimpleNamespace

import pytest

from todo_service.context import RequestContext
from todo_service.dependencies import _watch_disconnect, get_request_context
from todo_service.errors import InternalError, NotFoundError, RequestCancelledError
from todo_service.settings import Settings


def seed(service, ctx, count):
    return [service.create(ctx, f"Task {i}", f"Desc {i}")["id"] for i in range(count)]


class TestCreate:
    def test_create_assigns_id_and_timestamps(self, service, ctx):
        todo = service.create(ctx, "buy milk")
        assert todo["id"] == 1
        assert todo["subject"] == "buy milk"
        assert todo["description"] == ""
        assert todo["created_at"] == todo["updated_at"]
        assert todo["created_at"].utcoffset() == timedelta(0)

    def test_ids_increase(self, service, ctx):
        ids = seed(service, ctx, 3)
        assert ids == [1, 2, 3]


class TestRead:
    def test_newest_first(self, service, ctx):
        seed(service, ctx, 5)
        assert [t["id"] for t in service.read(ctx, 0, 3)] == [5, 4, 3]

    def test_cursor_is_exclusive(self, service, ctx):
        seed(service, ctx, 5)
        assert [t["id"] for t in service.read(ctx, 3, 10)] == [2, 1]

    def test_short_page_at_end(self, service, ctx):
        seed(service, ctx, 2)
        assert len(service.read(ctx, 0, 5)) == 2
        assert service.read(ctx, 1, 5) == []

    def test_non_positive_size_reads_nothing(self, service, ctx):
        seed(service, ctx, 2)
        assert service.read(ctx, 0, 0) == []

    def test_cursor_skips_deleted_ids(self, service, ctx):
        seed(service, ctx, 5)
        service.delete(ctx, [4])
        assert [t["id"] for t in service.read(ctx, 5, 2)] == [3, 2]


class TestUpdate:
    def test_update_overwrites_and_advances_updated_at(self, service, ctx, monkeypatch):
        created = service.create(ctx, "Initial", "A")
        later = created["created_at"] + timedelta(seconds=5)
        monkeypatch.setattr(service, "_now", lambda: later)

        updated = service.update(ctx, created["id"], "Changed", "")
        assert updated["id"] == created["id"]
        assert updated["subject"] == "Changed"
        assert updated["description"] == ""
        assert updated["created_at"] == created["created_at"]
        assert updated["updated_at"] == later

    def test_update_missing_raises_not_found(self, service, ctx):
        with pytest.raises(NotFoundError) as excinfo:
            service.update(ctx, 7, "x", "")
        assert excinfo.value.todo_id == 7
        assert service.read(ctx, 0, 10) == []

    def test_not_found_is_not_internal(self):
        assert not issubclass(NotFoundError, InternalError)


class TestDelete:
    def test_delete_twice(self, service, ctx):
        seed(service, ctx, 3)
        service.delete(ctx, [2])
        service.delete(ctx, [2])
        assert [t["id"] for t in service.read(ctx, 0, 10)] == [3, 1]

    def test_delete_empty_set_is_noop(self, service, ctx):
        seed(service, ctx, 1)
        service.delete(ctx, [])
        assert len(service.read(ctx, 0, 10)) == 1


class TestFailures:
    def test_store_error_becomes_internal_error(self, service, db, ctx, monkeypatch):
        def boom(*args, **kwargs):
            raise sqlite3.DatabaseError("database disk image is malformed")

        monkeypatch.setattr(db, "execute", boom)
        with pytest.raises(InternalError):
            service.create(ctx, "x")
        with pytest.raises(InternalError):
            service.read(ctx, 0, 10)
        with pytest.raises(InternalError):
            service.update(ctx, 1, "x")
        with pytest.raises(InternalError):
            service.delete(ctx, [1])

    def test_unexpected_store_error_becomes_internal_error(self, service, db, ctx, monkeypatch):
        def boom(*args, **kwargs):
            raise RuntimeError("driver bug")

        monkeypatch.setattr(db, "execute", boom)
        with pytest.raises(InternalError):
            service.read(ctx, 0, 10)

    def test_integer_overflow_becomes_internal_error(self, service, ctx):
        with pytest.raises(InternalError):
            service.read(ctx, 10**20, 10)
        with pytest.raises(InternalError):
            service.delete(ctx, [10**20])

    def test_cancelled_request_becomes_internal_error(self, service):
        cancelled = RequestContext()
        cancelled.cancel()
        with pytest.raises(InternalError) as excinfo:
            service.create(cancelled, "x")
        assert isinstance(excinfo.value.__cause__, RequestCancelledError)

    def test_cancelled_create_persists_nothing(self, service, ctx):
        cancelled = RequestContext()
        cancelled.cancel()
        with pytest.raises(InternalError):
            service.create(cancelled, "x")
        assert service.read(ctx, 0, 10) == []


class TestRequestContext:
    def test_background_never_cancels(self):
        ctx = RequestContext.background()
        assert not ctx.cancelled
        ctx.raise_if_cancelled()

    def test_cancel(self):
        ctx = RequestContext(timeout=60)
        ctx.cancel()
        assert ctx.cancelled
        with pytest.raises(RequestCancelledError, match="cancelled"):
            ctx.raise_if_cancelled()

    def test_deadline(self):
        ctx = RequestContext(timeout=0.01)
        time.sleep(0.02)
        assert ctx.expired
        with pytest.raises(RequestCancelledError, match="deadline"):
            ctx.raise_if_cancelled()


class TestDatabase:
    def test_schema_created_lazily(self, db, ctx, tmp_path):
        assert not (tmp_path / "data" / "todos.db").exists()
        result = db.execute(ctx, "SELECT COUNT(*) AS n FROM todos")
        assert result.rows[0]["n"] == 0
        assert (tmp_path / "data" / "todos.db").exists()

    def test_long_statement_interrupted_by_deadline(self, db):
        ctx = RequestContext(timeout=0.05)
        started = datetime.now()
        with pytest.raises(RequestCancelledError):
            db.execute(
                ctx,
                "WITH RECURSIVE c(x) AS (SELECT 1 UNION ALL SELECT x + 1 FROM c WHERE x < 1000000000) "
                "SELECT COUNT(*) FROM c",
            )
        assert datetime.now() - started < timedelta(seconds=5)

    def test_store_error_propagates(self, db, ctx):
        with pytest.raises(sqlite3.OperationalError):
            db.execute(ctx, "SELECT * FROM missing_table")


def fake_request(disconnected, timeout=5.0):
    async def is_disconnected():
        return disconnected

    return SimpleNamespace(
        method="GET",
        url=SimpleNamespace(path="/todos"),
        app=SimpleNamespace(state=SimpleNamespace(settings=Settings(request_timeout_seconds=timeout))),
        is_disconnected=is_disconnected,
    )


class TestDisconnectWatcher:
    def test_watcher_cancels_on_disconnect(self):
        ctx = RequestContext(timeout=60)
        asyncio.run(asyncio.wait_for(_watch_disconnect(fake_request(True), ctx), timeout=5))
        assert ctx.cancelled

    def test_watcher_leaves_connected_request_alone(self):
        ctx = RequestContext(timeout=60)

        async def run():
            task = asyncio.create_task(_watch_disconnect(fake_request(False), ctx))
            await asyncio.sleep(0.05)
            task.cancel()

        asyncio.run(run())
        assert not ctx.cancelled

    def test_request_context_follows_client(self):
        async def run():
            gen = get_request_context(fake_request(True))
            ctx = await gen.__anext__()
            assert not ctx.expired
            await asyncio.sleep(0.05)
            await gen.aclose()
            return ctx

        assert asyncio.run(run()).cancelled

    def test_request_context_uses_configured_deadline(self):
        async def run():
            gen = get_request_context(fake_request(False, timeout=1e-9))
            ctx = await gen.__anext__()
            await gen.aclose()
            return ctx

        ctx = asyncio.run(run())
        with pytest.raises(RequestCancelledError, match="deadline"):
            ctx.raise_if_cancelled()
