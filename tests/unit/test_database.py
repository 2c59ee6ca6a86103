"""
Qualis: Tests for Database Connection Management

Test suite for ``qualis.core.database``. Covers:
- Connection string construction
- DbSession immediate and batched writes against a stub connection
- Wrapping of driver errors into StoreError
- Session rollback when the session block raises
- Basic connection acquisition (integration, optional)
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, List, Optional, Sequence, Tuple

import psycopg2
import pytest

import qualis.core.database as database_module
from qualis.core.config import DatabaseConfig, QualisConfig, get_config
from qualis.core.database import DatabaseManager, DbSession, StoreError


# ---------------------------------------------------------------------------
# Stubs
# ---------------------------------------------------------------------------


class _StubCursor:
    def __init__(self, conn: "_StubConnection") -> None:
        self._conn = conn
        self.rowcount = 1
        self.closed = False

    def execute(self, sql: str, params: Sequence[Any] = ()) -> None:
        if self._conn.fail_with is not None:
            raise self._conn.fail_with
        self._conn.executed.append((sql, tuple(params)))

    def fetchone(self) -> Optional[Tuple[Any, ...]]:
        return self._conn.rows[0] if self._conn.rows else None

    def fetchall(self) -> List[Tuple[Any, ...]]:
        return list(self._conn.rows)

    def close(self) -> None:
        self.closed = True


class _StubConnection:
    def __init__(self) -> None:
        self.executed: List[Tuple[str, Tuple[Any, ...]]] = []
        self.rows: List[Tuple[Any, ...]] = []
        self.cursors: List[_StubCursor] = []
        self.fail_with: Optional[Exception] = None
        self.commits = 0
        self.rollbacks = 0

    def cursor(self) -> _StubCursor:
        cursor = _StubCursor(self)
        self.cursors.append(cursor)
        return cursor

    def commit(self) -> None:
        self.commits += 1

    def rollback(self) -> None:
        self.rollbacks += 1


@pytest.fixture
def batches(monkeypatch: pytest.MonkeyPatch) -> List[Tuple[str, List[Sequence[Any]], int]]:
    """Replace execute_batch with a recorder."""

    calls: List[Tuple[str, List[Sequence[Any]], int]] = []

    def _fake_execute_batch(cursor, sql, rows, page_size=100):  # type: ignore[no-untyped-def]
        calls.append((sql, list(rows), page_size))

    monkeypatch.setattr(database_module, "execute_batch", _fake_execute_batch)
    return calls


# ---------------------------------------------------------------------------
# DatabaseManager
# ---------------------------------------------------------------------------


class TestDatabaseManagerUnit:
    """Unit-level tests for DatabaseManager internals."""

    def test_create_connection_string(self) -> None:
        """Connection string should embed host, port, db name, user, and password."""

        db_config = DatabaseConfig(
            host="testhost",
            port=5433,
            name="testdb",
            user="testuser",
            password="testpass",
        )

        conn_str = DatabaseManager._create_connection_string(db_config)

        assert "host=testhost" in conn_str
        assert "port=5433" in conn_str
        assert "dbname=testdb" in conn_str
        assert "user=testuser" in conn_str
        assert "password=testpass" in conn_str

    def test_open_session_rolls_back_on_error(self, monkeypatch: pytest.MonkeyPatch) -> None:
        conn = _StubConnection()
        manager = DatabaseManager(QualisConfig())

        @contextmanager
        def _fake_connection():  # type: ignore[no-untyped-def]
            yield conn

        monkeypatch.setattr(manager, "get_connection", _fake_connection)

        with pytest.raises(RuntimeError):
            with manager.open_session() as session:
                session.execute("UPDATE t SET x = %s", (1,))
                raise RuntimeError("boom")

        assert conn.rollbacks == 1
        assert conn.commits == 0

    def test_open_session_uses_configured_batch_size(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DB_BATCH_SIZE", "7")
        manager = DatabaseManager(QualisConfig())

        @contextmanager
        def _fake_connection():  # type: ignore[no-untyped-def]
            yield _StubConnection()

        monkeypatch.setattr(manager, "get_connection", _fake_connection)

        with manager.open_session(batch=True) as session:
            assert session.batch is True
            assert session.batch_size == 7


# ---------------------------------------------------------------------------
# DbSession
# ---------------------------------------------------------------------------


class TestDbSession:
    def test_interactive_insert_executes_immediately(self) -> None:
        conn = _StubConnection()
        session = DbSession(conn)  # type: ignore[arg-type]

        session.insert("INSERT INTO t VALUES (%s)", ("a",))

        assert conn.executed == [("INSERT INTO t VALUES (%s)", ("a",))]
        assert conn.commits == 0
        assert all(cursor.closed for cursor in conn.cursors)

    def test_batch_insert_is_buffered_until_commit(self, batches) -> None:  # type: ignore[no-untyped-def]
        conn = _StubConnection()
        session = DbSession(conn, batch=True, batch_size=10)  # type: ignore[arg-type]

        session.insert("INSERT INTO a VALUES (%s)", ("1",))
        session.insert("INSERT INTO a VALUES (%s)", ("2",))
        session.insert("INSERT INTO b VALUES (%s)", ("3",))

        assert conn.executed == []
        assert batches == []
        assert session.pending_rows == 3

        session.commit()

        assert batches == [
            ("INSERT INTO a VALUES (%s)", [("1",), ("2",)], 10),
            ("INSERT INTO b VALUES (%s)", [("3",)], 10),
        ]
        assert session.pending_rows == 0
        assert conn.commits == 1

    def test_batch_flushes_when_size_is_reached(self, batches) -> None:  # type: ignore[no-untyped-def]
        conn = _StubConnection()
        session = DbSession(conn, batch=True, batch_size=2)  # type: ignore[arg-type]

        session.insert("INSERT INTO a VALUES (%s)", ("1",))
        assert batches == []
        session.insert("INSERT INTO a VALUES (%s)", ("2",))

        assert len(batches) == 1
        assert session.pending_rows == 0
        assert conn.commits == 0

    def test_reads_flush_pending_writes_first(self, batches) -> None:  # type: ignore[no-untyped-def]
        conn = _StubConnection()
        conn.rows = [(42,)]
        session = DbSession(conn, batch=True)  # type: ignore[arg-type]

        session.insert("INSERT INTO a VALUES (%s)", ("1",))
        row = session.fetchone("SELECT COUNT(*) FROM a")

        assert len(batches) == 1
        assert row == (42,)

    def test_rollback_discards_pending_writes(self, batches) -> None:  # type: ignore[no-untyped-def]
        conn = _StubConnection()
        session = DbSession(conn, batch=True)  # type: ignore[arg-type]

        session.insert("INSERT INTO a VALUES (%s)", ("1",))
        session.rollback()
        session.commit()

        assert batches == []
        assert conn.rollbacks == 1

    def test_execute_returns_rowcount(self) -> None:
        conn = _StubConnection()
        session = DbSession(conn)  # type: ignore[arg-type]

        assert session.execute("DELETE FROM t") == 1

    def test_driver_errors_are_wrapped(self) -> None:
        conn = _StubConnection()
        conn.fail_with = psycopg2.Error("unique violation")
        session = DbSession(conn)  # type: ignore[arg-type]

        with pytest.raises(StoreError) as excinfo:
            session.insert("INSERT INTO t VALUES (%s)", ("a",))

        assert isinstance(excinfo.value.__cause__, psycopg2.Error)
        assert all(cursor.closed for cursor in conn.cursors)

    def test_batch_errors_are_wrapped(self, monkeypatch: pytest.MonkeyPatch) -> None:
        def _failing_execute_batch(cursor, sql, rows, page_size=100):  # type: ignore[no-untyped-def]
            raise psycopg2.Error("duplicate key")

        monkeypatch.setattr(database_module, "execute_batch", _failing_execute_batch)
        session = DbSession(_StubConnection(), batch=True)  # type: ignore[arg-type]
        session.insert("INSERT INTO t VALUES (%s)", ("a",))

        with pytest.raises(StoreError):
            session.commit()

    def test_rejects_non_positive_batch_size(self) -> None:
        with pytest.raises(ValueError):
            DbSession(_StubConnection(), batch=True, batch_size=0)  # type: ignore[arg-type]


@pytest.mark.integration
class TestDatabaseManagerIntegration:
    """Integration tests that require a running PostgreSQL instance."""

    def test_session_executes_simple_query(self) -> None:
        """Should be able to open a session and execute SELECT 1."""

        db_manager = DatabaseManager(get_config())
        try:
            with db_manager.open_session() as session:
                result = session.fetchone("SELECT 1")
        finally:
            db_manager.close_all()

        assert result is not None
        assert result[0] == 1
