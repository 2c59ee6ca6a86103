"""
Qualis: Database Connection Management

This module provides connection pooling and the transactional session
handle used by storage classes. It uses psycopg2's
``SimpleConnectionPool`` with a thin wrapper that exposes context managers
for acquiring connections and sessions.

Key responsibilities:
- Maintain the connection pool for the Qualis database
- Provide context managers to acquire/release connections safely
- Provide :class:`DbSession`, a caller-committed unit of work that can
  either execute writes immediately or buffer inserts and flush them in
  batches
- Encapsulate connection string construction from configuration

External dependencies:
- psycopg2-binary: PostgreSQL client, connection pooling and batch
  execution helpers

Database tables accessed:
- None directly (this module is infrastructure only)

Thread safety: The pool is thread-safe under normal psycopg2 usage. A
:class:`DbSession` wraps a single connection and must not be shared
between threads.

Author: Qualis Team
Created: 2026-10-18
Last Modified: 2026-10-18
Status: Development
Version: v0.1.0
"""

# ============================================================================
# Imports
# ============================================================================

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Generator, List, Optional, Sequence, Tuple

import psycopg2
from psycopg2 import pool
from psycopg2.extensions import connection as PsycopgConnection
from psycopg2.extras import execute_batch

from qualis.core.config import DatabaseConfig, QualisConfig, get_config
from qualis.core.logging import get_logger

# ============================================================================
# Module Setup
# ============================================================================

logger = get_logger(__name__)

Params = Sequence[Any]


class DatabaseError(Exception):
    """Raised when a database connection or operation fails."""


class StoreError(DatabaseError):
    """Raised when a statement issued through a :class:`DbSession` fails.

    The originating ``psycopg2.Error`` is available as ``__cause__``.
    """


# ============================================================================
# Session
# ============================================================================


class DbSession:
    """Unit of work over a single database connection.

    A session never commits on its own: the owner calls :meth:`commit` or
    :meth:`rollback`. In batch mode, statements issued through
    :meth:`insert` are buffered and written with
    :func:`psycopg2.extras.execute_batch` once ``batch_size`` rows are
    pending, before any read, and on commit. Buffered statements keep
    their relative order.

    Attributes:
        batch: Whether inserts are buffered.
        batch_size: Number of buffered rows that triggers a flush.
    """

    def __init__(
        self,
        conn: PsycopgConnection,
        batch: bool = False,
        batch_size: int = 250,
    ) -> None:
        if batch_size <= 0:
            raise ValueError("batch_size must be positive")
        self._conn = conn
        self.batch = batch
        self.batch_size = batch_size
        self._pending: List[Tuple[str, List[Params]]] = []
        self._pending_rows = 0

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def insert(self, sql: str, params: Params) -> None:
        """Stage a write statement.

        Executed immediately for interactive sessions, buffered for batch
        sessions.
        """

        if not self.batch:
            self.execute(sql, params)
            return

        if self._pending and self._pending[-1][0] == sql:
            self._pending[-1][1].append(params)
        else:
            self._pending.append((sql, [params]))
        self._pending_rows += 1

        if self._pending_rows >= self.batch_size:
            self.flush()

    def execute(self, sql: str, params: Params = ()) -> int:
        """Execute a statement immediately and return its row count."""

        self.flush()
        cursor = self._conn.cursor()
        try:
            cursor.execute(sql, params)
            return cursor.rowcount
        except psycopg2.Error as exc:
            raise StoreError(f"Statement failed: {exc}") from exc
        finally:
            cursor.close()

    def flush(self) -> None:
        """Write all buffered statements, in the order they were staged."""

        if not self._pending:
            return

        pending, self._pending = self._pending, []
        self._pending_rows = 0

        cursor = self._conn.cursor()
        try:
            for sql, rows in pending:
                execute_batch(cursor, sql, rows, page_size=self.batch_size)
        except psycopg2.Error as exc:
            raise StoreError(f"Batch write failed: {exc}") from exc
        finally:
            cursor.close()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def fetchone(self, sql: str, params: Params = ()) -> Optional[Tuple[Any, ...]]:
        """Execute a query and return its first row, if any."""

        self.flush()
        cursor = self._conn.cursor()
        try:
            cursor.execute(sql, params)
            return cursor.fetchone()
        except psycopg2.Error as exc:
            raise StoreError(f"Query failed: {exc}") from exc
        finally:
            cursor.close()

    def fetchall(self, sql: str, params: Params = ()) -> List[Tuple[Any, ...]]:
        """Execute a query and return all rows."""

        self.flush()
        cursor = self._conn.cursor()
        try:
            cursor.execute(sql, params)
            return list(cursor.fetchall())
        except psycopg2.Error as exc:
            raise StoreError(f"Query failed: {exc}") from exc
        finally:
            cursor.close()

    # ------------------------------------------------------------------
    # Transaction control
    # ------------------------------------------------------------------

    def commit(self) -> None:
        """Flush buffered writes and commit the transaction."""

        self.flush()
        try:
            self._conn.commit()
        except psycopg2.Error as exc:
            raise StoreError(f"Commit failed: {exc}") from exc

    def rollback(self) -> None:
        """Discard buffered writes and roll back the transaction."""

        self._pending = []
        self._pending_rows = 0
        self._conn.rollback()

    @property
    def pending_rows(self) -> int:
        """Number of buffered rows not yet sent to the database."""

        return self._pending_rows


# ============================================================================
# Connection management
# ============================================================================


class DatabaseManager:
    """Manage the connection pool for the Qualis database.

    Typical usage::

        from qualis.core.database import get_db_manager

        db = get_db_manager()
        with db.open_session() as session, db.open_session(batch=True) as batch:
            installer.install(session, batch, builtin)
            session.commit()
            batch.commit()

    Attributes:
        config: Global Qualis configuration instance.
        _pool: Connection pool, created lazily.
    """

    def __init__(self, config: QualisConfig) -> None:
        """Initialise the database manager with configuration.

        Args:
            config: Loaded Qualis configuration.
        """

        self.config = config
        self._pool: Optional[pool.SimpleConnectionPool] = None
        logger.info("DatabaseManager initialised")

    # ======================================================================
    # Internal helpers
    # ======================================================================

    @staticmethod
    def _create_connection_string(db_config: DatabaseConfig) -> str:
        """Build a PostgreSQL connection string from configuration.

        Args:
            db_config: Database configuration.

        Returns:
            A DSN string suitable for psycopg2.
        """

        return (
            f"host={db_config.host} "
            f"port={db_config.port} "
            f"dbname={db_config.name} "
            f"user={db_config.user} "
            f"password={db_config.password}"
        )

    def _get_or_create_pool(self) -> pool.SimpleConnectionPool:
        """Return the existing pool or create a new one.

        Raises:
            DatabaseError: If the pool cannot be created.
        """

        if self._pool is not None:
            return self._pool

        db_config = self.config.database
        dsn = self._create_connection_string(db_config)
        try:
            new_pool = pool.SimpleConnectionPool(
                minconn=1,
                maxconn=db_config.pool_size,
                dsn=dsn,
            )
        except Exception as exc:  # pragma: no cover - connection errors
            logger.error(f"Failed to create connection pool: {exc}")
            raise DatabaseError("Failed to create database connection pool") from exc

        self._pool = new_pool
        logger.info("Created connection pool for database '%s'", db_config.name)
        return new_pool

    # ======================================================================
    # Public context managers
    # ======================================================================

    @contextmanager
    def get_connection(self) -> Generator[PsycopgConnection, None, None]:
        """Yield a pooled connection.

        Yields:
            A psycopg2 connection object. The connection is returned to the
            pool when the context manager exits.

        Raises:
            DatabaseError: If a connection cannot be acquired.
        """

        pool_obj = self._get_or_create_pool()
        try:
            conn = pool_obj.getconn()
        except Exception as exc:  # pragma: no cover - connection errors
            logger.error(f"Failed to acquire connection: {exc}")
            raise DatabaseError("Failed to acquire database connection") from exc

        try:
            yield conn
        finally:
            pool_obj.putconn(conn)

    @contextmanager
    def open_session(self, batch: bool = False) -> Generator[DbSession, None, None]:
        """Yield a :class:`DbSession` on a pooled connection.

        The session is rolled back if the block raises. Committing is the
        caller's responsibility; uncommitted work is discarded when the
        connection goes back to the pool.

        Args:
            batch: Open a batch session that buffers inserts.
        """

        with self.get_connection() as conn:
            session = DbSession(
                conn,
                batch=batch,
                batch_size=self.config.database.batch_size,
            )
            try:
                yield session
            except Exception:
                session.rollback()
                raise

    # ======================================================================
    # Lifecycle
    # ======================================================================

    def close_all(self) -> None:
        """Close the connection pool."""

        if self._pool is not None:
            self._pool.closeall()
            self._pool = None
            logger.info("Closed database connection pool")


# ============================================================================
# Global Accessor
# ============================================================================

_db_manager: Optional[DatabaseManager] = None


def get_db_manager() -> DatabaseManager:
    """Return the global :class:`DatabaseManager` singleton.

    The manager is created on first access using the global configuration
    from :func:`qualis.core.config.get_config`.
    """

    global _db_manager
    if _db_manager is None:
        config = get_config()
        _db_manager = DatabaseManager(config)
    return _db_manager
