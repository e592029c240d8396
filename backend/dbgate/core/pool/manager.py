"""
Connection pools for the gateway, one per database name.

Pools are created lazily on the first request naming a database and cached for
the lifetime of the process. Each pool bounds the number of leased
connections, health-checks idle connections on checkout, evicts connections
past their max age, and rolls back leftovers on release.
"""

import asyncio
import logging
import threading
import time
from typing import Any, NamedTuple

import pymysql

from dbgate.core.config import settings
from dbgate.core.errors import PoolError, ValidationError

from .connect import connect, error_message
from .health import health_check

logger = logging.getLogger(__name__)

_PING_IDLE_THRESHOLD = 30.0  # only ping connections idle longer than this (seconds)


class _PoolEntry(NamedTuple):
    conn: Any
    created_at: float  # time.monotonic() when the connection was opened
    last_used: float   # time.monotonic() when last returned to pool


class PooledConnection:
    """A leased connection. Hand it back with ``release()`` exactly once."""

    __slots__ = ("_pool", "raw", "created_at", "released")

    def __init__(self, pool: "ConnectionPool", raw: Any, created_at: float) -> None:
        self._pool = pool
        self.raw = raw
        self.created_at = created_at
        self.released = False

    @property
    def database(self) -> str:
        return self._pool.database

    def cursor(self, *args: Any, **kwargs: Any) -> Any:
        return self.raw.cursor(*args, **kwargs)

    def rollback(self) -> None:
        self.raw.rollback()

    def release(self) -> None:
        self._pool.release(self)

    def __repr__(self) -> str:
        state = "released" if self.released else "leased"
        return f"<PooledConnection database={self.database!r} {state}>"


class ConnectionPool:
    """Bounded pool of MySQL connections to a single database."""

    def __init__(
        self,
        database: str,
        *,
        size: int,
        max_age: float,
        acquire_timeout: float | None,
        connect_kwargs: dict[str, Any] | None = None,
    ) -> None:
        self.database = database
        self.size = max(1, int(size))
        self._max_age = float(max_age)
        self._acquire_timeout = acquire_timeout
        self._connect_kwargs = dict(connect_kwargs or {})
        self._idle: list[_PoolEntry] = []
        self._in_use = 0
        self._lock = threading.Lock()
        self._slots = threading.BoundedSemaphore(self.size)
        # Event-loop side of the same bound; see reserve()
        self._reservations = asyncio.Semaphore(self.size)

    def acquire(self, timeout: float | None = None) -> PooledConnection:
        """
        Lease a connection, waiting up to *timeout* seconds (default: the pool's
        acquire timeout) for one to be released. ``0`` fails at once when every
        connection is leased; ``None`` on both waits indefinitely.
        """
        wait = self._acquire_timeout if timeout is None else timeout
        if wait is None:
            got = self._slots.acquire()
        elif wait > 0:
            got = self._slots.acquire(timeout=wait)
        else:
            got = self._slots.acquire(blocking=False)
        if not got:
            raise self._exhausted()

        try:
            entry = self._checkout()
        except BaseException:
            self._slots.release()
            raise

        with self._lock:
            self._in_use += 1
        return PooledConnection(self, entry.conn, entry.created_at)

    def release(self, lease: PooledConnection) -> None:
        """Return *lease* to the pool (or close it). Never raises."""
        with self._lock:
            if lease.released:
                logger.warning("Connection for '%s' released twice", self.database)
                return
            lease.released = True

        conn = lease.raw
        try:
            try:
                conn.rollback()
            except (pymysql.err.Error, OSError):
                logger.warning(
                    "Discarding connection for '%s': rollback on release failed",
                    self.database,
                    exc_info=True,
                )
                self._close_quiet(conn)
                return

            if (time.monotonic() - lease.created_at) <= self._max_age:
                with self._lock:
                    if len(self._idle) < self.size:
                        self._idle.append(
                            _PoolEntry(conn, lease.created_at, time.monotonic())
                        )
                        return
            self._close_quiet(conn)
        finally:
            with self._lock:
                self._in_use -= 1
            self._slots.release()

    async def reserve(self) -> None:
        """
        Wait on the event loop for one of the pool's slots.

        Callers hold a reservation while a worker thread leases and uses a
        connection, so requests waiting for a full pool do not tie up threads
        that requests for other databases need. Pair with ``unreserve()``.
        """
        wait = self._acquire_timeout
        if wait is not None and wait <= 0:
            if self._reservations.locked():
                raise self._exhausted()
            await self._reservations.acquire()
            return
        try:
            await asyncio.wait_for(self._reservations.acquire(), wait)
        except asyncio.TimeoutError:
            raise self._exhausted() from None

    def unreserve(self) -> None:
        self._reservations.release()

    def dispose(self) -> None:
        """Close idle connections. Leased connections are closed on release."""
        with self._lock:
            entries = self._idle
            self._idle = []
        for e in entries:
            self._close_quiet(e.conn)

    def stats(self) -> dict[str, Any]:
        with self._lock:
            return {
                "size": self.size,
                "in_use": self._in_use,
                "idle": len(self._idle),
                "available": self.size - self._in_use,
            }

    @property
    def available(self) -> int:
        with self._lock:
            return self.size - self._in_use

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _exhausted(self) -> PoolError:
        return PoolError(
            f"No connection available for database '{self.database}' "
            f"({self.size} in use)"
        )

    def _checkout(self) -> _PoolEntry:
        now = time.monotonic()
        while True:
            entry = self._pop()
            if entry is None:
                break
            if (now - entry.created_at) > self._max_age:
                self._close_quiet(entry.conn)
                continue
            idle_sec = now - entry.last_used
            if idle_sec > _PING_IDLE_THRESHOLD and not health_check(entry.conn):
                logger.warning("Dropping dead pooled connection for '%s'", self.database)
                self._close_quiet(entry.conn)
                continue
            return entry

        try:
            conn = connect(self.database, **self._connect_kwargs)
        except (pymysql.err.MySQLError, OSError) as e:
            raise PoolError(
                f"Cannot connect to database '{self.database}': {error_message(e)}"
            ) from e
        return _PoolEntry(conn, now, now)

    def _pop(self) -> _PoolEntry | None:
        with self._lock:
            if self._idle:
                return self._idle.pop()
        return None

    @staticmethod
    def _close_quiet(conn: Any) -> None:
        try:
            conn.close()
        except (pymysql.err.Error, OSError):
            pass


class PoolManager:
    """
    Registry of connection pools keyed by database name.

    ``get_pool`` creates a pool the first time a name is seen; concurrent first
    calls for the same name create exactly one pool (the first writer wins).
    Pools are never evicted.
    """

    def __init__(
        self,
        *,
        pool_size: int | None = None,
        max_age: float | None = None,
        acquire_timeout: float | None = None,
        connect_kwargs: dict[str, Any] | None = None,
    ) -> None:
        self._pools: dict[str, ConnectionPool] = {}
        self._lock = threading.Lock()
        self._pool_size = (
            pool_size if pool_size is not None else settings.EXTERNAL_DB_POOL_SIZE
        )
        self._max_age = (
            max_age if max_age is not None else settings.EXTERNAL_DB_POOL_MAX_AGE_SEC
        )
        self._acquire_timeout = (
            acquire_timeout
            if acquire_timeout is not None
            else settings.EXTERNAL_DB_ACQUIRE_TIMEOUT
        )
        self._connect_kwargs = dict(connect_kwargs or {})

    def get_pool(self, database: str) -> ConnectionPool:
        if not isinstance(database, str) or not database.strip():
            raise ValidationError("database is required")
        pool = self._pools.get(database)
        if pool is None:
            with self._lock:
                pool = self._pools.get(database)
                if pool is None:
                    pool = ConnectionPool(
                        database,
                        size=self._pool_size,
                        max_age=self._max_age,
                        acquire_timeout=self._acquire_timeout,
                        connect_kwargs=self._connect_kwargs,
                    )
                    self._pools[database] = pool
                    logger.info(
                        "Created connection pool for database '%s' (size=%d)",
                        database,
                        pool.size,
                    )
        return pool

    def acquire(self, database: str) -> PooledConnection:
        """Lease a connection from the pool for *database*."""
        return self.get_pool(database).acquire()

    def release(self, conn: PooledConnection | None) -> None:
        """Return a leased connection to its pool. ``None`` is a no-op."""
        if conn is None:
            return
        conn.release()

    def dispose(self, database: str | None = None) -> None:
        """Close idle connections. ``None`` = every pool."""
        with self._lock:
            if database is not None:
                pools = [self._pools[database]] if database in self._pools else []
            else:
                pools = list(self._pools.values())
        for pool in pools:
            pool.dispose()

    def stats(self) -> dict[str, dict[str, Any]]:
        """Per-database pool statistics for monitoring."""
        with self._lock:
            pools = dict(self._pools)
        return {name: pool.stats() for name, pool in pools.items()}


_pool_manager: PoolManager | None = None
_pool_lock = threading.Lock()


def get_pool_manager() -> PoolManager:
    """Return the singleton PoolManager (thread-safe double-checked locking)."""
    global _pool_manager
    if _pool_manager is None:
        with _pool_lock:
            if _pool_manager is None:
                _pool_manager = PoolManager()
    return _pool_manager
