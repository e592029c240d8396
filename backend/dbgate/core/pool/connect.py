"""
MySQL connection helpers for the gateway pools.

Uses pymysql. Host, port and credentials default to the process-wide settings;
only the database name varies between pools.
"""

import logging
from typing import Any

import pymysql

from dbgate.core.config import settings

logger = logging.getLogger(__name__)


def connect(
    database: str,
    *,
    host: str | None = None,
    port: int | None = None,
    user: str | None = None,
    password: str | None = None,
) -> Any:
    """
    Open a connection to *database* on the configured MySQL server.

    Connections run in autocommit mode; transactions are opened explicitly
    with START TRANSACTION by the upsert plan.
    """
    if not database:
        raise ValueError("database is required")
    host = host if host is not None else settings.MYSQL_HOST
    port = port if port is not None else settings.MYSQL_PORT
    user = user if user is not None else settings.MYSQL_USER
    password = password if password is not None else settings.MYSQL_PASSWORD

    logger.info("Connecting to database '%s' at %s:%s", database, host, port)
    return pymysql.connect(
        host=host,
        port=int(port),
        user=user,
        password=password or "",
        database=database,
        charset="utf8mb4",
        autocommit=True,
        connect_timeout=settings.EXTERNAL_DB_CONNECT_TIMEOUT,
    )


def error_message(exc: BaseException) -> str:
    """Engine message of a pymysql error: ``(1062, "Duplicate entry")`` -> ``Duplicate entry``."""
    args = getattr(exc, "args", ())
    if len(args) >= 2 and isinstance(args[0], int):
        return str(args[1])
    return str(exc)


def error_code(exc: BaseException) -> int | None:
    args = getattr(exc, "args", ())
    if args and isinstance(args[0], int):
        return args[0]
    return None


def _statement_timeout_ms(timeout_ms: int | None) -> int | None:
    if timeout_ms is not None and timeout_ms > 0:
        return int(timeout_ms)
    timeout_sec = settings.EXTERNAL_DB_STATEMENT_TIMEOUT
    if timeout_sec is not None and timeout_sec > 0:
        return int(timeout_sec * 1000)
    return None


def execute(
    conn: Any,
    sql: str,
    params: list | tuple | dict | None = None,
    *,
    timeout_ms: int | None = None,
) -> Any:
    """
    Execute SQL and return the cursor. Caller uses cursor_result(cursor).

    - params: handed to the driver, which escapes them into the ``%s`` slots.
    - timeout_ms: per-call max_execution_time; falls back to
      EXTERNAL_DB_STATEMENT_TIMEOUT when None or 0. Applied before the query
      and reset after.
    """
    timeout = _statement_timeout_ms(timeout_ms)

    if timeout is not None:
        cur_set = conn.cursor()
        try:
            cur_set.execute("SET SESSION max_execution_time = %s", (timeout,))
        finally:
            cur_set.close()

    cur = conn.cursor()
    try:
        if params is not None:
            cur.execute(sql, params)
        else:
            cur.execute(sql)
    finally:
        if timeout is not None:
            try:
                cur_reset = conn.cursor()
                cur_reset.execute("SET SESSION max_execution_time = 0")
                cur_reset.close()
            except pymysql.err.MySQLError:
                logger.warning("Could not reset max_execution_time", exc_info=True)

    return cur


def cursor_to_dicts(cursor: Any) -> list[dict[str, Any]]:
    """Convert cursor result to list of dicts."""
    desc = cursor.description
    if not desc:
        return []
    names = [d[0] for d in desc]
    return [dict(zip(names, row, strict=True)) for row in cursor.fetchall()]


def cursor_result(cursor: Any) -> list[dict[str, Any]] | dict[str, Any]:
    """
    Rows for statements that return a result set, otherwise statement metadata:
    ``{"affected_rows": int, "insert_id": int | None}``.
    """
    if cursor.description:
        return cursor_to_dicts(cursor)
    return {
        "affected_rows": cursor.rowcount if cursor.rowcount is not None else 0,
        "insert_id": cursor.lastrowid or None,
    }
