"""
Run queries and upsert plans on a leased MySQL connection.

- Single statement: returns list[dict] for result sets, otherwise
  {"affected_rows": n, "insert_id": id}.
- Several ';'-separated statements run in order on the same connection and
  only the last result is returned (all of them with ``all_results``). They
  are refused unless the caller passes ``allow_multi_statements=True``.
- Engine errors come back as a QueryOutcome holding a QueryError; ``execute``
  and ``run_plan`` raise it. A failed transactional upsert plan is rolled back
  before its error is raised.
"""

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import pymysql

from dbgate.core.errors import QueryError, ValidationError
from dbgate.core.pool import (
    PoolManager,
    cursor_result,
    error_code,
    error_message,
    execute as execute_statement,
    get_pool_manager,
)
from dbgate.engines.sql.builder import Statement, format_sql
from dbgate.engines.sql.plan import ROLLBACK, UpsertPlan, build_upsert_plan
from dbgate.schemas import QuerySpec

logger = logging.getLogger(__name__)


@dataclass
class QueryOutcome:
    """Result of running statements: either ``result`` or ``error`` is set."""

    result: Any = None
    error: QueryError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> Any:
        if self.error is not None:
            raise self.error
        return self.result


def _is_dash_comment(sql: str, i: int) -> bool:
    # MySQL needs whitespace (or end of input) after "--"
    if not sql.startswith("--", i):
        return False
    return i + 2 >= len(sql) or sql[i + 2].isspace()


def _split_statements(sql: str) -> list[str]:
    """Split SQL into statements on ``;`` while respecting quotes and comments.

    Handles single-quoted (``'...'``), double-quoted (``"..."``) and
    backtick-quoted (`` `...` ``) text, plus ``-- ``, ``#`` and ``/* */``
    comments, so that semicolons inside them are not statement terminators.
    Chunks holding only comments are dropped.
    """
    stmts: list[str] = []
    current: list[str] = []
    has_code = False
    i = 0
    length = len(sql)

    while i < length:
        ch = sql[i]

        if ch in ("'", '"', "`"):
            quote = ch
            has_code = True
            current.append(ch)
            i += 1
            while i < length:
                c = sql[i]
                current.append(c)
                if c == quote:
                    if i + 1 < length and sql[i + 1] == quote:
                        current.append(sql[i + 1])
                        i += 2
                        continue
                    i += 1
                    break
                if c == "\\" and quote != "`" and i + 1 < length:
                    current.append(sql[i + 1])
                    i += 2
                    continue
                i += 1
            continue

        if ch == "#" or _is_dash_comment(sql, i):
            end = sql.find("\n", i)
            if end == -1:
                current.append(sql[i:])
                i = length
            else:
                current.append(sql[i : end + 1])
                i = end + 1
            continue

        if ch == "/" and sql.startswith("/*", i):
            # /*! ... */ is executed by MySQL
            has_code = has_code or sql.startswith("/*!", i)
            end = sql.find("*/", i + 2)
            if end == -1:
                current.append(sql[i:])
                i = length
            else:
                current.append(sql[i : end + 2])
                i = end + 2
            continue

        if ch == ";":
            stmt = "".join(current).strip()
            if stmt and has_code:
                stmts.append(stmt)
            current = []
            has_code = False
            i += 1
            continue

        if not ch.isspace():
            has_code = True
        current.append(ch)
        i += 1

    tail = "".join(current).strip()
    if tail and has_code:
        stmts.append(tail)
    return stmts


def _as_query(query: QuerySpec | str) -> QuerySpec:
    if isinstance(query, QuerySpec):
        return query
    if isinstance(query, str) and query.strip():
        return QuerySpec(sql=query)
    raise ValidationError("sql is required")


def prepare_statements(
    query: QuerySpec | str, *, allow_multi_statements: bool = False
) -> list[Statement]:
    """Substitute ``format`` values and split *query* into statements."""
    query = _as_query(query)
    sql = format_sql(query.sql, query.format) if query.format is not None else query.sql
    parts = _split_statements(sql)
    if not parts:
        raise ValidationError("sql is empty")
    if len(parts) > 1 and not allow_multi_statements:
        raise ValidationError("Multiple statements are not enabled")
    return [Statement(p) for p in parts]


def run_statements(
    conn: Any,
    statements: Sequence[Statement],
    *,
    timeout_ms: int | None = None,
    all_results: bool = False,
) -> QueryOutcome:
    """Run *statements* in order on *conn*, stopping at the first engine error."""
    results: list[Any] = []
    for stmt in statements:
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("%s", stmt.render())
        try:
            cur = execute_statement(conn, stmt.sql, stmt.params, timeout_ms=timeout_ms)
            try:
                results.append(cursor_result(cur))
            finally:
                cur.close()
        except pymysql.err.MySQLError as e:
            err = QueryError(error_message(e), code=error_code(e))
            err.__cause__ = e
            return QueryOutcome(error=err)
    if all_results:
        return QueryOutcome(result=results)
    return QueryOutcome(result=results[-1] if results else None)


def try_execute(
    conn: Any, query: QuerySpec | str, *, allow_multi_statements: bool = False
) -> QueryOutcome:
    """Run a query; engine errors are returned in the outcome, not raised."""
    query = _as_query(query)
    statements = prepare_statements(query, allow_multi_statements=allow_multi_statements)
    return run_statements(
        conn, statements, timeout_ms=query.timeout, all_results=query.all_results
    )


def execute(
    conn: Any, query: QuerySpec | str, *, allow_multi_statements: bool = False
) -> Any:
    """Run a query and return its result; raises QueryError on engine errors."""
    return try_execute(conn, query, allow_multi_statements=allow_multi_statements).unwrap()


def run_plan(conn: Any, plan: UpsertPlan) -> Any:
    """
    Run an upsert plan and return the result of its final statement.

    A transactional plan that fails is rolled back on the same connection; the
    statement's error is raised even if the ROLLBACK itself fails.
    """
    outcome = run_statements(conn, plan.statements)
    if not outcome.ok and plan.transactional:
        rollback = run_statements(conn, [ROLLBACK])
        if not rollback.ok:
            logger.warning("ROLLBACK of upsert into '%s' failed: %s", plan.table, rollback.error)
    return outcome.unwrap()


def upsert(
    conn: Any, table: str, rows: Mapping[str, Any] | Sequence[Mapping[str, Any]]
) -> Any:
    return run_plan(conn, build_upsert_plan(table, rows))


def execute_file(conn: Any, path: str | Path) -> Any:
    """Run every statement of a SQL script in order; returns the last result."""
    sql = Path(path).read_text(encoding="utf-8")
    statements = [Statement(s) for s in _split_statements(sql)]
    if not statements:
        raise ValidationError(f"No statements in {path}")
    return run_statements(conn, statements).unwrap()


# ---------------------------------------------------------------------------
# Pooled entry points (blocking; the gateway runs them in a worker thread)
# ---------------------------------------------------------------------------


def run_query(
    database: str,
    query: QuerySpec | str,
    *,
    allow_multi_statements: bool = False,
    pool_manager: PoolManager | None = None,
) -> Any:
    """Lease a connection for *database*, run the query, always release."""
    query = _as_query(query)
    statements = prepare_statements(query, allow_multi_statements=allow_multi_statements)
    pm = pool_manager or get_pool_manager()
    conn = None
    try:
        conn = pm.acquire(database)
        return run_statements(
            conn, statements, timeout_ms=query.timeout, all_results=query.all_results
        ).unwrap()
    finally:
        pm.release(conn)


def run_upsert(
    database: str,
    table: str,
    rows: Mapping[str, Any] | Sequence[Mapping[str, Any]],
    *,
    pool_manager: PoolManager | None = None,
) -> Any:
    """Lease a connection for *database*, run the upsert plan, always release."""
    plan = build_upsert_plan(table, rows)
    pm = pool_manager or get_pool_manager()
    conn = None
    try:
        conn = pm.acquire(database)
        return run_plan(conn, plan)
    finally:
        pm.release(conn)
