"""
SQL engine: builder (escaping, upserts, ? placeholders), upsert plans, executor.
"""

from dbgate.engines.sql.builder import (
    Statement,
    build_upsert_sql,
    escape_identifier,
    escape_value,
    format_sql,
)
from dbgate.engines.sql.executor import (
    QueryOutcome,
    execute,
    execute_file,
    run_plan,
    run_query,
    run_upsert,
    try_execute,
    upsert,
)
from dbgate.engines.sql.plan import UpsertPlan, build_upsert_plan

__all__ = [
    "QueryOutcome",
    "Statement",
    "UpsertPlan",
    "build_upsert_plan",
    "build_upsert_sql",
    "escape_identifier",
    "escape_value",
    "execute",
    "execute_file",
    "format_sql",
    "run_plan",
    "run_query",
    "run_upsert",
    "try_execute",
    "upsert",
]
