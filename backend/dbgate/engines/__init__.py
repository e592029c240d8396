"""
Engines: SQL builder, upsert plans and query executor.
"""

from dbgate.engines.sql import build_upsert_plan, execute, run_query, run_upsert

__all__ = [
    "build_upsert_plan",
    "execute",
    "run_query",
    "run_upsert",
]
