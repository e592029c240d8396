"""
Upsert plans: one statement for a single row, a transaction for several.
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from dbgate.core.errors import ValidationError
from dbgate.engines.sql.builder import Statement, build_upsert_sql

START_TRANSACTION = Statement("START TRANSACTION")
COMMIT = Statement("COMMIT")
ROLLBACK = Statement("ROLLBACK")


@dataclass(frozen=True)
class UpsertPlan:
    """Statements to run in order on one connection."""

    table: str
    statements: tuple[Statement, ...]
    transactional: bool

    @property
    def row_statements(self) -> tuple[Statement, ...]:
        if self.transactional:
            return self.statements[1:-1]
        return self.statements


def build_upsert_plan(
    table: str, rows: Mapping[str, Any] | Sequence[Mapping[str, Any]]
) -> UpsertPlan:
    """
    Build the plan for upserting *rows* (one row or a list of rows) into *table*.

    Several rows are wrapped in START TRANSACTION / COMMIT, in input order; the
    executor rolls the transaction back if any statement fails.
    """
    if isinstance(rows, Mapping):
        rows = [rows]
    elif isinstance(rows, (str, bytes)) or not isinstance(rows, Sequence):
        raise ValidationError("rows must be an object or a list of objects")
    if not rows:
        raise ValidationError("rows must contain at least one row")

    built = tuple(build_upsert_sql(table, row) for row in rows)
    if len(built) == 1:
        return UpsertPlan(table=table, statements=built, transactional=False)
    return UpsertPlan(
        table=table,
        statements=(START_TRANSACTION, *built, COMMIT),
        transactional=True,
    )
