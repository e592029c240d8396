"""
SQL builder: escaped identifiers, upsert statements and ``?`` placeholders.

Identifiers are backtick-quoted here; values are either left to the driver as
``%s`` parameters (upserts) or escaped with pymysql's converters (``?``
placeholders), never concatenated raw.
"""

import math
import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Any

from pymysql.converters import escape_item

from dbgate.core.errors import ValidationError

_CHARSET = "utf8mb4"

_SCALAR_TYPES = (str, int, float, bool, bytes, Decimal, date, datetime, time, timedelta)

_PLACEHOLDER = re.compile(r"\?+")


@dataclass(frozen=True)
class Statement:
    """One SQL statement; ``params`` fill its ``%s`` slots (None = no slots)."""

    sql: str
    params: tuple[Any, ...] | None = None

    def render(self) -> str:
        """Literal SQL with parameters escaped the way the driver sends them."""
        if self.params is None:
            return self.sql
        return self.sql % tuple(escape_value(v) for v in self.params)

    def __str__(self) -> str:
        return self.render()


# ---------------------------------------------------------------------------
# Escaping
# ---------------------------------------------------------------------------


def escape_identifier(name: Any) -> str:
    """
    Quote a table or column name with backticks. ``db.table`` quotes each part.

    >>> escape_identifier("users")
    '`users`'
    >>> escape_identifier("app.users")
    '`app`.`users`'
    """
    if not isinstance(name, str) or not name:
        raise ValidationError(f"Invalid identifier: {name!r}")
    parts = name.split(".")
    if any(not p for p in parts):
        raise ValidationError(f"Invalid identifier: {name!r}")
    return ".".join("`" + p.replace("`", "``") + "`" for p in parts)


def escape_value(value: Any) -> str:
    """Escape a scalar as a MySQL literal. None -> NULL, bool -> 1/0."""
    return escape_item(value, _CHARSET)


def _check_scalar(target: str, value: Any) -> None:
    if isinstance(value, float) and not math.isfinite(value):
        raise ValidationError(f"Unsupported value for {target}: {value}")
    if isinstance(value, Decimal) and not value.is_finite():
        raise ValidationError(f"Unsupported value for {target}: {value}")
    if value is None or isinstance(value, _SCALAR_TYPES):
        return
    raise ValidationError(f"Unsupported value for {target}: {type(value).__name__}")


# ---------------------------------------------------------------------------
# Upsert
# ---------------------------------------------------------------------------


def build_upsert_sql(table: str, row: Mapping[str, Any]) -> Statement:
    """
    INSERT ... ON DUPLICATE KEY UPDATE for one row.

    Every column is updated from the inserted value on key conflict. Values are
    returned as driver parameters in column order.
    """
    if not isinstance(row, Mapping) or not row:
        raise ValidationError("row must be a non-empty object")

    columns: list[str] = []
    values: list[Any] = []
    for column, value in row.items():
        _check_scalar(f"column '{column}'", value)
        # '%' must survive the driver's "sql % params" substitution
        columns.append(escape_identifier(column).replace("%", "%%"))
        values.append(value)

    table_sql = escape_identifier(table).replace("%", "%%")
    placeholders = ", ".join(["%s"] * len(values))
    updates = ", ".join(f"{c} = VALUES({c})" for c in columns)
    sql = (
        f"INSERT INTO {table_sql} ({', '.join(columns)}) VALUES ({placeholders}) "
        f"ON DUPLICATE KEY UPDATE {updates}"
    )
    return Statement(sql, tuple(values))


# ---------------------------------------------------------------------------
# ? / ?? placeholders
# ---------------------------------------------------------------------------


def _literal(value: Any) -> str:
    if isinstance(value, Mapping):
        return ", ".join(
            f"{escape_identifier(k)} = {_literal(v)}" for k, v in value.items()
        )
    if isinstance(value, (list, tuple)):
        return ", ".join(
            f"({_literal(v)})" if isinstance(v, (list, tuple)) else _literal(v)
            for v in value
        )
    _check_scalar("placeholder ?", value)
    return escape_value(value)


def _identifier(value: Any) -> str:
    if isinstance(value, (list, tuple)):
        return ", ".join(escape_identifier(v) for v in value)
    return escape_identifier(value)


def format_sql(sql: str, values: Any) -> str:
    """
    Substitute ``?`` with escaped values and ``??`` with quoted identifiers,
    left to right. Lists expand to comma-separated lists (nested lists to
    grouped tuples); objects to ```key` = value`` pairs. Placeholders past the
    last value are left as they are.

    >>> format_sql("SELECT * FROM ?? WHERE id = ?", ["users", 1])
    'SELECT * FROM `users` WHERE id = 1'
    """
    if values is None:
        return sql
    if isinstance(values, (str, bytes)) or not isinstance(values, Sequence):
        values = [values]

    out: list[str] = []
    pos = 0
    index = 0
    for match in _PLACEHOLDER.finditer(sql):
        if index >= len(values):
            break
        mark = match.group(0)
        if len(mark) > 2:
            continue
        value = values[index]
        out.append(sql[pos : match.start()])
        out.append(_identifier(value) if len(mark) == 2 else _literal(value))
        pos = match.end()
        index += 1
    out.append(sql[pos:])
    return "".join(out)
