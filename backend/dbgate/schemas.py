"""
Pydantic schemas for the gateway requests.

Values arriving through a query string or a form are plain strings; JSON
encoded ``row`` / ``rows`` / ``format`` values are decoded before validation.
"""

import json
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator


def _decode_json(v: Any) -> Any:
    if isinstance(v, str):
        s = v.strip()
        if s[:1] in ("[", "{"):
            try:
                return json.loads(s)
            except ValueError:
                return v
    return v


class QuerySpec(BaseModel):
    """
    A SQL string plus optional ``?`` / ``??`` values and execution options.

    - format (alias: values): substituted into the SQL before it is sent.
    - timeout: max execution time in milliseconds; 0 keeps the server setting.
    - multiple_statements: ask to run several ';'-separated statements; only
      honoured when the gateway allows it.
    - all_results: return every statement's result instead of the last one.
    """

    model_config = ConfigDict(extra="ignore")

    sql: str = Field(..., min_length=1)
    format: Any = Field(default=None, validation_alias=AliasChoices("format", "values"))
    timeout: int | None = Field(default=None, ge=0)
    multiple_statements: bool = Field(
        default=False,
        validation_alias=AliasChoices("multiple_statements", "multipleStatements"),
    )
    all_results: bool = Field(
        default=False, validation_alias=AliasChoices("all_results", "allResults")
    )

    @field_validator("format", mode="before")
    @classmethod
    def decode_format(cls, v: Any) -> Any:
        return _decode_json(v)


class QueryRequest(QuerySpec):
    """Params of GET /query."""

    database: str = Field(..., min_length=1)


class UpsertRequest(BaseModel):
    """Params of POST /upsert: either ``row`` or a non-empty ``rows`` list."""

    model_config = ConfigDict(extra="ignore")

    database: str = Field(..., min_length=1)
    table: str = Field(..., min_length=1)
    row: dict[str, Any] | None = None
    rows: dict[str, Any] | list[dict[str, Any]] | None = None

    @field_validator("row", "rows", mode="before")
    @classmethod
    def decode_rows(cls, v: Any) -> Any:
        return _decode_json(v)

    @model_validator(mode="after")
    def row_or_rows(self) -> "UpsertRequest":
        if self.row is None and self.rows is None:
            raise ValueError("row or rows is required")
        if self.row is not None and self.rows is not None:
            raise ValueError("give either row or rows, not both")
        if isinstance(self.rows, list) and not self.rows:
            raise ValueError("rows must contain at least one row")
        return self

    @property
    def payload(self) -> dict[str, Any] | list[dict[str, Any]]:
        return self.row if self.row is not None else self.rows  # type: ignore[return-value]
