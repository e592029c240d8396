"""Unit tests for engines.sql.plan: upsert plan shape for one vs. many rows."""

import pytest

from dbgate.core.errors import ValidationError
from dbgate.engines.sql.builder import build_upsert_sql
from dbgate.engines.sql.plan import COMMIT, START_TRANSACTION, build_upsert_plan


def test_single_row_has_no_transaction() -> None:
    plan = build_upsert_plan("users", {"id": 1, "name": "Ann"})
    assert plan.transactional is False
    assert plan.statements == (build_upsert_sql("users", {"id": 1, "name": "Ann"}),)
    assert all("TRANSACTION" not in s.sql for s in plan.statements)


def test_list_with_one_row_has_no_transaction() -> None:
    plan = build_upsert_plan("users", [{"id": 1}])
    assert plan.transactional is False
    assert len(plan.statements) == 1


@pytest.mark.parametrize("n", [2, 3, 10])
def test_many_rows_wrapped_in_order(n: int) -> None:
    rows = [{"id": i, "name": f"n{i}"} for i in range(n)]
    plan = build_upsert_plan("users", rows)

    assert plan.transactional is True
    assert len(plan.statements) == n + 2
    assert plan.statements[0] == START_TRANSACTION
    assert plan.statements[-1] == COMMIT
    assert [s.params for s in plan.row_statements] == [(i, f"n{i}") for i in range(n)]


def test_example_two_rows() -> None:
    plan = build_upsert_plan("users", [{"id": 1, "name": "A"}, {"id": 2, "name": "B"}])
    rendered = [s.render() for s in plan.statements]
    assert rendered[0] == "START TRANSACTION"
    assert rendered[1].startswith("INSERT INTO `users` (`id`, `name`) VALUES (1, 'A')")
    assert rendered[2].startswith("INSERT INTO `users` (`id`, `name`) VALUES (2, 'B')")
    assert rendered[3] == "COMMIT"


def test_rows_may_have_different_columns() -> None:
    plan = build_upsert_plan("t", [{"a": 1}, {"b": 2, "c": 3}])
    assert "(`a`)" in plan.row_statements[0].sql
    assert "(`b`, `c`)" in plan.row_statements[1].sql


def test_duplicates_are_kept() -> None:
    plan = build_upsert_plan("t", [{"id": 1}, {"id": 1}])
    assert len(plan.row_statements) == 2


@pytest.mark.parametrize("rows", [[], "id=1", 5, None])
def test_invalid_rows_rejected(rows: object) -> None:
    with pytest.raises(ValidationError):
        build_upsert_plan("t", rows)  # type: ignore[arg-type]


def test_invalid_row_in_batch_rejected() -> None:
    with pytest.raises(ValidationError):
        build_upsert_plan("t", [{"id": 1}, {}])
