"""
Unit tests for core.pool.connect and core.pool.health.

pymysql.connect is patched; no MySQL server is needed.
"""

from unittest.mock import MagicMock, patch

import pymysql
import pytest

from dbgate.core.pool import (
    connect,
    cursor_result,
    cursor_to_dicts,
    error_code,
    error_message,
    execute,
    health_check,
)
from tests.utils.fake_db import FakeConnection


@patch("dbgate.core.pool.connect.settings")
@patch("dbgate.core.pool.connect.pymysql.connect")
def test_connect_uses_settings_and_database(
    mock_pymysql_connect: MagicMock, mock_settings: MagicMock
) -> None:
    mock_settings.MYSQL_HOST = "db.internal"
    mock_settings.MYSQL_PORT = 3307
    mock_settings.MYSQL_USER = "api"
    mock_settings.MYSQL_PASSWORD = "pw"
    mock_settings.EXTERNAL_DB_CONNECT_TIMEOUT = 4

    out = connect("shop")

    assert out is mock_pymysql_connect.return_value
    kwargs = mock_pymysql_connect.call_args.kwargs
    assert kwargs["host"] == "db.internal"
    assert kwargs["port"] == 3307
    assert kwargs["user"] == "api"
    assert kwargs["password"] == "pw"
    assert kwargs["database"] == "shop"
    assert kwargs["autocommit"] is True
    assert kwargs["connect_timeout"] == 4


@patch("dbgate.core.pool.connect.pymysql.connect")
def test_connect_overrides(mock_pymysql_connect: MagicMock) -> None:
    connect("shop", host="other", port=13306, user="u", password="p")
    kwargs = mock_pymysql_connect.call_args.kwargs
    assert (kwargs["host"], kwargs["port"], kwargs["user"], kwargs["password"]) == (
        "other",
        13306,
        "u",
        "p",
    )


def test_connect_requires_database() -> None:
    with pytest.raises(ValueError, match="database"):
        connect("")


@patch("dbgate.core.pool.connect.settings")
def test_execute_applies_statement_timeout_when_configured(mock_settings: MagicMock) -> None:
    """When EXTERNAL_DB_STATEMENT_TIMEOUT is set, execute() sets max_execution_time before the query and resets after."""
    mock_settings.EXTERNAL_DB_STATEMENT_TIMEOUT = 5
    conn = FakeConnection(rows=[{"n": 1}])

    cur = execute(conn, "SELECT 1 AS n")

    assert conn.executed == [
        "SET SESSION max_execution_time = 5000",
        "SELECT 1 AS n",
        "SET SESSION max_execution_time = 0",
    ]
    assert cursor_to_dicts(cur) == [{"n": 1}]


@patch("dbgate.core.pool.connect.settings")
def test_execute_without_timeout(mock_settings: MagicMock) -> None:
    mock_settings.EXTERNAL_DB_STATEMENT_TIMEOUT = None
    conn = FakeConnection()
    execute(conn, "UPDATE t SET a = %s WHERE id = %s", ("x", 3))
    assert conn.executed == ["UPDATE t SET a = 'x' WHERE id = 3"]


@patch("dbgate.core.pool.connect.settings")
def test_execute_zero_timeout_keeps_configured_limit(mock_settings: MagicMock) -> None:
    mock_settings.EXTERNAL_DB_STATEMENT_TIMEOUT = 2
    conn = FakeConnection()
    execute(conn, "SELECT n FROM t", timeout_ms=0)
    assert conn.executed[0] == "SET SESSION max_execution_time = 2000"
    assert conn.executed[-1] == "SET SESSION max_execution_time = 0"


def test_execute_resets_timeout_after_failure() -> None:
    err = pymysql.err.OperationalError(3024, "Query execution was interrupted")
    conn = FakeConnection(fail_on={"SLEEP": err})
    with pytest.raises(pymysql.err.OperationalError):
        execute(conn, "SELECT SLEEP(10)", timeout_ms=100)
    assert conn.executed[-1] == "SET SESSION max_execution_time = 0"


def test_cursor_result_rows_and_metadata() -> None:
    rows_cur = MagicMock()
    rows_cur.description = [("id",), ("name",)]
    rows_cur.fetchall.return_value = [(1, "Ann")]
    assert cursor_result(rows_cur) == [{"id": 1, "name": "Ann"}]

    dml_cur = MagicMock()
    dml_cur.description = None
    dml_cur.rowcount = 2
    dml_cur.lastrowid = 0
    assert cursor_result(dml_cur) == {"affected_rows": 2, "insert_id": None}


def test_cursor_to_dicts_empty_description() -> None:
    cur = MagicMock()
    cur.description = None
    assert cursor_to_dicts(cur) == []


def test_error_message_and_code() -> None:
    err = pymysql.err.IntegrityError(1062, "Duplicate entry '1' for key 'PRIMARY'")
    assert error_message(err) == "Duplicate entry '1' for key 'PRIMARY'"
    assert error_code(err) == 1062
    plain = pymysql.err.InterfaceError("not connected")
    assert error_message(plain) == "not connected"
    assert error_code(plain) is None


def test_health_check() -> None:
    conn = FakeConnection()
    assert health_check(conn) is True
    conn.close()
    assert health_check(conn) is False
