"""Tests for /utils routes (health-check)."""

from unittest.mock import patch

from fastapi.testclient import TestClient

from tests.utils.fake_db import FakeConnection


def test_health_check_without_pools(client: TestClient) -> None:
    r = client.get("/utils/health-check/")
    assert r.status_code == 200
    assert r.json() == {"status": "ok", "pools": {}}


def test_health_check_reports_pool_stats(
    client: TestClient, auth_headers: dict[str, str]
) -> None:
    """A pool shows up after its first request; the connection is back idle."""
    with patch("dbgate.core.pool.manager.connect", return_value=FakeConnection()):
        q = client.get(
            "/query", headers=auth_headers, params={"database": "app", "sql": "SELECT 1"}
        )
    assert q.json() == [{"1": 1}]

    r = client.get("/utils/health-check/")
    assert r.status_code == 200
    pools = r.json()["pools"]
    assert list(pools) == ["app"]
    assert pools["app"]["in_use"] == 0
    assert pools["app"]["idle"] == 1
    assert pools["app"]["available"] == pools["app"]["size"]
