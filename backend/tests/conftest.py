from collections.abc import Generator
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from dbgate.core.config import settings
from dbgate.core.pool import manager
from dbgate.main import app
from tests.utils.utils import TEST_TOKEN, auth_header


@pytest.fixture(autouse=True)
def _reset_pool_manager() -> Generator[None, None, None]:
    """Every test starts with an empty pool registry."""
    manager._pool_manager = None
    yield
    if manager._pool_manager is not None:
        manager._pool_manager.dispose()
    manager._pool_manager = None


@pytest.fixture(autouse=True)
def _gateway_token() -> Generator[None, None, None]:
    with patch.object(settings, "GATEWAY_TOKEN", TEST_TOKEN):
        yield


@pytest.fixture(scope="module")
def client() -> Generator[TestClient, None, None]:
    with TestClient(app) as c:
        yield c


@pytest.fixture
def auth_headers() -> dict[str, str]:
    return auth_header()
