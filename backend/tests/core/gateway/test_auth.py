"""Unit tests for gateway auth: authenticate."""

from unittest.mock import Mock, patch

import pytest

from dbgate.core.config import settings
from dbgate.core.errors import AuthorizationError
from dbgate.core.gateway.auth import authenticate
from tests.utils.utils import TEST_TOKEN


def _mock_request(authorization: str | None = None) -> Mock:
    m = Mock()
    m.headers = {}
    if authorization is not None:
        m.headers["Authorization"] = authorization
    return m


def test_authenticate_basic_token() -> None:
    authenticate(_mock_request(f"Basic {TEST_TOKEN}"))


def test_authenticate_bearer_token() -> None:
    authenticate(_mock_request(f"Bearer {TEST_TOKEN}"))


@pytest.mark.parametrize(
    "header",
    [None, "", "Basic", "Basic wrong", f"Basic {TEST_TOKEN}x", TEST_TOKEN, f"Token {TEST_TOKEN}"],
)
def test_authenticate_rejects(header: str | None) -> None:
    with pytest.raises(AuthorizationError, match="Authorization failed"):
        authenticate(_mock_request(header))


def test_authenticate_rejects_everything_without_configured_token() -> None:
    with patch.object(settings, "GATEWAY_TOKEN", ""):
        with pytest.raises(AuthorizationError):
            authenticate(_mock_request("Basic "))
