"""
Gateway auth: every request presents the shared secret.

Accepted forms: ``Authorization: Basic <token>`` (what existing clients send) and
``Authorization: Bearer <token>``.
"""

import hmac
import logging

from starlette.requests import Request

from dbgate.core.config import settings
from dbgate.core.errors import AuthorizationError

logger = logging.getLogger(__name__)

_SCHEMES = ("Basic ", "Bearer ")


def _extract_token(header: str) -> str:
    for scheme in _SCHEMES:
        if header.startswith(scheme):
            return header[len(scheme) :].strip()
    return ""


def authenticate(request: Request) -> None:
    """Raise AuthorizationError unless the request carries GATEWAY_TOKEN."""
    expected = settings.GATEWAY_TOKEN
    if not expected:
        logger.error("GATEWAY_TOKEN is not configured; refusing request")
        raise AuthorizationError("Authorization failed")

    token = _extract_token((request.headers.get("Authorization") or "").strip())
    if not token or not hmac.compare_digest(token.encode(), expected.encode()):
        raise AuthorizationError("Authorization failed")
