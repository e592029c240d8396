"""
Gateway request/response: parse_params, format_response, error_response.

- parse_params: merge body and query string into one dict (query wins).
- format_response: make DB values (datetime, Decimal, bytes, ...) JSON-safe.
- error_response: ``{"error": message}`` with the error's status code.
"""

import base64
import logging
import uuid
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Any

from fastapi.responses import JSONResponse
from starlette.requests import Request

from dbgate.core.errors import GatewayError

logger = logging.getLogger(__name__)


async def _read_body(request: Request) -> dict[str, Any]:
    """Read JSON or form body; return {} on no body or unsupported type."""
    ct = (request.headers.get("content-type") or "").split(";")[0].strip().lower()
    if ct == "application/json":
        try:
            raw = await request.json()
        except ValueError:
            return {}
        return raw if isinstance(raw, dict) else {}
    if ct in ("application/x-www-form-urlencoded", "multipart/form-data"):
        form = await request.form()
        return dict(form)
    return {}


async def parse_params(request: Request) -> dict[str, Any]:
    """
    Merge body and query string into a single params dict.
    Conflict order: query > body (query wins).

    - Body: application/json -> request.json(); application/x-www-form-urlencoded
      or multipart/form-data -> request.form() (fields only).
    - Query: request.query_params (any method, including GET with a JSON body).
    """
    out: dict[str, Any] = await _read_body(request)
    out.update(request.query_params)
    return out


def validation_message(errors: list[dict[str, Any]]) -> str:
    """Human-readable summary of pydantic errors: ``table: Field required; ...``."""
    messages = []
    for err in errors:
        loc = " → ".join(str(l) for l in err.get("loc", []) if l != "body")
        msg = err.get("msg", "Invalid value")
        messages.append(f"{loc}: {msg}" if loc else msg)
    return "; ".join(messages)


def _make_json_safe(obj: Any) -> Any:
    """Recursively convert non-JSON-serializable types to safe primitives.

    Handles: datetime, date, time, timedelta, Decimal, UUID, bytes, sets.
    Bytes that are not valid UTF-8 (BLOB columns) are base64-encoded.
    """
    if obj is None or isinstance(obj, (bool, int, float, str)):
        return obj
    if isinstance(obj, (datetime, date, time)):
        return obj.isoformat()
    if isinstance(obj, timedelta):
        return obj.total_seconds()
    if isinstance(obj, Decimal):
        # Preserve integer-valued decimals as int, otherwise float
        if obj == obj.to_integral_value():
            return int(obj)
        return float(obj)
    if isinstance(obj, uuid.UUID):
        return str(obj)
    if isinstance(obj, (bytes, bytearray)):
        try:
            return bytes(obj).decode("utf-8")
        except UnicodeDecodeError:
            return base64.b64encode(bytes(obj)).decode("ascii")
    if isinstance(obj, dict):
        return {k: _make_json_safe(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_make_json_safe(item) for item in obj]
    if isinstance(obj, (set, frozenset)):
        return [_make_json_safe(item) for item in sorted(obj, key=str)]
    return str(obj)


def format_response(result: Any) -> JSONResponse:
    """200 response with the executor result made JSON-safe."""
    return JSONResponse(status_code=200, content=_make_json_safe(result))


def error_response(exc: GatewayError) -> JSONResponse:
    """Non-2xx response ``{"error": message}`` for a gateway error."""
    if exc.status_code >= 500:
        logger.warning("%s: %s", type(exc).__name__, exc.message)
    else:
        logger.info("%s: %s", type(exc).__name__, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})
