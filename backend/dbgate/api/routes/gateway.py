"""
Gateway routes: GET /query and POST /upsert.

Flow: auth -> parse_params -> validate -> run (pooled, in a worker thread) -> JSON.
run_query / run_upsert are sync/blocking. run_pooled waits for a pool slot on
the event loop and only then runs them in a worker thread, so a full pool never
holds up requests for other databases. The worker thread owns the leased
connection and releases it even if this handler is cancelled.
"""

from typing import Any, TypeVar

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from dbgate.core.config import settings
from dbgate.core.errors import GatewayError, ValidationError
from dbgate.core.gateway import (
    authenticate,
    error_response,
    format_response,
    parse_params,
    run_pooled,
    validation_message,
)
from dbgate.engines.sql import run_query, run_upsert
from dbgate.schemas import QueryRequest, UpsertRequest

router = APIRouter(prefix="", tags=["gateway"])

M = TypeVar("M", bound=BaseModel)


def _validate(model: type[M], params: dict[str, Any]) -> M:
    try:
        return model.model_validate(params)
    except PydanticValidationError as e:
        raise ValidationError(validation_message(e.errors())) from e


@router.get("/", response_class=PlainTextResponse)
async def hello() -> str:
    return "Hello World"


@router.api_route("/query", methods=["GET", "POST"])
async def query(request: Request) -> JSONResponse:
    """
    Run ``sql`` (with optional ``format`` values) against ``database``.

    Several statements need ``multiple_statements=true`` in the request and
    GATEWAY_ALLOW_MULTI_STATEMENTS on the server.
    """
    try:
        authenticate(request)
        params = await parse_params(request)
        req = _validate(QueryRequest, params)
        allow_multi = req.multiple_statements and settings.GATEWAY_ALLOW_MULTI_STATEMENTS
        result = await run_pooled(
            req.database, run_query, req, allow_multi_statements=allow_multi
        )
    except GatewayError as e:
        return error_response(e)
    return format_response(result)


@router.post("/upsert")
async def upsert(request: Request) -> JSONResponse:
    """
    Insert-or-update ``row`` (or every row of ``rows``, in one transaction)
    into ``table``. Returns the result of the final statement.
    """
    try:
        authenticate(request)
        params = await parse_params(request)
        req = _validate(UpsertRequest, params)
        result = await run_pooled(req.database, run_upsert, req.table, req.payload)
    except GatewayError as e:
        return error_response(e)
    return format_response(result)
