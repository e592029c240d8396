"""
Gateway: auth, request/response helpers and pooled dispatch.
"""

from dbgate.core.gateway.auth import authenticate
from dbgate.core.gateway.concurrent import run_pooled
from dbgate.core.gateway.request_response import (
    error_response,
    format_response,
    parse_params,
    validation_message,
)

__all__ = [
    "authenticate",
    "error_response",
    "format_response",
    "parse_params",
    "run_pooled",
    "validation_message",
]
