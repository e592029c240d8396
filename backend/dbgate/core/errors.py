"""
Gateway error kinds.

Every error carries the HTTP status the gateway answers with; handlers turn
them into ``{"error": message}`` bodies.
"""


class GatewayError(Exception):
    """Base class for errors surfaced to gateway callers."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class AuthorizationError(GatewayError):
    """Missing or wrong gateway token; no connection work was attempted."""

    status_code = 401


class ValidationError(GatewayError):
    """Malformed request: missing database/table/row, bad identifier or value."""

    status_code = 400


class PoolError(GatewayError):
    """A connection could not be opened or acquired (bad credentials, exhausted pool)."""

    status_code = 503


class QueryError(GatewayError):
    """The database engine rejected a statement."""

    status_code = 400

    def __init__(self, message: str, code: int | None = None) -> None:
        super().__init__(message)
        self.code = code
