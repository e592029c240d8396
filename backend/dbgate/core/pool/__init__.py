"""
MySQL connections and per-database connection pools.
"""

from .connect import connect, cursor_result, cursor_to_dicts, error_code, error_message, execute
from .health import health_check
from .manager import ConnectionPool, PooledConnection, PoolManager, get_pool_manager

__all__ = [
    "connect",
    "execute",
    "cursor_result",
    "cursor_to_dicts",
    "error_code",
    "error_message",
    "health_check",
    "ConnectionPool",
    "PooledConnection",
    "PoolManager",
    "get_pool_manager",
]
