"""
Connection health check for pooled MySQL connections.
"""

from typing import Any

import pymysql


def health_check(conn: Any) -> bool:
    """
    Run SELECT 1 and return True if no exception.
    """
    cur = None
    try:
        cur = conn.cursor()
        cur.execute("SELECT 1")
        cur.fetchone()
        return True
    except (pymysql.err.Error, OSError):
        return False
    finally:
        if cur is not None:
            try:
                cur.close()
            except (pymysql.err.Error, OSError):
                pass
