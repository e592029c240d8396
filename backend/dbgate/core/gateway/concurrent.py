"""
Run blocking pool work for one request without starving other databases.

The wait for a free connection happens on the event loop (ConnectionPool.reserve);
only requests that hold a reservation get a worker thread. A cancelled request
keeps its reservation until the thread has released its lease.
"""

import asyncio
from collections.abc import Callable
from typing import Any, TypeVar

from dbgate.core.pool import PoolManager, get_pool_manager

T = TypeVar("T")


async def run_pooled(
    database: str,
    func: Callable[..., T],
    *args: Any,
    pool_manager: PoolManager | None = None,
    **kwargs: Any,
) -> T:
    """
    Call ``func(database, *args, pool_manager=..., **kwargs)`` in a worker thread
    once the pool for *database* has a slot. Raises PoolError when none frees up
    within the pool's acquire timeout.
    """
    pm = pool_manager or get_pool_manager()
    pool = pm.get_pool(database)
    await pool.reserve()
    try:
        task = asyncio.ensure_future(
            asyncio.to_thread(func, database, *args, pool_manager=pm, **kwargs)
        )
    except BaseException:
        pool.unreserve()
        raise
    task.add_done_callback(lambda _: pool.unreserve())
    return await asyncio.shield(task)
