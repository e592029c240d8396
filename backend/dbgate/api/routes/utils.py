from fastapi import APIRouter

from dbgate.core.pool import get_pool_manager

router = APIRouter(prefix="/utils", tags=["utils"])


@router.get("/health-check/")
async def health_check() -> dict:
    """
    Liveness check with pool statistics per database name.

    No DB I/O: a database being down only shows up on the requests routed to it.
    """
    return {"status": "ok", "pools": get_pool_manager().stats()}
