from fastapi import APIRouter

from dbgate.api.routes import gateway, utils

api_router = APIRouter()
api_router.include_router(utils.router)
api_router.include_router(gateway.router)
