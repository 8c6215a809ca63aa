"""API v1 汇总路由：统一挂载所有版本化的子路由。"""

from fastapi import APIRouter

from app.packages.dataroom.api.v1.endpoints import auth, cron, datarooms, trash

api_router = APIRouter()
api_router.include_router(auth.router)
api_router.include_router(datarooms.router)
api_router.include_router(trash.router)

# 挂载在 settings.cron_prefix 下，不在版本前缀内
cron_router = APIRouter()
cron_router.include_router(cron.router)
