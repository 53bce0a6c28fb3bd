"""
API v1版本路由
"""
from fastapi import FastAPI, APIRouter
from netaware_scheduler.api.v1 import scheduler
from netaware_scheduler.core.config import settings

# 所有路由模块列表
api_modules = [scheduler]


def register_routers(app: FastAPI, prefix: str = "") -> None:
    """
    自动注册所有API路由

    Args:
        app: FastAPI应用实例
        prefix: 路由前缀，默认使用settings.API_V1_PREFIX
    """
    if not prefix:
        prefix = settings.API_V1_PREFIX

    main_router = APIRouter()

    for module in api_modules:
        if hasattr(module, 'router'):
            main_router.include_router(module.router)

    app.include_router(main_router, prefix=prefix)
