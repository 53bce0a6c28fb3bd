"""应用入口模块"""
import sys
import traceback
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi_offline import FastAPIOffline
from loguru import logger

from netaware_scheduler import __version__
from netaware_scheduler.api.v1 import register_routers
from netaware_scheduler.core.app_state import manage_services
from netaware_scheduler.core.config import settings
from netaware_scheduler.core.exceptions import StartupFatalError


def configure_logging() -> None:
    """按配置的日志级别重设loguru输出"""
    logger.remove()
    logger.add(sys.stderr, level=settings.LOG_LEVEL.upper(), backtrace=settings.DEBUG)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    应用生命周期管理

    启动时加载集群凭证并启动watch和调度循环，关闭时按逆序停止
    """
    configure_logging()
    logger.info(f"{settings.APP_NAME} 启动中...")
    logger.info(f"版本: {settings.APP_VERSION}, 调度器标识: {settings.SCHEDULER_NAME}")

    try:
        async with manage_services():
            logger.info("应用启动完成")
            yield  # 应用运行期间
    except StartupFatalError as e:
        logger.critical(f"应用启动失败: {str(e)}")
        sys.exit(1)

    logger.info("应用已关闭")


# 创建FastAPI应用
app = FastAPIOffline(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    openapi_url=f"{settings.API_V1_PREFIX}/openapi.json",
    docs_url=f"{settings.API_V1_PREFIX}/docs",
    redoc_url=f"{settings.API_V1_PREFIX}/redoc",
    lifespan=lifespan,
)

# 配置CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# 注册API路由
register_routers(app)


# 请求中间件
@app.middleware("http")
async def log_requests(request: Request, call_next):
    """记录所有HTTP请求"""
    logger.debug(f"请求: {request.method} {request.url.path}")
    response = await call_next(request)
    logger.debug(f"响应: {request.method} {request.url.path} - {response.status_code}")
    return response


@app.get("/")
async def root():
    """根路由，返回应用信息"""
    return {
        "app": settings.APP_NAME,
        "version": __version__,
        "scheduler": settings.SCHEDULER_NAME,
        "status": "running"
    }


@app.get("/health")
async def health_check():
    """健康检查接口"""
    return {"status": "healthy"}


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """
    全局异常处理
    """
    error_detail = str(exc)
    logger.error(f"全局异常: {error_detail}")
    logger.error(traceback.format_exc())

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "success": False,
            "message": "服务器内部错误",
            "detail": error_detail
        }
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("netaware_scheduler.main:app", host=settings.HOST, port=settings.PORT, reload=settings.DEBUG)
