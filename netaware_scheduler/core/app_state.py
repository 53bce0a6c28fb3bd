"""应用状态管理模块"""
import asyncio
from contextlib import asynccontextmanager
from typing import Optional

from loguru import logger

from netaware_scheduler.core.config import settings
from netaware_scheduler.services.bind_service import PlacementCommitter
from netaware_scheduler.services.k8s_service import KubernetesService
from netaware_scheduler.services.node_registry import NodeRegistry
from netaware_scheduler.services.pod_queue import PodQueue
from netaware_scheduler.services.pod_watcher import PodAdmissionWatcher
from netaware_scheduler.services.scheduler import SchedulerService
from netaware_scheduler.services.telemetry_service import TelemetryCollector

# 全局状态
_scheduler_service: Optional[SchedulerService] = None


def get_scheduler_service() -> Optional[SchedulerService]:
    """获取调度器服务实例"""
    return _scheduler_service


def build_scheduler(k8s_service: KubernetesService) -> SchedulerService:
    """
    组装调度器各组件

    Args:
        k8s_service: Kubernetes服务

    Returns:
        SchedulerService: 调度器服务
    """
    pod_queue = PodQueue(maxsize=settings.POD_QUEUE_SIZE)
    registry = NodeRegistry(k8s_service)
    return SchedulerService(
        pod_queue=pod_queue,
        registry=registry,
        collector=TelemetryCollector(),
        committer=PlacementCommitter(k8s_service, settings.SCHEDULER_NAME)
    )


@asynccontextmanager
async def manage_services(k8s_service: Optional[KubernetesService] = None):
    """统一管理调度器的生命周期

    启动顺序：节点注册表 -> Pod准入watch -> 调度循环，关闭时逆序。

    Raises:
        StartupFatalError: 无法建立集群访问凭证
    """
    global _scheduler_service

    k8s_service = k8s_service or KubernetesService()
    scheduler = build_scheduler(k8s_service)
    pod_watcher = PodAdmissionWatcher(k8s_service, scheduler.pod_queue, settings.SCHEDULER_NAME)

    await asyncio.to_thread(scheduler.registry.start)
    pod_watcher.start()
    loop_task = asyncio.create_task(scheduler.run())
    _scheduler_service = scheduler
    logger.info(f"调度器 {settings.SCHEDULER_NAME} 已启动")

    try:
        yield scheduler
    finally:
        scheduler.stop()
        await asyncio.to_thread(pod_watcher.stop)
        await asyncio.to_thread(scheduler.registry.stop)
        try:
            # 等待正在进行的决策结束
            await loop_task
        except Exception as e:
            logger.error(f"调度循环退出时出错: {str(e)}")
        finally:
            _scheduler_service = None
        logger.info("所有服务已关闭")
