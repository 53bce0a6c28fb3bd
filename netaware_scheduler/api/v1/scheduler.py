"""调度器API路由模块"""
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, status

from netaware_scheduler.core.app_state import get_scheduler_service
from netaware_scheduler.core.config import settings
from netaware_scheduler.schemas.bind import SchedulingDecision
from netaware_scheduler.schemas.common import SchedulerNode
from netaware_scheduler.schemas.status import SchedulerStatus
from netaware_scheduler.services.scheduler import SchedulerService

router = APIRouter(prefix="/scheduler", tags=["scheduler"])


def require_scheduler() -> SchedulerService:
    """获取调度器实例，未启动时返回503"""
    scheduler = get_scheduler_service()
    if scheduler is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="调度器未启动"
        )
    return scheduler


@router.get("/status", response_model=SchedulerStatus, summary="调度器状态")
async def get_status(scheduler: SchedulerService = Depends(require_scheduler)) -> SchedulerStatus:
    """返回调度循环、队列和节点注册表的当前状态"""
    return SchedulerStatus(
        scheduler_name=settings.SCHEDULER_NAME,
        running=scheduler.running,
        queue_length=scheduler.pod_queue.qsize(),
        queue_capacity=scheduler.pod_queue.maxsize,
        known_nodes=sorted(node.name for node in scheduler.registry.snapshot())
    )


@router.get("/nodes", response_model=List[SchedulerNode], summary="已知节点")
async def list_nodes(scheduler: SchedulerService = Depends(require_scheduler)) -> List[SchedulerNode]:
    """返回节点注册表快照，按节点名排序"""
    return sorted(scheduler.registry.snapshot(), key=lambda node: node.name)


@router.get("/decisions", response_model=List[SchedulingDecision], summary="最近的调度结果")
async def list_decisions(
    limit: int = Query(20, ge=1, le=1000, description="返回条数"),
    scheduler: SchedulerService = Depends(require_scheduler)
) -> List[SchedulingDecision]:
    """
    返回最近的调度结果，最新的在前

    没有可用节点或绑定失败的Pod会以Unschedulable/Failed状态出现在这里
    """
    return scheduler.recent_decisions()[:limit]
