"""节点绑定模型模块"""
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field

from netaware_scheduler.schemas.common import NodeScore, PendingPod


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BindingRecord(BaseModel):
    """
    绑定结果记录

    已提交的(Pod, 节点)决策以及对应的Scheduled事件信息
    """
    pod: PendingPod = Field(..., description="被调度的Pod")
    node: str = Field(..., description="目标节点")
    message: str = Field(..., description="事件内容")
    timestamp: datetime = Field(default_factory=_utcnow, description="绑定时间(UTC)")
    event_emitted: bool = Field(True, description="Scheduled事件是否创建成功")


class DecisionState(str, Enum):
    """单个Pod的调度结果状态"""
    BOUND = "Bound"
    UNSCHEDULABLE = "Unschedulable"
    FAILED = "Failed"


class SchedulingDecision(BaseModel):
    """
    调度决策记录

    保存在调度器的有限历史中，供状态接口查询
    """
    pod: PendingPod
    state: DecisionState
    node: Optional[str] = None
    reason: Optional[str] = None
    scores: List[NodeScore] = Field(default_factory=list)
    timestamp: datetime = Field(default_factory=_utcnow)

    model_config = {
        "json_schema_extra": {
            "example": {
                "pod": {
                    "name": "iperf-client",
                    "namespace": "default",
                    "uid": "12345678-1234-1234-1234-123456789012",
                    "scheduler_name": "netAwareScheduler"
                },
                "state": "Bound",
                "node": "raspiworker0",
                "reason": None,
                "scores": [{"name": "raspiworker0", "score": 8}],
                "timestamp": "2024-03-14T10:00:00Z"
            }
        }
    }
