"""调度器状态相关的数据模型"""
from typing import List
from pydantic import BaseModel, Field


class SchedulerStatus(BaseModel):
    """调度器运行状态"""
    scheduler_name: str = Field(..., description="调度器标识")
    running: bool = Field(..., description="调度循环是否在运行")
    queue_length: int = Field(..., description="队列中等待调度的Pod数")
    queue_capacity: int = Field(..., description="队列容量")
    known_nodes: List[str] = Field(default_factory=list, description="注册表中的节点")

    model_config = {
        "json_schema_extra": {
            "example": {
                "scheduler_name": "netAwareScheduler",
                "running": True,
                "queue_length": 0,
                "queue_capacity": 300,
                "known_nodes": ["raspiworker0", "raspiworker1", "ubuntu"]
            }
        }
    }
