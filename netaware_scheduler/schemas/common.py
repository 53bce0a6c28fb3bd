"""通用数据模型"""
from typing import Dict, Optional
from pydantic import BaseModel, Field


class PendingPod(BaseModel):
    """待调度的Pod

    由watch事件创建，未绑定节点且调度器标识与本调度器一致，
    在队列中只会被消费一次。
    """
    name: str = Field(..., description="Pod名称")
    namespace: str = Field("default", description="命名空间")
    uid: str = Field(..., description="Pod UID")
    scheduler_name: str = Field(..., description="Pod声明的调度器名称")

    model_config = {
        "frozen": True,
        "json_schema_extra": {
            "example": {
                "name": "iperf-client",
                "namespace": "default",
                "uid": "12345678-1234-1234-1234-123456789012",
                "scheduler_name": "netAwareScheduler"
            }
        }
    }

    @property
    def key(self) -> str:
        """namespace/name形式的标识"""
        return f"{self.namespace}/{self.name}"


class SchedulerNode(BaseModel):
    """节点信息"""
    name: str
    internal_ip: Optional[str] = Field(None, description="内部IP地址")
    hostname: Optional[str] = Field(None, description="主机名")
    labels: Dict[str, str] = Field(default_factory=dict)
    annotations: Dict[str, str] = Field(default_factory=dict)

    model_config = {
        "json_schema_extra": {
            "example": {
                "name": "raspiworker0",
                "internal_ip": "192.168.1.132",
                "hostname": "raspiworker0",
                "labels": {
                    "kubernetes.io/arch": "arm64"
                },
                "annotations": {}
            }
        }
    }


class NodeScore(BaseModel):
    """节点得分"""
    name: str
    score: int

    model_config = {
        "json_schema_extra": {
            "example": {
                "name": "raspiworker0",
                "score": 5
            }
        }
    }
