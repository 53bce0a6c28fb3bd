"""节点遥测相关的数据模型"""
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field


class NodeClass(str, Enum):
    """节点类型，决定采集哪块网卡和磁盘的指标"""
    CONTROL_PLANE = "control-plane"
    WORKER = "worker"


class NodeTelemetryProfile(BaseModel):
    """节点遥测采集配置

    由节点名称、标签和注解解析得到，不再依赖写死的节点表。
    """
    node_name: str = Field(..., description="节点名称")
    node_class: NodeClass = Field(NodeClass.WORKER, description="节点类型")
    metrics_url: str = Field(..., description="node-exporter指标地址")
    benchmark_path: Optional[str] = Field(None, description="iperf3结果文件路径")
    network_device: str = Field(..., description="采集收发包数的网卡")
    disk_device: str = Field(..., description="采集在途IO数的磁盘")


class NodeMetricsSnapshot(BaseModel):
    """单个节点的遥测快照

    每次调度决策重新构建，不缓存，打分后丢弃。
    """
    node_name: str
    cpu_frequency_hertz: float = Field(..., description="CPU核心平均频率(Hz)", ge=0)
    occupied_memory_percentage: float = Field(..., description="已占用内存百分比")
    network_packets_received: int = Field(..., description="网卡累计接收包数", ge=0)
    network_packets_sent: int = Field(..., description="网卡累计发送包数", ge=0)
    network_bandwidth: float = Field(0.0, description="最近一次带宽测试的接收速率(bit/s)", ge=0)
    disk_io_now: int = Field(0, description="磁盘在途IO数", ge=0)

    model_config = {
        "frozen": True,
        "json_schema_extra": {
            "example": {
                "node_name": "raspiworker0",
                "cpu_frequency_hertz": 1.2e9,
                "occupied_memory_percentage": 41.5,
                "network_packets_received": 1823411,
                "network_packets_sent": 1503222,
                "network_bandwidth": 9.1e7,
                "disk_io_now": 1
            }
        }
    }


class IperfSum(BaseModel):
    """iperf3统计段，只保留用到的字段"""
    seconds: float = 0.0
    bytes: int = 0
    bits_per_second: float = Field(..., ge=0)


class IperfStream(BaseModel):
    """iperf3单条流的统计结果"""
    sender: Optional[IperfSum] = None
    receiver: Optional[IperfSum] = None


class IperfEnd(BaseModel):
    """iperf3结束段"""
    streams: List[IperfStream] = Field(default_factory=list)
    sum_received: Optional[IperfSum] = None


class IperfReport(BaseModel):
    """iperf3 JSON结果文件"""
    title: Optional[str] = None
    end: IperfEnd

    model_config = {"extra": "ignore"}

    def receiver_bits_per_second(self) -> Optional[float]:
        """返回接收端带宽，优先使用第一条流的receiver统计"""
        for stream in self.end.streams:
            if stream.receiver is not None:
                return stream.receiver.bits_per_second
        if self.end.sum_received is not None:
            return self.end.sum_received.bits_per_second
        return None
