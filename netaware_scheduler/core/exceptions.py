"""调度器异常定义

除StartupFatalError外，其余异常都在产生处被捕获并记录日志，不会中断调度循环。
"""
from typing import Optional


class SchedulerError(Exception):
    """调度器异常基类"""


class MalformedEventError(SchedulerError):
    """无法识别的watch事件，直接丢弃"""


class TelemetryUnreachableError(SchedulerError):
    """遥测数据获取失败（HTTP请求或结果文件读取），该节点不参与打分"""

    def __init__(self, node_name: str, reason: str):
        self.node_name = node_name
        self.reason = reason
        super().__init__(f"节点 {node_name} 遥测数据不可用: {reason}")


class TelemetryParseError(SchedulerError):
    """遥测字段解析失败"""

    def __init__(self, node_name: str, field: str, reason: Optional[str] = None):
        self.node_name = node_name
        self.field = field
        self.reason = reason
        message = f"节点 {node_name} 字段 {field} 解析失败"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class NoEligibleNodeError(SchedulerError):
    """没有可用于调度的节点"""


class BindError(SchedulerError):
    """集群API拒绝绑定请求或无法连接"""

    def __init__(self, pod_name: str, node_name: str, reason: str):
        self.pod_name = pod_name
        self.node_name = node_name
        self.reason = reason
        super().__init__(f"绑定Pod {pod_name} 到节点 {node_name} 失败: {reason}")


class StartupFatalError(SchedulerError):
    """无法建立集群访问凭证，进程退出"""


__all__ = [
    'SchedulerError',
    'MalformedEventError',
    'TelemetryUnreachableError',
    'TelemetryParseError',
    'NoEligibleNodeError',
    'BindError',
    'StartupFatalError'
]
