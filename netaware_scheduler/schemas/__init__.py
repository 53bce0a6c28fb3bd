"""
数据模型模块
"""
from netaware_scheduler.schemas.common import PendingPod, SchedulerNode, NodeScore
from netaware_scheduler.schemas.telemetry import (
    NodeClass, NodeTelemetryProfile, NodeMetricsSnapshot, IperfReport
)
from netaware_scheduler.schemas.priority import PriorityTable
from netaware_scheduler.schemas.bind import BindingRecord, DecisionState, SchedulingDecision
from netaware_scheduler.schemas.status import SchedulerStatus

__all__ = [
    # Common models
    'PendingPod', 'SchedulerNode', 'NodeScore',

    # Telemetry models
    'NodeClass', 'NodeTelemetryProfile', 'NodeMetricsSnapshot', 'IperfReport',

    # Priority models
    'PriorityTable',

    # Bind models
    'BindingRecord', 'DecisionState', 'SchedulingDecision',

    # Status models
    'SchedulerStatus',
]
