"""
业务服务模块
"""

__all__ = [
    'KubernetesService',
    'EventWatcher',
    'NodeRegistry',
    'PodQueue',
    'PodAdmissionWatcher',
    'TelemetryCollector',
    'PriorityScorer',
    'PlacementCommitter',
    'SchedulerService'
]
