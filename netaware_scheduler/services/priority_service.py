"""节点优先级打分服务

六项指标各自找出最优节点并加上该指标的固定权重，总分最高的节点胜出。

| 指标           | 方向     | 权重 |
|----------------|----------|------|
| CPU频率        | 越低越好 | 3    |
| 内存占用百分比 | 越低越好 | 2    |
| 发送包数       | 越低越好 | 1    |
| 接收包数       | 越低越好 | 1    |
| 网络带宽       | 越高越好 | 3    |
| 磁盘在途IO(非0) | 越低越好 | 1    |
"""
from typing import Callable, Dict, List, NamedTuple, Optional

from loguru import logger

from netaware_scheduler.core.exceptions import NoEligibleNodeError
from netaware_scheduler.schemas.priority import PriorityTable
from netaware_scheduler.schemas.telemetry import NodeMetricsSnapshot


class PriorityMetric(NamedTuple):
    """单项打分指标"""
    name: str
    value: Callable[[NodeMetricsSnapshot], float]
    weight: int
    higher_is_better: bool = False
    # 为False的读数不参与比较
    eligible: Callable[[float], bool] = lambda value: True


PRIORITY_METRICS: List[PriorityMetric] = [
    PriorityMetric("cpu_frequency_hertz", lambda s: s.cpu_frequency_hertz, 3),
    PriorityMetric("occupied_memory_percentage", lambda s: s.occupied_memory_percentage, 2),
    PriorityMetric("network_packets_sent", lambda s: s.network_packets_sent, 1),
    PriorityMetric("network_packets_received", lambda s: s.network_packets_received, 1),
    PriorityMetric("network_bandwidth", lambda s: s.network_bandwidth, 3, higher_is_better=True),
    PriorityMetric("disk_io_now", lambda s: s.disk_io_now, 1, eligible=lambda value: value != 0),
]

MAX_TOTAL_SCORE = sum(metric.weight for metric in PRIORITY_METRICS)


class PriorityScorer:
    """优先级打分器"""

    def __init__(self, metrics: Optional[List[PriorityMetric]] = None):
        self.metrics = metrics or PRIORITY_METRICS

    @staticmethod
    def _better(metric: PriorityMetric, value: float, best: float) -> bool:
        if metric.higher_is_better:
            return value > best
        return value < best

    def optimal_node(
        self,
        metric: PriorityMetric,
        snapshots: Dict[str, NodeMetricsSnapshot]
    ) -> Optional[str]:
        """
        找出单项指标的最优节点

        按节点名字典序遍历，初始值为None（任何真实读数都能取代它）。
        最优读数被多个节点同时持有时该指标无法区分节点，返回None不加分。
        因此所有节点上报完全相同的遥测时每项指标都不加分，
        全部节点为0分，Pod保持Unschedulable直到读数出现差异。

        Args:
            metric: 指标
            snapshots: 节点名 -> 遥测快照

        Returns:
            Optional[str]: 最优节点名
        """
        best_node = None
        best_value = None
        tied = False

        for node_name in sorted(snapshots):
            value = metric.value(snapshots[node_name])
            if not metric.eligible(value):
                continue
            if best_value is None or self._better(metric, value, best_value):
                best_node = node_name
                best_value = value
                tied = False
            elif value == best_value:
                tied = True

        if tied:
            logger.debug(f"指标 {metric.name} 最优值 {best_value} 由多个节点持有，不加分")
            return None
        return best_node

    def score(self, snapshots: Dict[str, NodeMetricsSnapshot]) -> PriorityTable:
        """
        计算所有节点的优先级

        Args:
            snapshots: 节点名 -> 遥测快照，只包含采集成功的节点

        Returns:
            PriorityTable: 优先级表
        """
        table = PriorityTable.for_nodes(snapshots)
        for metric in self.metrics:
            node_name = self.optimal_node(metric, snapshots)
            table.award(node_name, metric.weight)
            if node_name is not None:
                logger.debug(f"指标 {metric.name} 最优节点 {node_name}，加 {metric.weight} 分")
        return table

    @staticmethod
    def select_host(table: PriorityTable) -> str:
        """
        选出得分最高的节点，同分时取节点名字典序最小的

        Raises:
            NoEligibleNodeError: 没有节点或所有节点得分为0
        """
        best = table.best_host()
        if best is None:
            if not table.scores:
                raise NoEligibleNodeError("没有采集成功的节点")
            raise NoEligibleNodeError(
                f"{len(table.scores)} 个节点得分均为0，没有任何指标能区分出唯一的最优节点"
            )
        return best
