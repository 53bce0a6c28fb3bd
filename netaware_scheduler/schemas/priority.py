"""优先级相关的数据模型"""
from typing import Dict, List, Optional
from pydantic import BaseModel, Field

from netaware_scheduler.schemas.common import NodeScore


class PriorityTable(BaseModel):
    """节点优先级表

    所有节点初始得分为0，按指标权重累加，用于一次决策后丢弃。
    """
    scores: Dict[str, int] = Field(default_factory=dict, description="节点名 -> 得分")

    @classmethod
    def for_nodes(cls, node_names) -> "PriorityTable":
        """以0分初始化给定节点"""
        return cls(scores={name: 0 for name in node_names})

    def award(self, node_name: Optional[str], weight: int) -> None:
        """为节点加分，node_name为None时不加分"""
        if node_name is None:
            return
        self.scores[node_name] += weight

    def total(self) -> int:
        return sum(self.scores.values())

    def best_host(self) -> Optional[str]:
        """
        返回得分最高的节点

        得分相同时按节点名字典序取第一个；所有节点都是0分时返回None
        """
        best_name = None
        best_score = 0
        for name in sorted(self.scores):
            if self.scores[name] > best_score:
                best_name = name
                best_score = self.scores[name]
        return best_name

    def to_node_scores(self) -> List[NodeScore]:
        """按得分降序（同分按名称）转换为NodeScore列表"""
        ordered = sorted(self.scores.items(), key=lambda item: (-item[1], item[0]))
        return [NodeScore(name=name, score=score) for name, score in ordered]
