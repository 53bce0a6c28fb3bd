"""调度器服务模块

调度循环逐个处理队列中的Pod：取节点快照、采集遥测、打分、绑定。
"""
import asyncio
from collections import deque
from typing import Deque, List, Optional

from loguru import logger

from netaware_scheduler.core.config import settings
from netaware_scheduler.core.exceptions import BindError, NoEligibleNodeError
from netaware_scheduler.schemas.bind import DecisionState, SchedulingDecision
from netaware_scheduler.schemas.common import PendingPod
from netaware_scheduler.services.bind_service import PlacementCommitter
from netaware_scheduler.services.node_registry import NodeRegistry
from netaware_scheduler.services.pod_queue import PodQueue
from netaware_scheduler.services.priority_service import PriorityScorer
from netaware_scheduler.services.telemetry_service import TelemetryCollector


class SchedulerService:
    """调度器服务类"""

    def __init__(
        self,
        pod_queue: PodQueue,
        registry: NodeRegistry,
        collector: TelemetryCollector,
        committer: PlacementCommitter,
        scorer: Optional[PriorityScorer] = None,
        poll_interval: Optional[float] = None,
        history_size: Optional[int] = None
    ):
        """初始化调度器服务

        Args:
            pod_queue: 待调度Pod队列
            registry: 节点注册表
            collector: 遥测采集器
            committer: 绑定提交器
            scorer: 打分器
            poll_interval: 读取队列的轮询间隔（秒）
            history_size: 保留的调度结果条数
        """
        self.pod_queue = pod_queue
        self.registry = registry
        self.collector = collector
        self.committer = committer
        self.scorer = scorer or PriorityScorer()
        self.poll_interval = poll_interval if poll_interval is not None else settings.QUEUE_POLL_INTERVAL
        self._decisions: Deque[SchedulingDecision] = deque(
            maxlen=history_size or settings.DECISION_HISTORY_SIZE
        )
        self._stopping = asyncio.Event()
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    def recent_decisions(self) -> List[SchedulingDecision]:
        """最近的调度结果，按时间倒序"""
        return list(reversed(self._decisions))

    def _record(self, decision: SchedulingDecision) -> SchedulingDecision:
        self._decisions.append(decision)
        return decision

    async def schedule_one(self, pod: PendingPod) -> SchedulingDecision:
        """
        为单个Pod完成一次调度决策

        本次决策中的所有失败都在这里记录日志，不会向调用方抛出。
        没有可用节点或绑定失败时Pod保持Pending，不重试。

        Args:
            pod: 待调度的Pod

        Returns:
            SchedulingDecision: 调度结果
        """
        nodes = self.registry.snapshot()
        logger.info(f"开始调度Pod {pod.key}，已知节点 {len(nodes)} 个")

        snapshots = await self.collector.collect_all(nodes)
        table = self.scorer.score(snapshots)
        scores = table.to_node_scores()
        logger.info(f"Pod {pod.key} 节点得分: {table.scores}")

        try:
            node_name = self.scorer.select_host(table)
        except NoEligibleNodeError as e:
            logger.warning(f"Pod {pod.key} 没有可用节点，保持Pending: {str(e)}")
            return self._record(SchedulingDecision(
                pod=pod,
                state=DecisionState.UNSCHEDULABLE,
                reason=str(e),
                scores=scores
            ))

        try:
            record = await self.committer.commit(pod, node_name)
        except BindError as e:
            logger.error(str(e))
            return self._record(SchedulingDecision(
                pod=pod,
                state=DecisionState.FAILED,
                node=node_name,
                reason=e.reason,
                scores=scores
            ))

        return self._record(SchedulingDecision(
            pod=pod,
            state=DecisionState.BOUND,
            node=record.node,
            scores=scores,
            timestamp=record.timestamp
        ))

    async def run_once(self) -> Optional[SchedulingDecision]:
        """从队列取一个Pod调度，队列在轮询间隔内为空时返回None"""
        pod = await asyncio.to_thread(self.pod_queue.get, self.poll_interval)
        if pod is None:
            return None
        try:
            return await self.schedule_one(pod)
        finally:
            self.pod_queue.done(pod)

    async def run(self) -> None:
        """
        调度主循环

        只在两次决策之间检查停止信号，正在进行的决策会执行到结束。
        """
        self._running = True
        logger.info("调度循环已启动")
        try:
            while not self._stopping.is_set():
                try:
                    await self.run_once()
                except Exception as e:
                    logger.opt(exception=e).error(f"调度过程中发生未知错误: {str(e)}")
        finally:
            self._running = False
            logger.info("调度循环已停止")

    def stop(self) -> None:
        """请求停止调度循环"""
        self._stopping.set()
