"""节点绑定服务模块"""
import asyncio
from datetime import datetime, timezone
from typing import Optional

from kubernetes.client import ApiException
from loguru import logger
from urllib3.exceptions import HTTPError

from netaware_scheduler.core.config import settings
from netaware_scheduler.core.exceptions import BindError
from netaware_scheduler.schemas.bind import BindingRecord
from netaware_scheduler.schemas.common import PendingPod
from netaware_scheduler.services.k8s_service import KubernetesService


class PlacementCommitter:
    """绑定提交类

    将Pod绑定到选出的节点，成功后创建Scheduled事件。
    """

    def __init__(self, k8s_service: KubernetesService, scheduler_name: Optional[str] = None):
        self.k8s_service = k8s_service
        self.scheduler_name = scheduler_name or settings.SCHEDULER_NAME

    async def commit(self, pod: PendingPod, node_name: str) -> BindingRecord:
        """
        将Pod绑定到指定节点并创建Scheduled事件

        Args:
            pod: 待绑定的Pod
            node_name: 目标节点

        Returns:
            BindingRecord: 绑定结果

        Raises:
            BindError: 集群API拒绝绑定或无法连接，此时不会创建事件
        """
        logger.info(f"开始将Pod {pod.key} 绑定到节点 {node_name}")

        try:
            await asyncio.to_thread(self.k8s_service.bind_pod, pod, node_name)
        except ApiException as e:
            raise BindError(pod.key, node_name, f"status={e.status}, reason={e.reason}") from e
        except HTTPError as e:
            raise BindError(pod.key, node_name, f"连接集群API失败: {str(e)}") from e

        timestamp = datetime.now(timezone.utc)
        record = BindingRecord(
            pod=pod,
            node=node_name,
            message=f"Assigned pod {pod.name} to {node_name}",
            timestamp=timestamp
        )

        try:
            await asyncio.to_thread(
                self.k8s_service.create_scheduled_event,
                pod,
                record.message,
                timestamp,
                self.scheduler_name
            )
        except (ApiException, HTTPError) as e:
            # 绑定已经生效，事件创建失败只记录
            logger.error(f"Pod {pod.key} 已绑定，但创建Scheduled事件失败: {str(e)}")
            record.event_emitted = False

        logger.info(f"Pod {pod.key} 成功绑定到节点 {node_name}")
        return record
