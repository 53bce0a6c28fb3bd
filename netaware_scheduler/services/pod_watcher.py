"""Pod准入watch服务"""
from typing import Iterator, Optional

from kubernetes import watch
from loguru import logger

from netaware_scheduler.core.config import settings
from netaware_scheduler.core.exceptions import MalformedEventError
from netaware_scheduler.schemas.common import PendingPod
from netaware_scheduler.services.k8s_service import KubernetesService
from netaware_scheduler.services.pod_queue import PodQueue
from netaware_scheduler.services.watch_service import EventWatcher, event_object


class PodAdmissionWatcher(EventWatcher):
    """Pod准入过滤

    只接收未分配节点且spec.schedulerName等于本调度器标识的Pod，
    放入与调度循环共享的有界队列。
    """

    name = "pod-watcher"

    def __init__(
        self,
        k8s_service: KubernetesService,
        pod_queue: PodQueue,
        scheduler_name: Optional[str] = None,
        **kwargs
    ):
        super().__init__(**kwargs)
        self.k8s_service = k8s_service
        self.pod_queue = pod_queue
        self.scheduler_name = scheduler_name or settings.SCHEDULER_NAME

    def _open_stream(self, watcher: watch.Watch) -> Iterator[dict]:
        return self.k8s_service.stream_pod_events(watcher, self._timeout_seconds)

    def admit(self, pod) -> Optional[PendingPod]:
        """
        判断Pod是否归本调度器负责

        Args:
            pod: V1Pod对象

        Returns:
            Optional[PendingPod]: 需要调度时返回PendingPod，否则返回None

        Raises:
            MalformedEventError: Pod对象缺少metadata或spec
        """
        metadata = getattr(pod, "metadata", None)
        spec = getattr(pod, "spec", None)
        if metadata is None or spec is None or not metadata.name or not metadata.uid:
            raise MalformedEventError("Pod对象缺少metadata、spec或uid")

        if spec.node_name:
            return None
        if spec.scheduler_name != self.scheduler_name:
            return None

        return PendingPod(
            name=metadata.name,
            namespace=metadata.namespace or "default",
            uid=metadata.uid,
            scheduler_name=spec.scheduler_name
        )

    def handle_event(self, event: dict) -> bool:
        """
        处理Pod watch事件

        Args:
            event: watch事件

        Returns:
            bool: Pod是否被放入队列
        """
        event_type, obj = event_object(event)
        if event_type not in ("ADDED", "MODIFIED"):
            return False

        pending = self.admit(obj)
        if pending is None:
            return False

        # 队列满时阻塞，由调度循环的消费速度形成背压
        accepted = self.pod_queue.put(pending)
        if accepted:
            logger.info(f"Pod {pending.key} 等待调度")
        return accepted
