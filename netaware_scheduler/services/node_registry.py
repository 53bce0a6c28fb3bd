"""节点注册表服务模块"""
import threading
from typing import Dict, Iterator, List, Optional

from kubernetes import watch
from kubernetes.client import ApiException
from loguru import logger

from netaware_scheduler.core.exceptions import MalformedEventError
from netaware_scheduler.schemas.common import SchedulerNode
from netaware_scheduler.services.k8s_service import KubernetesService
from netaware_scheduler.services.watch_service import EventWatcher, event_object


class NodeRegistry(EventWatcher):
    """节点注册表

    由节点watch事件异步更新的只读缓存。写入时替换整个映射，
    读取方拿到的是某一时刻的快照，不需要加锁。
    """

    name = "node-watcher"

    def __init__(self, k8s_service: KubernetesService, **kwargs):
        super().__init__(**kwargs)
        self.k8s_service = k8s_service
        self._nodes: Dict[str, SchedulerNode] = {}
        self._write_lock = threading.Lock()

    def _open_stream(self, watcher: watch.Watch) -> Iterator[dict]:
        return self.k8s_service.stream_node_events(watcher, self._timeout_seconds)

    def start(self) -> None:
        """先全量同步一次再启动watch线程"""
        try:
            self.refresh()
        except ApiException as e:
            logger.warning(f"初始化节点列表失败，等待watch事件填充: {str(e)}")
        super().start()

    def refresh(self) -> None:
        """从集群全量拉取节点列表"""
        nodes = self.k8s_service.list_nodes()
        with self._write_lock:
            self._nodes = {node.name: node for node in nodes}
        logger.info(f"节点注册表已同步，共 {len(nodes)} 个节点")

    def handle_event(self, event: dict) -> bool:
        """
        处理节点watch事件

        Args:
            event: watch事件

        Returns:
            bool: 注册表是否发生变化
        """
        event_type, obj = event_object(event)
        try:
            node = self.k8s_service.to_scheduler_node(obj)
        except (AttributeError, TypeError, ValueError) as e:
            raise MalformedEventError(f"无法解析节点对象: {str(e)}") from e

        with self._write_lock:
            nodes = dict(self._nodes)
            if event_type in ("ADDED", "MODIFIED"):
                if event_type == "ADDED" and node.name not in nodes:
                    logger.info(f"发现节点 {node.name} ({node.internal_ip})")
                nodes[node.name] = node
            elif event_type == "DELETED":
                if nodes.pop(node.name, None) is None:
                    return False
                logger.info(f"节点 {node.name} 已移除")
            else:
                raise MalformedEventError(f"未知的节点事件类型: {event_type}")
            self._nodes = nodes
        return True

    def get(self, node_name: str) -> Optional[SchedulerNode]:
        return self._nodes.get(node_name)

    def snapshot(self) -> List[SchedulerNode]:
        """返回当前已知节点的快照，不过滤、不保证顺序"""
        return list(self._nodes.values())

    def __len__(self) -> int:
        return len(self._nodes)
