"""Kubernetes服务模块"""
from datetime import datetime
from typing import Iterator, List, Optional

from kubernetes import watch
from kubernetes.client import (
    CoreV1Api,
    CoreV1Event,
    V1Binding,
    V1EventSource,
    V1ObjectMeta,
    V1ObjectReference,
)
from loguru import logger

from netaware_scheduler.core.k8s_config import get_core_v1_client
from netaware_scheduler.schemas.common import PendingPod, SchedulerNode


class KubernetesService:
    """Kubernetes服务类

    只封装调度器用到的最小接口：watch Pod、watch节点、绑定、创建事件。
    """

    def __init__(self, core_v1: Optional[CoreV1Api] = None):
        """初始化Kubernetes客户端

        Args:
            core_v1: 已创建的客户端，未提供时按配置加载集群凭证
        """
        self.core_v1 = core_v1 or get_core_v1_client()

    @staticmethod
    def to_scheduler_node(node) -> SchedulerNode:
        """
        将V1Node转换为SchedulerNode

        Args:
            node: kubernetes返回的V1Node对象

        Returns:
            SchedulerNode: 节点信息
        """
        node_info = SchedulerNode(
            name=node.metadata.name,
            hostname=node.metadata.name,
            labels=node.metadata.labels or {},
            annotations=node.metadata.annotations or {},
        )

        addresses = node.status.addresses if node.status is not None else None
        for address in addresses or []:
            if address.type == "InternalIP":
                node_info.internal_ip = address.address
            elif address.type == "Hostname":
                node_info.hostname = address.address

        return node_info

    def list_nodes(self) -> List[SchedulerNode]:
        """
        获取所有节点信息

        Returns:
            List[SchedulerNode]: 节点列表
        """
        nodes = self.core_v1.list_node()
        return [self.to_scheduler_node(node) for node in nodes.items]

    def stream_pod_events(self, watcher: watch.Watch, timeout_seconds: int) -> Iterator[dict]:
        """
        watch所有命名空间中尚未分配节点的Pod

        Args:
            watcher: 用于停止stream的Watch对象
            timeout_seconds: 服务端超时时间

        Returns:
            Iterator[dict]: watch事件，形如 {"type": "ADDED", "object": V1Pod}
        """
        return watcher.stream(
            self.core_v1.list_pod_for_all_namespaces,
            field_selector="spec.nodeName=",
            timeout_seconds=timeout_seconds
        )

    def stream_node_events(self, watcher: watch.Watch, timeout_seconds: int) -> Iterator[dict]:
        """
        watch集群节点

        Args:
            watcher: 用于停止stream的Watch对象
            timeout_seconds: 服务端超时时间

        Returns:
            Iterator[dict]: watch事件，形如 {"type": "ADDED", "object": V1Node}
        """
        return watcher.stream(self.core_v1.list_node, timeout_seconds=timeout_seconds)

    def bind_pod(self, pod: PendingPod, node_name: str) -> None:
        """
        将Pod绑定到指定节点

        Args:
            pod: 待绑定的Pod
            node_name: 目标节点

        Raises:
            ApiException: 集群API拒绝绑定时
        """
        target = V1ObjectReference(
            api_version="v1",
            kind="Node",
            name=node_name
        )

        binding = V1Binding(
            metadata=V1ObjectMeta(
                name=pod.name,
                namespace=pod.namespace,
                uid=pod.uid
            ),
            target=target
        )

        # 返回体反序列化时target为空会抛ValueError，这里不解析返回体，
        # 直接把连接归还给连接池
        response = self.core_v1.create_namespaced_binding(
            namespace=pod.namespace,
            body=binding,
            _preload_content=False
        )
        response.release_conn()

    def create_scheduled_event(
        self,
        pod: PendingPod,
        message: str,
        timestamp: datetime,
        component: str
    ) -> None:
        """
        为Pod创建Scheduled事件

        Args:
            pod: 已绑定的Pod
            message: 事件内容
            timestamp: 事件时间
            component: 事件来源组件，即调度器标识

        Raises:
            ApiException: 事件创建失败时
        """
        event = CoreV1Event(
            count=1,
            message=message,
            reason="Scheduled",
            first_timestamp=timestamp,
            last_timestamp=timestamp,
            type="Normal",
            source=V1EventSource(component=component),
            involved_object=V1ObjectReference(
                kind="Pod",
                name=pod.name,
                namespace=pod.namespace,
                uid=pod.uid
            ),
            metadata=V1ObjectMeta(generate_name=f"{pod.name}-")
        )
        self.core_v1.create_namespaced_event(namespace=pod.namespace, body=event)
        logger.debug(f"已为Pod {pod.key} 创建Scheduled事件")
