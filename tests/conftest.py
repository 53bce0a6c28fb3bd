"""测试公共fixture"""
from typing import Dict, List, Optional
from unittest.mock import MagicMock

import pytest
from kubernetes.client import (
    V1Container,
    V1Node,
    V1NodeAddress,
    V1NodeStatus,
    V1ObjectMeta,
    V1Pod,
    V1PodSpec,
)

from netaware_scheduler.core.config import Settings
from netaware_scheduler.schemas.common import PendingPod, SchedulerNode
from netaware_scheduler.schemas.telemetry import NodeMetricsSnapshot
from netaware_scheduler.services.k8s_service import KubernetesService
from netaware_scheduler.services.telemetry_service import TelemetryCollector

SCHEDULER_NAME = "netAwareScheduler"


class FakeCollector(TelemetryCollector):
    """返回预置快照的采集器，记录每次收到的节点列表"""

    def __init__(self, snapshots: Dict[str, NodeMetricsSnapshot]):
        super().__init__(Settings())
        self.snapshots = snapshots
        self.calls: List[List[str]] = []

    async def collect_all(self, nodes):
        names = [node.name for node in nodes]
        self.calls.append(names)
        return {name: self.snapshots[name] for name in names if name in self.snapshots}


@pytest.fixture
def fake_collector():
    return FakeCollector


@pytest.fixture
def core_v1():
    """模拟的CoreV1Api"""
    return MagicMock()


@pytest.fixture
def k8s_service(core_v1):
    return KubernetesService(core_v1=core_v1)


@pytest.fixture
def pending_pod():
    return PendingPod(
        name="iperf-client",
        namespace="default",
        uid="uid-iperf-client",
        scheduler_name=SCHEDULER_NAME
    )


@pytest.fixture
def make_v1_pod():
    def _make(
        name: str = "iperf-client",
        namespace: str = "default",
        uid: Optional[str] = None,
        scheduler_name: str = SCHEDULER_NAME,
        node_name: Optional[str] = None
    ) -> V1Pod:
        return V1Pod(
            metadata=V1ObjectMeta(name=name, namespace=namespace, uid=uid or f"uid-{name}"),
            spec=V1PodSpec(
                containers=[V1Container(name="main", image="networkstatic/iperf3")],
                scheduler_name=scheduler_name,
                node_name=node_name
            )
        )
    return _make


@pytest.fixture
def make_v1_node():
    def _make(
        name: str,
        internal_ip: Optional[str] = None,
        labels: Optional[Dict[str, str]] = None,
        annotations: Optional[Dict[str, str]] = None
    ) -> V1Node:
        addresses = [V1NodeAddress(type="Hostname", address=name)]
        if internal_ip:
            addresses.insert(0, V1NodeAddress(type="InternalIP", address=internal_ip))
        return V1Node(
            metadata=V1ObjectMeta(name=name, labels=labels, annotations=annotations),
            status=V1NodeStatus(addresses=addresses)
        )
    return _make


@pytest.fixture
def make_node():
    def _make(name: str, internal_ip: Optional[str] = None, **kwargs) -> SchedulerNode:
        return SchedulerNode(name=name, internal_ip=internal_ip, hostname=name, **kwargs)
    return _make


@pytest.fixture
def make_snapshot():
    """默认各项指标相同的快照，通过关键字参数覆盖"""
    def _make(node_name: str, **overrides) -> NodeMetricsSnapshot:
        values = {
            "cpu_frequency_hertz": 1.0e9,
            "occupied_memory_percentage": 50.0,
            "network_packets_received": 1000,
            "network_packets_sent": 1000,
            "network_bandwidth": 9.0e7,
            "disk_io_now": 1,
        }
        values.update(overrides)
        return NodeMetricsSnapshot(node_name=node_name, **values)
    return _make


@pytest.fixture
def make_exposition():
    """生成node-exporter格式的指标文本"""
    def _make(
        cpu_frequencies=(1.2e9, 1.2e9, 1.2e9, 1.2e9),
        mem_total: Optional[float] = 4.0e9,
        mem_available: Optional[float] = 3.0e9,
        network_device: str = "eth0",
        packets_sent: Optional[int] = 1500,
        packets_received: Optional[int] = 2500,
        disk_device: str = "mmcblk0",
        disk_io_now: Optional[int] = 2
    ) -> str:
        lines = [
            "# HELP node_cpu_scaling_frequency_hertz Current scaled CPU thread frequency in hertz.",
            "# TYPE node_cpu_scaling_frequency_hertz gauge",
        ]
        for core, value in enumerate(cpu_frequencies):
            if value is not None:
                lines.append(f'node_cpu_scaling_frequency_hertz{{cpu="{core}"}} {value:e}')
        lines += [
            "# HELP node_cpu_scaling_frequency_max_hertz Maximum scaled CPU thread frequency in hertz.",
            "# TYPE node_cpu_scaling_frequency_max_hertz gauge",
            'node_cpu_scaling_frequency_max_hertz{cpu="0"} 1.5e+09',
            "# HELP node_disk_io_now The number of I/Os currently in progress.",
            "# TYPE node_disk_io_now gauge",
        ]
        if disk_io_now is not None:
            lines.append(f'node_disk_io_now{{device="{disk_device}"}} {disk_io_now}')
        lines.append('node_disk_io_now{device="mmcblk0p1"} 7')
        if mem_available is not None:
            lines += [
                "# HELP node_memory_MemAvailable_bytes Memory information field MemAvailable_bytes.",
                "# TYPE node_memory_MemAvailable_bytes gauge",
                f"node_memory_MemAvailable_bytes {mem_available:e}",
            ]
        lines += [
            "# HELP node_memory_MemFree_bytes Memory information field MemFree_bytes.",
            "# TYPE node_memory_MemFree_bytes gauge",
            "node_memory_MemFree_bytes 1.0e+09",
        ]
        if mem_total is not None:
            lines += [
                "# HELP node_memory_MemTotal_bytes Memory information field MemTotal_bytes.",
                "# TYPE node_memory_MemTotal_bytes gauge",
                f"node_memory_MemTotal_bytes {mem_total:e}",
            ]
        lines += [
            "# HELP node_network_receive_packets_total Network device statistic receive_packets.",
            "# TYPE node_network_receive_packets_total counter",
        ]
        if packets_received is not None:
            lines.append(f'node_network_receive_packets_total{{device="{network_device}"}} {packets_received}')
        lines += [
            'node_network_receive_packets_total{device="flannel.1"} 99',
            "# HELP node_network_transmit_packets_total Network device statistic transmit_packets.",
            "# TYPE node_network_transmit_packets_total counter",
        ]
        if packets_sent is not None:
            lines.append(f'node_network_transmit_packets_total{{device="{network_device}"}} {packets_sent}')
        lines.append('node_network_transmit_packets_total{device="flannel.1"} 98')
        return "\n".join(lines) + "\n"
    return _make


@pytest.fixture
def iperf_document():
    """iperf3 JSON结果文件内容"""
    def _make(receiver_bps: float = 9.4e7, sender_bps: float = 9.5e7) -> dict:
        return {
            "start": {"version": "iperf 3.9", "connected": []},
            "intervals": [],
            "end": {
                "streams": [
                    {
                        "sender": {"start": 0, "end": 10, "seconds": 10, "bytes": 118750000,
                                   "bits_per_second": sender_bps, "retransmits": 0},
                        "receiver": {"start": 0, "end": 10.04, "seconds": 10.04, "bytes": 117964800,
                                     "bits_per_second": receiver_bps}
                    }
                ],
                "sum_sent": {"start": 0, "end": 10, "seconds": 10, "bytes": 118750000,
                             "bits_per_second": sender_bps},
                "sum_received": {"start": 0, "end": 10.04, "seconds": 10.04, "bytes": 117964800,
                                 "bits_per_second": receiver_bps},
                "cpu_utilization_percent": {"host_total": 3.1, "host_user": 0.4, "host_system": 2.7,
                                            "remote_total": 7.2, "remote_user": 0.8,
                                            "remote_system": 6.4}
            }
        }
    return _make
