"""节点遥测采集服务

对每个节点拉取node-exporter指标并读取iperf3带宽测试结果，生成遥测快照。
所有节点并发采集，并发数和单节点截止时间由配置限制，
单个节点不可达不会拖住整个调度决策。
"""
import asyncio
import json
import math
import os
from typing import Dict, Iterable, Optional

import aiohttp
from loguru import logger
from pydantic import ValidationError

from netaware_scheduler.core.config import Settings, settings as default_settings
from netaware_scheduler.core.exceptions import TelemetryParseError, TelemetryUnreachableError
from netaware_scheduler.schemas.common import SchedulerNode
from netaware_scheduler.schemas.telemetry import (
    IperfReport,
    NodeClass,
    NodeMetricsSnapshot,
    NodeTelemetryProfile,
)
from netaware_scheduler.utils.exposition_parser import ExpositionMetrics, parse_exposition

CONTROL_PLANE_LABELS = (
    "node-role.kubernetes.io/control-plane",
    "node-role.kubernetes.io/master",
)

# 节点注解，优先级高于按节点类型推导的默认值
METRICS_URL_ANNOTATION = "netaware.io/metrics-url"
BENCHMARK_FILE_ANNOTATION = "netaware.io/benchmark-file"
NETWORK_DEVICE_ANNOTATION = "netaware.io/network-device"
DISK_DEVICE_ANNOTATION = "netaware.io/disk-device"

CPU_FREQUENCY_METRIC = "node_cpu_scaling_frequency_hertz"
MEMORY_TOTAL_METRIC = "node_memory_MemTotal_bytes"
MEMORY_AVAILABLE_METRIC = "node_memory_MemAvailable_bytes"
PACKETS_SENT_METRIC = "node_network_transmit_packets_total"
PACKETS_RECEIVED_METRIC = "node_network_receive_packets_total"
DISK_IO_NOW_METRIC = "node_disk_io_now"


def _is_number(value: Optional[float]) -> bool:
    return value is not None and not math.isnan(value) and not math.isinf(value)


class TelemetryCollector:
    """遥测采集器"""

    def __init__(self, config: Optional[Settings] = None):
        """初始化遥测采集器

        Args:
            config: 配置，默认使用全局settings
        """
        self.config = config or default_settings
        self.timeout = self.config.TELEMETRY_TIMEOUT
        self.concurrency = max(1, self.config.TELEMETRY_CONCURRENCY)

    def resolve_profile(self, node: SchedulerNode) -> NodeTelemetryProfile:
        """
        解析节点的采集配置

        节点名在CONTROL_PLANE_NODES中或带有控制面角色标签时视为控制面节点，
        控制面节点和工作节点使用不同的网卡和磁盘名称。节点注解可覆盖所有默认值。

        Args:
            node: 节点信息

        Returns:
            NodeTelemetryProfile: 采集配置
        """
        annotations = node.annotations or {}
        is_control_plane = (
            node.name in self.config.CONTROL_PLANE_NODES
            or any(label in node.labels for label in CONTROL_PLANE_LABELS)
        )

        if is_control_plane:
            node_class = NodeClass.CONTROL_PLANE
            network_device = self.config.MASTER_NETWORK_DEVICE
            disk_device = self.config.MASTER_DISK_DEVICE
        else:
            node_class = NodeClass.WORKER
            network_device = self.config.WORKER_NETWORK_DEVICE
            disk_device = self.config.WORKER_DISK_DEVICE

        metrics_url = annotations.get(METRICS_URL_ANNOTATION)
        if not metrics_url:
            host = node.internal_ip or node.hostname or node.name
            metrics_url = f"http://{host}:{self.config.METRICS_PORT}{self.config.METRICS_PATH}"

        benchmark_path = annotations.get(BENCHMARK_FILE_ANNOTATION)
        if not benchmark_path and node.internal_ip:
            benchmark_path = os.path.join(self.config.BENCHMARK_DIR, f"{node.internal_ip}.json")

        return NodeTelemetryProfile(
            node_name=node.name,
            node_class=node_class,
            metrics_url=metrics_url,
            benchmark_path=benchmark_path,
            network_device=annotations.get(NETWORK_DEVICE_ANNOTATION, network_device),
            disk_device=annotations.get(DISK_DEVICE_ANNOTATION, disk_device)
        )

    async def fetch_metrics_text(
        self,
        session: aiohttp.ClientSession,
        profile: NodeTelemetryProfile
    ) -> str:
        """
        拉取节点的指标文本

        Raises:
            TelemetryUnreachableError: 连接失败、超时、返回非2xx状态码或内容无法解码
        """
        try:
            async with session.get(profile.metrics_url) as response:
                if not 200 <= response.status < 300:
                    raise TelemetryUnreachableError(
                        profile.node_name,
                        f"{profile.metrics_url} 返回状态码 {response.status}"
                    )
                return await response.text()
        except aiohttp.ClientError as e:
            raise TelemetryUnreachableError(profile.node_name, f"请求 {profile.metrics_url} 失败: {str(e)}") from e
        except UnicodeDecodeError as e:
            raise TelemetryUnreachableError(profile.node_name, f"{profile.metrics_url} 返回的内容无法解码: {str(e)}") from e
        except asyncio.TimeoutError as e:
            raise TelemetryUnreachableError(profile.node_name, f"请求 {profile.metrics_url} 超时") from e

    def load_benchmark(self, profile: NodeTelemetryProfile) -> float:
        """
        读取iperf3结果文件中最近一次测试的接收端带宽

        文件可以是单次测试的JSON对象，也可以是多次测试组成的数组（取最后一次）。

        Returns:
            float: 接收端带宽(bit/s)

        Raises:
            TelemetryUnreachableError: 文件不存在或无法读取（BENCHMARK_REQUIRED为False时返回0.0）
            TelemetryParseError: 文件内容无法解析
        """
        path = profile.benchmark_path
        try:
            if not path:
                raise FileNotFoundError("未配置带宽测试结果文件")
            with open(path, "r", encoding="utf-8") as benchmark_file:
                document = json.load(benchmark_file)
        except OSError as e:
            if not self.config.BENCHMARK_REQUIRED:
                logger.warning(f"节点 {profile.node_name} 没有带宽测试结果，带宽按0处理: {str(e)}")
                return 0.0
            raise TelemetryUnreachableError(profile.node_name, f"读取带宽测试结果失败: {str(e)}") from e
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise TelemetryParseError(profile.node_name, "network_bandwidth", f"JSON格式错误: {str(e)}") from e

        if isinstance(document, list):
            if not document:
                raise TelemetryParseError(profile.node_name, "network_bandwidth", "带宽测试结果为空")
            document = document[-1]

        try:
            report = IperfReport.model_validate(document)
        except ValidationError as e:
            raise TelemetryParseError(profile.node_name, "network_bandwidth", str(e)) from e

        bits_per_second = report.receiver_bits_per_second()
        if bits_per_second is None:
            raise TelemetryParseError(profile.node_name, "network_bandwidth", "缺少receiver统计")
        return bits_per_second

    def _average_cpu_frequency(self, profile: NodeTelemetryProfile, metrics: ExpositionMetrics) -> float:
        samples = []
        for core in range(self.config.CPU_CORE_SAMPLES):
            value = metrics.get(CPU_FREQUENCY_METRIC, cpu=str(core))
            if not _is_number(value) or value < 0:
                logger.warning(f"节点 {profile.node_name} 缺少CPU{core}频率样本，使用其余样本计算平均值")
                continue
            samples.append(value)

        if not samples:
            raise TelemetryParseError(profile.node_name, "cpu_frequency_hertz", "没有可用的CPU频率样本")
        return sum(samples) / len(samples)

    def _occupied_memory_percentage(self, profile: NodeTelemetryProfile, metrics: ExpositionMetrics) -> float:
        total = metrics.get(MEMORY_TOTAL_METRIC)
        available = metrics.get(MEMORY_AVAILABLE_METRIC)
        if not _is_number(total) or not _is_number(available) or total <= 0 or available < 0:
            raise TelemetryParseError(
                profile.node_name,
                "occupied_memory_percentage",
                f"MemTotal={total}, MemAvailable={available}"
            )
        return 100 - (available * 100) / total

    def _counter(
        self,
        profile: NodeTelemetryProfile,
        metrics: ExpositionMetrics,
        metric_name: str,
        field: str,
        **labels: str
    ) -> int:
        value = metrics.get(metric_name, **labels)
        if not _is_number(value) or value < 0:
            raise TelemetryParseError(profile.node_name, field, f"{metric_name}{labels} 不存在或非法")
        return int(value)

    def build_snapshot(
        self,
        profile: NodeTelemetryProfile,
        metrics: ExpositionMetrics,
        network_bandwidth: float
    ) -> NodeMetricsSnapshot:
        """
        由解析后的指标构建遥测快照

        CPU样本缺失时用其余样本平均；内存和网卡收发包数缺失时整个快照作废；
        磁盘在途IO缺失时按0处理（打分时0值不参与该项比较）。
        负数的CPU频率样本视为缺失。

        Raises:
            TelemetryParseError: 必需字段缺失或取值非法
        """
        disk_io_now = metrics.get(DISK_IO_NOW_METRIC, device=profile.disk_device)
        if not _is_number(disk_io_now) or disk_io_now < 0:
            logger.warning(f"节点 {profile.node_name} 缺少磁盘 {profile.disk_device} 的在途IO数，按0处理")
            disk_io_now = 0

        fields = dict(
            cpu_frequency_hertz=self._average_cpu_frequency(profile, metrics),
            occupied_memory_percentage=self._occupied_memory_percentage(profile, metrics),
            network_packets_received=self._counter(
                profile, metrics, PACKETS_RECEIVED_METRIC, "network_packets_received",
                device=profile.network_device
            ),
            network_packets_sent=self._counter(
                profile, metrics, PACKETS_SENT_METRIC, "network_packets_sent",
                device=profile.network_device
            ),
            network_bandwidth=network_bandwidth,
            disk_io_now=int(disk_io_now)
        )

        try:
            return NodeMetricsSnapshot(node_name=profile.node_name, **fields)
        except ValidationError as e:
            raise TelemetryParseError(profile.node_name, "snapshot", str(e)) from e

    def _open_session(self) -> aiohttp.ClientSession:
        return aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.timeout))

    async def collect(
        self,
        node: SchedulerNode,
        session: Optional[aiohttp.ClientSession] = None
    ) -> NodeMetricsSnapshot:
        """
        采集单个节点的遥测快照

        Args:
            node: 节点信息
            session: 共享的HTTP会话，未提供时临时创建

        Returns:
            NodeMetricsSnapshot: 遥测快照

        Raises:
            TelemetryUnreachableError: 指标接口或结果文件不可用
            TelemetryParseError: 必需字段解析失败
        """
        if session is None:
            async with self._open_session() as own_session:
                return await self.collect(node, own_session)

        profile = self.resolve_profile(node)
        text = await self.fetch_metrics_text(session, profile)

        metrics = parse_exposition(text)
        if len(metrics) == 0:
            raise TelemetryParseError(node.name, "exposition", f"{profile.metrics_url} 没有可解析的指标样本")

        network_bandwidth = await asyncio.to_thread(self.load_benchmark, profile)
        snapshot = self.build_snapshot(profile, metrics, network_bandwidth)
        logger.debug(f"节点 {node.name} 遥测快照: {snapshot.model_dump()}")
        return snapshot

    async def collect_all(self, nodes: Iterable[SchedulerNode]) -> Dict[str, NodeMetricsSnapshot]:
        """
        并发采集所有节点的遥测快照

        采集失败的节点记录日志后排除，不出现在返回结果中。

        Args:
            nodes: 节点列表

        Returns:
            Dict[str, NodeMetricsSnapshot]: 节点名 -> 遥测快照
        """
        nodes = list(nodes)
        if not nodes:
            return {}

        semaphore = asyncio.Semaphore(self.concurrency)

        async with self._open_session() as session:

            async def _collect_one(node: SchedulerNode) -> Optional[NodeMetricsSnapshot]:
                async with semaphore:
                    try:
                        return await asyncio.wait_for(self.collect(node, session), timeout=self.timeout)
                    except asyncio.TimeoutError:
                        logger.warning(f"节点 {node.name} 遥测采集超过 {self.timeout} 秒，排除该节点")
                    except TelemetryUnreachableError as e:
                        logger.warning(f"{str(e)}，排除该节点")
                    except TelemetryParseError as e:
                        logger.warning(f"{str(e)}，排除该节点")
                    except Exception as e:
                        logger.opt(exception=e).error(f"节点 {node.name} 遥测采集发生未知错误，排除该节点: {str(e)}")
                    return None

            results = await asyncio.gather(*(_collect_one(node) for node in nodes))

        snapshots = {
            node.name: snapshot
            for node, snapshot in zip(nodes, results)
            if snapshot is not None
        }
        logger.info(f"遥测采集完成: {len(snapshots)}/{len(nodes)} 个节点可用")
        return snapshots
