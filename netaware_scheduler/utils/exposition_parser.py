"""node-exporter文本指标解析工具"""
from typing import Dict, Iterator, Mapping, Optional, Tuple

from loguru import logger
from prometheus_client.parser import text_string_to_metric_families


def metric_key(name: str, labels: Optional[Mapping[str, str]] = None) -> str:
    """生成指标键

    标签按名称排序，保证同一条指标无论原文标签顺序如何都得到同一个键。

    Args:
        name: 指标名称，例如 "node_disk_io_now"
        labels: 标签，例如 {"device": "sda"}

    Returns:
        str: 形如 node_disk_io_now{device="sda"} 的键
    """
    if not labels:
        return name
    pairs = ",".join(f'{key}="{labels[key]}"' for key in sorted(labels))
    return f"{name}{{{pairs}}}"


class ExpositionMetrics:
    """指标键 -> 数值的只读映射"""

    def __init__(self, values: Dict[str, float]):
        self._values = values

    def get(self, name: str, **labels: str) -> Optional[float]:
        """按指标名和标签取值，不存在时返回None"""
        return self._values.get(metric_key(name, labels))

    def items(self) -> Iterator[Tuple[str, float]]:
        return iter(self._values.items())

    def __contains__(self, key: str) -> bool:
        return key in self._values

    def __len__(self) -> int:
        return len(self._values)


def parse_exposition(text: str) -> ExpositionMetrics:
    """解析文本格式的指标

    逐行解析样本并建立键值映射，之后的字段读取只查映射，
    与指标在原文中的顺序和位置无关。# HELP / # TYPE 注释行和空行跳过。
    无法解析的样本行记录日志后丢弃，不影响其余样本；
    由调用方按字段决定缺失值是降级还是作废。

    Args:
        text: /metrics接口返回的文本

    Returns:
        ExpositionMetrics: 解析结果
    """
    values: Dict[str, float] = {}
    skipped = 0
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        try:
            for family in text_string_to_metric_families(line):
                for sample in family.samples:
                    values[metric_key(sample.name, sample.labels)] = float(sample.value)
        except (ValueError, IndexError) as e:
            skipped += 1
            logger.debug(f"跳过无法解析的指标行 {line!r}: {str(e)}")

    if skipped:
        logger.warning(f"指标文本中有 {skipped} 行无法解析，已跳过")
    logger.debug(f"解析得到 {len(values)} 条指标样本")
    return ExpositionMetrics(values)
