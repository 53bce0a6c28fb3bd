"""配置模块"""
from typing import List
from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """应用配置类"""

    # 应用信息
    APP_NAME: str = "网络感知调度器"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # 服务器配置
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    API_V1_PREFIX: str = "/v1"

    # Kubernetes配置
    USE_SERVICE_ACCOUNT: bool = False

    # 调度器标识，Pod的spec.schedulerName与之相同时才由本调度器负责
    SCHEDULER_NAME: str = "netAwareScheduler"

    # 待调度队列配置
    POD_QUEUE_SIZE: int = 300
    QUEUE_POLL_INTERVAL: float = 1.0  # 调度循环读取队列的轮询间隔（秒）

    # Watch配置
    WATCH_TIMEOUT_SECONDS: int = 300  # 单次watch请求的服务端超时（秒）
    WATCH_RETRY_DELAY: float = 5.0  # watch异常后的重连间隔（秒）

    # 节点遥测配置
    METRICS_PORT: int = 9100  # node-exporter端口
    METRICS_PATH: str = "/metrics"
    BENCHMARK_DIR: str = "/home"  # iperf3结果文件目录，文件名为<节点IP>.json
    BENCHMARK_REQUIRED: bool = True  # 缺少带宽测试结果时是否排除该节点
    TELEMETRY_TIMEOUT: float = 5.0  # 单个节点遥测采集的截止时间（秒）
    TELEMETRY_CONCURRENCY: int = 8  # 并发采集的最大节点数
    CPU_CORE_SAMPLES: int = 4  # 参与平均的CPU核心频率样本数

    # 节点类型配置
    CONTROL_PLANE_NODES: List[str] = ["ubuntu"]
    MASTER_NETWORK_DEVICE: str = "enp3s0f1"
    MASTER_DISK_DEVICE: str = "sda"
    WORKER_NETWORK_DEVICE: str = "eth0"
    WORKER_DISK_DEVICE: str = "mmcblk0"

    # 调度结果历史
    DECISION_HISTORY_SIZE: int = 100

    model_config = ConfigDict(
        env_file=".env",
        extra="ignore"  # 允许额外的字段
    )


# 创建全局设置实例
settings = Settings()

# 导出设置
__all__ = ["settings", "Settings"]
