"""Kubernetes配置模块"""
import os
from typing import Optional

from kubernetes import client, config
from kubernetes.config.config_exception import ConfigException
from loguru import logger

from netaware_scheduler.core.exceptions import StartupFatalError


def _load_local_kubeconfig() -> str:
    """
    按顺序查找并加载本地kubeconfig

    查找顺序：项目根目录kubeconfig.yaml、环境变量KUBECONFIG、~/.kube/config

    Returns:
        str: 实际加载的kubeconfig路径
    """
    candidates = [
        os.path.join(os.getcwd(), "kubeconfig.yaml"),
        os.environ.get("KUBECONFIG"),
        os.path.expanduser("~/.kube/config"),
    ]

    for path in candidates:
        if not path:
            continue
        if not os.path.exists(path):
            logger.debug(f"未找到kubeconfig文件: {path}")
            continue
        if os.path.getsize(path) == 0:
            logger.warning(f"kubeconfig文件存在但为空: {path}")
            continue
        config.load_kube_config(path)
        return path

    raise FileNotFoundError("未找到有效的kubeconfig文件")


def load_kubernetes_config(use_service_account: Optional[bool] = None) -> None:
    """
    加载Kubernetes配置

    1. 如果设置了USE_SERVICE_ACCOUNT=true，优先使用集群内ServiceAccount配置
    2. 否则（或ServiceAccount加载失败时）使用本地kubeconfig配置

    Raises:
        StartupFatalError: 所有方式都无法建立集群凭证时
    """
    # 延迟导入settings，避免循环导入
    from netaware_scheduler.core.config import settings

    if use_service_account is None:
        use_service_account = settings.USE_SERVICE_ACCOUNT

    logger.info(f"加载Kubernetes配置: USE_SERVICE_ACCOUNT={use_service_account}")

    if use_service_account:
        try:
            config.load_incluster_config()
            logger.info("已使用ServiceAccount加载Kubernetes配置")
            return
        except ConfigException as e:
            logger.warning(f"使用ServiceAccount加载配置失败，将尝试本地配置: {str(e)}")

    try:
        path = _load_local_kubeconfig()
        logger.info(f"已加载本地Kubernetes配置: {path}")
    except (FileNotFoundError, ConfigException) as e:
        logger.error(f"Kubernetes配置加载失败: {str(e)}")
        raise StartupFatalError(f"无法建立集群访问凭证: {str(e)}") from e


def get_core_v1_client() -> client.CoreV1Api:
    """
    获取Kubernetes CoreV1客户端

    Returns:
        CoreV1Api: Kubernetes API客户端
    """
    load_kubernetes_config()
    return client.CoreV1Api()


# 导出函数
__all__ = [
    'load_kubernetes_config',
    'get_core_v1_client'
]
