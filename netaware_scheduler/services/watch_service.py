"""watch事件处理基础模块

kubernetes的watch接口是阻塞的，每个watch在独立的守护线程中运行，
stream结束或出错后按固定间隔重新建立。
"""
import threading
from typing import Iterator, Optional

from kubernetes import watch
from kubernetes.client import ApiException
from loguru import logger
from urllib3.exceptions import HTTPError

from netaware_scheduler.core.config import settings
from netaware_scheduler.core.exceptions import MalformedEventError


class EventWatcher:
    """watch线程基类，子类实现_open_stream和handle_event"""

    name = "watcher"

    def __init__(self, timeout_seconds: Optional[int] = None, retry_delay: Optional[float] = None):
        self._timeout_seconds = timeout_seconds or settings.WATCH_TIMEOUT_SECONDS
        self._retry_delay = retry_delay if retry_delay is not None else settings.WATCH_RETRY_DELAY
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._watch: Optional[watch.Watch] = None

    def _open_stream(self, watcher: watch.Watch) -> Iterator[dict]:
        raise NotImplementedError

    def handle_event(self, event: dict) -> bool:
        raise NotImplementedError

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """启动watch线程"""
        if self.running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name=self.name, daemon=True)
        self._thread.start()
        logger.info(f"{self.name} 已启动")

    def stop(self, timeout: float = 5.0) -> None:
        """停止watch线程"""
        self._stop_event.set()
        if self._watch is not None:
            self._watch.stop()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None
        logger.info(f"{self.name} 已停止")

    def dispatch(self, event: dict) -> bool:
        """处理单个事件，无法识别的事件记录日志后丢弃"""
        try:
            return self.handle_event(event)
        except MalformedEventError as e:
            logger.debug(f"{self.name} 丢弃无法识别的事件: {str(e)}")
            return False

    def _run(self) -> None:
        while not self._stop_event.is_set():
            self._watch = watch.Watch()
            failed = False
            try:
                for event in self._open_stream(self._watch):
                    if self._stop_event.is_set():
                        break
                    self.dispatch(event)
            except ApiException as e:
                # 410 Gone表示resourceVersion过期，重新建立watch即可
                logger.warning(f"{self.name} watch中断: status={e.status}, reason={e.reason}")
                failed = True
            except HTTPError as e:
                logger.warning(f"{self.name} 连接异常: {str(e)}")
                failed = True
            except Exception as e:
                # 其他异常也不结束线程
                logger.opt(exception=e).error(f"{self.name} 处理watch事件时发生未知错误: {str(e)}")
                failed = True
            finally:
                self._watch.stop()

            # 服务端超时正常结束时立即重连
            if failed and not self._stop_event.is_set():
                self._stop_event.wait(self._retry_delay)


def event_object(event: dict):
    """
    取出watch事件中的对象

    Raises:
        MalformedEventError: 事件不是预期的字典结构
    """
    if not isinstance(event, dict):
        raise MalformedEventError(f"事件类型错误: {type(event).__name__}")
    event_type = event.get("type")
    obj = event.get("object")
    if event_type is None or obj is None:
        raise MalformedEventError(f"事件缺少type或object: {event!r}")
    return event_type, obj
