"""待调度Pod队列"""
import queue
import threading
from typing import Optional, Set

from loguru import logger

from netaware_scheduler.schemas.common import PendingPod


class PodQueue:
    """有界FIFO队列

    多个watch线程写入、调度循环单独读取。队列满时写入方阻塞。
    同一个Pod（按UID）在排队或调度中时不会重复入队。
    """

    def __init__(self, maxsize: int = 300):
        self._queue: "queue.Queue[PendingPod]" = queue.Queue(maxsize=maxsize)
        self._pending: Set[str] = set()
        self._lock = threading.Lock()
        self.maxsize = maxsize

    def put(self, pod: PendingPod, timeout: Optional[float] = None) -> bool:
        """
        Pod入队

        Args:
            pod: 待调度的Pod
            timeout: 队列满时的最长等待时间，None表示一直等待

        Returns:
            bool: 是否入队，Pod已在队列或调度中时返回False

        Raises:
            queue.Full: 指定了timeout且超时仍无空位
        """
        with self._lock:
            if pod.uid in self._pending:
                return False
            self._pending.add(pod.uid)

        try:
            self._queue.put(pod, timeout=timeout)
        except queue.Full:
            with self._lock:
                self._pending.discard(pod.uid)
            raise

        logger.debug(f"Pod {pod.key} 已入队，当前队列长度 {self._queue.qsize()}")
        return True

    def get(self, timeout: Optional[float] = None) -> Optional[PendingPod]:
        """取出一个Pod，超时返回None"""
        try:
            return self._queue.get(timeout=timeout)
        except queue.Empty:
            return None

    def done(self, pod: PendingPod) -> None:
        """调度循环处理完Pod后调用，之后该Pod可以再次入队"""
        with self._lock:
            self._pending.discard(pod.uid)

    def qsize(self) -> int:
        return self._queue.qsize()
