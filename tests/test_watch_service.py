"""watch线程重连测试"""
import threading
import time

import pytest
from kubernetes.client import ApiException
from urllib3.exceptions import ProtocolError

from netaware_scheduler.core.exceptions import MalformedEventError
from netaware_scheduler.services.watch_service import EventWatcher

RETRY_DELAY = 30.0


class RecordingStopEvent(threading.Event):
    """记录重连等待时长，不真正等待"""

    def __init__(self):
        super().__init__()
        self.waits = []

    def wait(self, timeout=None):
        self.waits.append(timeout)
        return self.is_set()


class ScriptedWatcher(EventWatcher):
    """按顺序返回预置stream的watcher，stream用完后停止"""

    name = "scripted-watcher"

    def __init__(self, streams, **kwargs):
        super().__init__(timeout_seconds=60, **kwargs)
        self.streams = list(streams)
        self.opened = 0
        self.handled = []

    def _open_stream(self, watcher):
        self.opened += 1
        if not self.streams:
            self._stop_event.set()
            return iter(())
        return self.streams.pop(0)()

    def handle_event(self, event):
        obj = event["object"]
        if obj == "boom":
            raise RuntimeError("unexpected object")
        if obj == "malformed":
            raise MalformedEventError("bad event")
        self.handled.append(obj)
        return True


def _stream(*objects, error=None):
    def _open():
        for obj in objects:
            yield {"type": "ADDED", "object": obj}
        if error is not None:
            raise error
    return _open


def _run_scripted(streams):
    watcher = ScriptedWatcher(streams, retry_delay=RETRY_DELAY)
    watcher._stop_event = RecordingStopEvent()
    watcher._run()
    return watcher


def test_reconnects_after_api_and_connection_errors():
    watcher = _run_scripted([
        _stream("pod-1", error=ApiException(status=410, reason="Gone")),
        _stream("pod-2"),
        _stream(error=ProtocolError("Connection broken")),
        _stream("pod-3"),
    ])

    assert watcher.handled == ["pod-1", "pod-2", "pod-3"]
    assert watcher.opened == 5
    # 两次出错各等待一次，正常结束的stream立即重连
    assert watcher._stop_event.waits == [RETRY_DELAY, RETRY_DELAY]


def test_server_timeout_reconnects_immediately():
    watcher = _run_scripted([_stream("node-a"), _stream("node-b"), _stream()])

    assert watcher.handled == ["node-a", "node-b"]
    assert watcher.opened == 4
    assert watcher._stop_event.waits == []


def test_unexpected_error_is_retried():
    watcher = _run_scripted([
        _stream("boom", "never-seen"),
        _stream("pod-1"),
    ])

    assert watcher.handled == ["pod-1"]
    assert watcher._stop_event.waits == [RETRY_DELAY]


def test_malformed_event_does_not_break_stream():
    watcher = _run_scripted([_stream("malformed", "pod-1")])

    assert watcher.handled == ["pod-1"]
    assert watcher._stop_event.waits == []


def test_stop_ends_running_thread():
    def endless():
        index = 0
        while True:
            index += 1
            time.sleep(0.01)
            yield {"type": "ADDED", "object": f"pod-{index}"}

    watcher = ScriptedWatcher([endless], retry_delay=0.05)
    watcher.start()
    try:
        deadline = time.monotonic() + 5
        while not watcher.handled and time.monotonic() < deadline:
            time.sleep(0.01)
        assert watcher.running
    finally:
        watcher.stop(timeout=2.0)

    assert watcher.handled
    assert not watcher.running


@pytest.mark.parametrize("error", [
    ApiException(status=500, reason="Internal Server Error"),
    ProtocolError("Connection broken"),
    RuntimeError("unexpected"),
])
def test_stop_during_retry_wait_exits(error):
    watcher = ScriptedWatcher([_stream(error=error)] * 100, retry_delay=RETRY_DELAY)
    watcher.start()
    deadline = time.monotonic() + 5
    while watcher.opened == 0 and time.monotonic() < deadline:
        time.sleep(0.01)

    started = time.monotonic()
    watcher.stop(timeout=2.0)

    assert not watcher.running
    assert time.monotonic() - started < 2.0
    assert watcher.opened == 1
