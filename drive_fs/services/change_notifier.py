"""
Live change notifications from the server-sent events stream.

The notifier runs in a background thread for the lifetime of a subscription.
It holds one streaming connection at a time and reconnects with backoff
when that connection drops. The subscription ends when the caller's cancel
token fires or when the caller closes its poll-interval channel.
"""
import json
import socket
import threading
import time
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Deque, List, Optional

import requests
from loguru import logger

from ..clients.drive_api import DriveAPI
from ..clients.pacer import Pacer
from ..models.data_models import ChangeEvent, EntryKind
from ..models.interfaces import ChangeCallback
from .dir_cache import DirCache, join_path


class NotifierState(str, Enum):
    IDLE = 'idle'
    CONNECTING = 'connecting'
    STREAMING = 'streaming'
    RECONNECTING = 'reconnecting'
    CLOSED = 'closed'


class SignalKind(str, Enum):
    UPDATE = 'update'
    CLOSED = 'closed'
    NONE = 'none'


@dataclass
class PollSignal:
    """Result of one receive on a PollIntervalChannel."""
    kind: SignalKind
    value: Optional[float] = None


class PollIntervalChannel:
    """
    Control channel the caller uses to adjust the polling interval.

    Receiving distinguishes three outcomes: a new interval, the channel having
    been closed, and nothing arriving before the timeout. Closing is the
    caller's way of ending the subscription.
    """

    def __init__(self):
        self._cond = threading.Condition()
        self._values: Deque[float] = deque()
        self._closed = False

    @property
    def closed(self) -> bool:
        with self._cond:
            return self._closed

    def send(self, interval: float) -> None:
        with self._cond:
            if self._closed:
                raise ValueError("send on closed channel")
            self._values.append(interval)
            self._cond.notify_all()

    def close(self) -> None:
        with self._cond:
            self._closed = True
            self._cond.notify_all()

    def receive(self, timeout: Optional[float] = None) -> PollSignal:
        """Wait up to timeout seconds; values sent before close are still delivered."""
        with self._cond:
            if not self._values and not self._closed:
                self._cond.wait(timeout)
            if self._values:
                return PollSignal(SignalKind.UPDATE, self._values.popleft())
            if self._closed:
                return PollSignal(SignalKind.CLOSED)
            return PollSignal(SignalKind.NONE)


class CancelToken:
    """Cancellation signal shared between a caller and background work."""

    def __init__(self):
        self._event = threading.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        return self._event.wait(timeout)


def abort_response(response: requests.Response) -> None:
    """Close a streaming response, waking any thread blocked reading it."""
    # close() alone leaves a reader blocked in recv() and the socket open.
    # Without urllib3's connection attribute this degrades to close() only.
    connection = getattr(getattr(response, 'raw', None), '_connection', None)
    sock = getattr(connection, 'sock', None)
    if sock is not None:
        try:
            sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass
    response.close()


def iter_sse_data(lines):
    """Yield the data payload of each server-sent event in a line iterator."""
    data: List[str] = []
    for line in lines:
        if isinstance(line, bytes):
            line = line.decode('utf-8', errors='replace')
        if not line:
            if data:
                yield '\n'.join(data)
                data = []
            continue
        if line.startswith(':'):
            continue
        field, _, value = line.partition(':')
        if field == 'data':
            data.append(value[1:] if value.startswith(' ') else value)
    if data:
        yield '\n'.join(data)


class _EventStream:
    """One streaming connection and the thread reading it."""

    def __init__(self, notifier: 'ChangeNotifier', on_change: ChangeCallback):
        self.notifier = notifier
        self.on_change = on_change
        self.dropped = threading.Event()
        self._stopping = threading.Event()
        self._lock = threading.Lock()
        self._response: Optional[requests.Response] = None
        self._thread = threading.Thread(target=self._run, name="drive-event-stream", daemon=True)

    def start(self) -> None:
        self._thread.start()

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stopping.set()
        with self._lock:
            response, self._response = self._response, None
        if response is not None:
            abort_response(response)
        self._thread.join(timeout)

    def _run(self) -> None:
        try:
            self.notifier.pacer.wait()
            if self._stopping.is_set():
                return

            response = self.notifier.api.open_event_stream()
            with self._lock:
                if self._stopping.is_set():
                    abort_response(response)
                    return
                self._response = response
                self.notifier._set_state(NotifierState.STREAMING)
            self.notifier.pacer.reset()
            logger.info("Connected to drive event stream")

            for payload in iter_sse_data(response.iter_lines(decode_unicode=True)):
                if self._stopping.is_set():
                    break
                self.notifier.dispatch(payload, self.on_change)

            if not self._stopping.is_set():
                logger.warning("Drive event stream ended")
        except Exception as e:
            if not self._stopping.is_set():
                logger.warning(f"Drive event stream failed: {e}")
        finally:
            with self._lock:
                response, self._response = self._response, None
            if response is not None:
                abort_response(response)
            if not self._stopping.is_set():
                self.dropped.set()


class ChangeNotifier:
    """
    Delivers remote changes to a callback as (path, kind) pairs.

    Paths are resolved from parent folder ids through the directory cache;
    events under folders that were never listed are skipped. An interval of
    zero on the poll channel pauses streaming, a positive interval resumes it.
    """

    # How often the control loop re-checks cancellation
    TICK = 0.05
    STOP_TIMEOUT = 5.0

    def __init__(self, api: DriveAPI, pacer: Pacer, dir_cache: DirCache):
        self.api = api
        self.pacer = pacer
        self.dir_cache = dir_cache
        self._state = NotifierState.IDLE
        self._state_lock = threading.Lock()
        self._stream: Optional[_EventStream] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def state(self) -> NotifierState:
        with self._state_lock:
            return self._state

    def _set_state(self, state: NotifierState) -> None:
        with self._state_lock:
            if self._state != state:
                logger.debug(f"Change notifier {self._state.value} -> {state.value}")
            self._state = state

    def start(self, cancel: CancelToken, on_change: ChangeCallback,
              poll_interval: PollIntervalChannel) -> None:
        """Start the background subscription. Returns immediately."""
        if self._thread is not None:
            raise RuntimeError("change notifier already started")
        self._thread = threading.Thread(
            target=self._run,
            args=(cancel, on_change, poll_interval),
            name="drive-change-notify",
            daemon=True
        )
        self._thread.start()

    def wait_closed(self, timeout: Optional[float] = None) -> bool:
        """Wait for the subscription to end. Returns True once it has."""
        if self._thread is None:
            return True
        self._thread.join(timeout)
        return not self._thread.is_alive()

    def _connect(self, on_change: ChangeCallback) -> None:
        self._set_state(NotifierState.CONNECTING)
        self._stream = _EventStream(self, on_change)
        self._stream.start()

    def _disconnect(self) -> None:
        stream, self._stream = self._stream, None
        if stream is not None:
            stream.stop(self.STOP_TIMEOUT)

    def _run(self, cancel: CancelToken, on_change: ChangeCallback,
             poll_interval: PollIntervalChannel) -> None:
        logger.info("Change notifier started")
        paused = False
        reconnect_at: Optional[float] = None
        self._connect(on_change)

        try:
            while True:
                if cancel.cancelled:
                    logger.info("Change notifier cancelled")
                    break

                signal = poll_interval.receive(timeout=self.TICK)
                if signal.kind == SignalKind.CLOSED:
                    logger.info("Poll interval channel closed, stopping change notifier")
                    break

                if signal.kind == SignalKind.UPDATE:
                    if signal.value <= 0 and not paused:
                        logger.info("Change notifications paused")
                        paused = True
                        reconnect_at = None
                        self._disconnect()
                        self._set_state(NotifierState.IDLE)
                    elif signal.value > 0 and paused:
                        logger.info(f"Change notifications resumed (interval {signal.value}s)")
                        paused = False
                        self._connect(on_change)
                    continue

                if paused:
                    continue

                stream = self._stream
                if reconnect_at is None and stream is not None and stream.dropped.is_set():
                    delay = self.pacer.backoff()
                    reconnect_at = time.monotonic() + delay
                    self._set_state(NotifierState.RECONNECTING)
                    logger.warning(f"Reconnecting to drive event stream in {delay:.2f}s")

                if reconnect_at is not None and time.monotonic() >= reconnect_at:
                    reconnect_at = None
                    self._disconnect()
                    self._connect(on_change)
        finally:
            self._disconnect()
            self._set_state(NotifierState.CLOSED)
            logger.info("Change notifier stopped")

    def dispatch(self, payload: str, on_change: ChangeCallback) -> int:
        """
        Translate one event payload into callback invocations.

        Returns:
            Number of callbacks made
        """
        try:
            event = ChangeEvent.from_dict(json.loads(payload))
        except (ValueError, TypeError, AttributeError) as e:
            logger.warning(f"Skipping malformed change event: {e}")
            return 0

        paths = []
        for parent_id in (event.parent_id, event.dest_parent_id):
            if not parent_id:
                continue
            parent_path = self.dir_cache.get_inverse(parent_id)
            if parent_path is None:
                continue
            path = join_path(parent_path, event.name)
            if path not in paths:
                paths.append(path)

        if not paths:
            logger.debug(f"Skipping {event.event_type} for {event.name}: parent not cached")
            return 0

        if event.kind == EntryKind.FOLDER:
            for path in paths:
                self.dir_cache.flush_dir(path)

        delivered = 0
        for path in paths:
            try:
                on_change(path, event.kind)
                delivered += 1
            except Exception as e:
                logger.error(f"Change callback failed for {path}: {e}")
        return delivered
