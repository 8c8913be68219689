"""Alert channel: non-blocking fan-out of warning/error entries to live subscribers."""

import logging
import queue
import threading
from typing import Protocol, runtime_checkable

from applog.models import LogEntry

logger = logging.getLogger(__name__)


@runtime_checkable
class AlertHandler(Protocol):
    def handle(self, entry: LogEntry) -> None: ...


class Subscription:
    """A bounded queue of alerts for one subscriber. Entries are dropped when it is full."""

    def __init__(self, channel: "AlertChannel", maxsize: int):
        self._channel = channel
        self._queue: queue.Queue = queue.Queue(maxsize=maxsize)
        self._dropped = 0
        self._closed = False
        self._lock = threading.Lock()

    @property
    def dropped(self) -> int:
        with self._lock:
            return self._dropped

    @property
    def closed(self) -> bool:
        return self._closed

    def _offer(self, entry: LogEntry) -> bool:
        try:
            self._queue.put_nowait(entry)
            return True
        except queue.Full:
            with self._lock:
                self._dropped += 1
            return False

    def get(self, timeout: float | None = None) -> LogEntry:
        """Block until an alert arrives. Raises queue.Empty on timeout."""
        return self._queue.get(timeout=timeout)

    def get_nowait(self) -> LogEntry:
        return self._queue.get_nowait()

    def drain(self) -> list[LogEntry]:
        """Return every alert currently queued."""
        entries = []
        while True:
            try:
                entries.append(self._queue.get_nowait())
            except queue.Empty:
                return entries

    def __iter__(self):
        while not self._closed:
            try:
                yield self._queue.get(timeout=0.5)
            except queue.Empty:
                continue

    def close(self):
        self._closed = True
        self._channel.unsubscribe(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()


class _HandlerWorker:
    """Feeds one handler from its own subscription on a daemon thread."""

    def __init__(self, handler: AlertHandler, subscription: Subscription):
        self.handler = handler
        self.subscription = subscription
        self._thread = threading.Thread(
            target=self._run, name=f"applog-alert-{type(handler).__name__}", daemon=True,
        )
        self._thread.start()

    def _run(self):
        for entry in self.subscription:
            try:
                self.handler.handle(entry)
            except Exception:
                logger.exception("Alert handler %r failed", self.handler)

    def stop(self, timeout: float | None = None):
        self.subscription.close()
        self._thread.join(timeout)


class AlertChannel:
    def __init__(self, queue_size: int = 256):
        self._queue_size = queue_size
        self._subscriptions: list[Subscription] = []
        self._workers: list[_HandlerWorker] = []
        self._lock = threading.Lock()
        self._published = 0

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscriptions)

    @property
    def published(self) -> int:
        with self._lock:
            return self._published

    def subscribe(self, maxsize: int | None = None) -> Subscription:
        subscription = Subscription(self, maxsize or self._queue_size)
        with self._lock:
            self._subscriptions.append(subscription)
        return subscription

    def unsubscribe(self, subscription: Subscription):
        with self._lock:
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)

    def add_handler(self, handler: AlertHandler, maxsize: int | None = None) -> Subscription:
        """Call *handler* for each alert on a dedicated thread.

        The handler gets its own bounded queue, so a slow handler loses alerts
        (counted in the returned subscription's ``dropped``) instead of
        delaying the thread that logged them.
        """
        worker = _HandlerWorker(handler, self.subscribe(maxsize))
        with self._lock:
            self._workers.append(worker)
        return worker.subscription

    def remove_handler(self, handler: AlertHandler, timeout: float | None = 1.0):
        with self._lock:
            workers = [w for w in self._workers if w.handler is handler]
            self._workers = [w for w in self._workers if w.handler is not handler]
        for worker in workers:
            worker.stop(timeout)

    def publish(self, entry: LogEntry) -> int:
        """Offer *entry* to every current subscriber without blocking. Returns how many accepted it."""
        with self._lock:
            subscriptions = list(self._subscriptions)
            self._published += 1

        delivered = 0
        for subscription in subscriptions:
            if subscription._offer(entry):
                delivered += 1
        return delivered
