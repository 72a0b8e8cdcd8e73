"""Live report change feed.

Observers receive insert / update / delete notifications for reports and votes
through a single :class:`ReportChangeFeed` interface. Two backends exist:

- :class:`PushChangeFeed` fans out changes published by the services as they
  commit.
- :class:`PollingChangeFeed` periodically reloads the active report set and
  diffs it against the previous snapshot.

Consumers such as the websocket stream never need to know which is active.
"""

from __future__ import annotations

import abc
import asyncio
import enum
import inspect
import logging
import threading
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol

from frostwatch.core.errors import StorageUnavailableError

logger = logging.getLogger(__name__)

Snapshot = Mapping[str, Mapping[str, Any]]
SnapshotLoader = Callable[[], Snapshot | Awaitable[Snapshot]]


class ChangeEvent(str, enum.Enum):
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"


@dataclass(frozen=True)
class ReportChange:
    """One change notification.

    ``kind`` is the table that changed ("report" or "vote"); ``payload`` holds
    the new row for inserts/updates and the old row for deletes.
    """

    kind: str
    event: ChangeEvent
    report_id: str
    payload: Mapping[str, Any] = field(default_factory=dict)

    def as_message(self) -> dict[str, Any]:
        return {
            "type": f"{self.kind}_{self.event.value}",
            "report_id": self.report_id,
            "payload": dict(self.payload),
        }


class ChangePublisher(Protocol):
    """Anything that accepts committed changes."""

    def publish(self, change: ReportChange) -> None: ...


class ChangeSubscription:
    """Async iterator over the changes delivered to one observer."""

    def __init__(self, feed: ReportChangeFeed, maxsize: int) -> None:
        self._feed = feed
        self._queue: asyncio.Queue[ReportChange] = asyncio.Queue(maxsize=maxsize)
        self.closed = False

    def _offer(self, change: ReportChange) -> None:
        if self.closed:
            return
        if self._queue.full():
            # Slow consumer: keep the newest changes.
            dropped = self._queue.get_nowait()
            logger.warning("Change feed subscriber lagging; dropped %s", dropped.event.value)
        self._queue.put_nowait(change)

    async def get(self) -> ReportChange:
        return await self._queue.get()

    def get_nowait(self) -> ReportChange:
        return self._queue.get_nowait()

    def pending(self) -> int:
        return self._queue.qsize()

    def close(self) -> None:
        if not self.closed:
            self.closed = True
            self._feed._unsubscribe(self)

    def __aiter__(self) -> ChangeSubscription:
        return self

    async def __anext__(self) -> ReportChange:
        if self.closed:
            raise StopAsyncIteration
        return await self.get()


class ReportChangeFeed(abc.ABC):
    """Common fan-out machinery shared by the feed backends."""

    backend: str = "abstract"

    def __init__(self, queue_size: int = 256) -> None:
        self._queue_size = queue_size
        self._subscribers: list[ChangeSubscription] = []
        self._loop: asyncio.AbstractEventLoop | None = None
        self._lock = threading.Lock()

    @abc.abstractmethod
    async def start(self) -> None:
        """Begin delivering changes."""

    @abc.abstractmethod
    async def stop(self) -> None:
        """Stop delivering changes and release background resources."""

    def subscribe(self) -> ChangeSubscription:
        subscription = ChangeSubscription(self, self._queue_size)
        with self._lock:
            self._subscribers.append(subscription)
        return subscription

    def _unsubscribe(self, subscription: ChangeSubscription) -> None:
        with self._lock:
            if subscription in self._subscribers:
                self._subscribers.remove(subscription)

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def _broadcast(self, change: ReportChange) -> None:
        with self._lock:
            targets = list(self._subscribers)
        for subscription in targets:
            subscription._offer(change)


class PushChangeFeed(ReportChangeFeed):
    """Delivers changes handed to :meth:`publish` by the write path."""

    backend = "push"

    async def start(self) -> None:
        self._loop = asyncio.get_running_loop()
        logger.info("Push change feed started")

    async def stop(self) -> None:
        self._loop = None
        logger.info("Push change feed stopped")

    def publish(self, change: ReportChange) -> None:
        """Fan ``change`` out to every subscriber; safe to call from worker threads."""
        loop = self._loop
        if loop is None or not loop.is_running():
            self._broadcast(change)
            return
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if running is loop:
            self._broadcast(change)
        else:
            loop.call_soon_threadsafe(self._broadcast, change)


class PollingChangeFeed(ReportChangeFeed):
    """Derives changes by periodically diffing snapshots of the active report set."""

    backend = "polling"

    def __init__(
        self,
        loader: SnapshotLoader,
        interval: float = 10.0,
        queue_size: int = 256,
    ) -> None:
        super().__init__(queue_size=queue_size)
        self._loader = loader
        self.interval = max(0.1, float(interval))
        self._snapshot: dict[str, Mapping[str, Any]] | None = None
        self._task: asyncio.Task[None] | None = None
        self._stopping = asyncio.Event()

    def publish(self, change: ReportChange) -> None:
        """Ignored: the polling backend discovers changes on its own."""

    async def start(self) -> None:
        """Start the background polling loop."""
        if self._task is None or self._task.done():
            self._stopping = asyncio.Event()
            self._task = asyncio.create_task(self._run())
            logger.info("Polling change feed started (every %.1fs)", self.interval)

    async def stop(self) -> None:
        """Stop the background polling loop."""
        if self._task is None:
            return
        self._stopping.set()
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Polling change feed stopped")

    async def _run(self) -> None:
        while not self._stopping.is_set():
            try:
                await self.poll_once()
            except (StorageUnavailableError, OSError) as e:
                logger.warning("Change feed poll failed: %s", e)
            try:
                await asyncio.wait_for(self._stopping.wait(), timeout=self.interval)
            except asyncio.TimeoutError:
                continue

    async def _load(self) -> Snapshot:
        result = self._loader()
        if inspect.isawaitable(result):
            return await result
        return result

    async def poll_once(self) -> list[ReportChange]:
        """Load one snapshot, broadcast the differences and return them."""
        current = {key: dict(value) for key, value in (await self._load()).items()}
        previous = self._snapshot
        self._snapshot = current
        if previous is None:
            logger.debug("Change feed primed with %d reports", len(current))
            return []

        changes = diff_snapshots(previous, current)
        for change in changes:
            self._broadcast(change)
        if changes:
            logger.debug("Change feed poll produced %d changes", len(changes))
        return changes


def diff_snapshots(previous: Snapshot, current: Snapshot) -> list[ReportChange]:
    """Compute report insert / update / delete changes between two snapshots."""
    changes: list[ReportChange] = []
    for report_id, row in current.items():
        old = previous.get(report_id)
        if old is None:
            changes.append(ReportChange("report", ChangeEvent.INSERT, report_id, row))
        elif dict(old) != dict(row):
            changes.append(ReportChange("report", ChangeEvent.UPDATE, report_id, row))
    for report_id, row in previous.items():
        if report_id not in current:
            changes.append(ReportChange("report", ChangeEvent.DELETE, report_id, row))
    return changes
