"""
Sync Event Queue.

Serializes file system events into Kenku remote calls. Events are appended
at the tail and a single periodic worker pops one event from the head per
tick, classifies it and fires the matching remote call without awaiting it.
"""

import asyncio
import logging
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Awaitable, Callable, Deque, Dict, Optional, Set, Tuple

from core.models.config import DirectoryLayout
from core.remote.client import KenkuRemoteClient, RemoteSyncError
from .classifier import ClassifiedTarget, TargetKind, classify
from .events import EventType, FileSystemEvent
from .gate import ActivationGate

logger = logging.getLogger(__name__)

RemoteCall = Callable[[KenkuRemoteClient, ClassifiedTarget], Awaitable[Any]]

# (event kind, target kind) -> (log verb, remote call)
DISPATCH_TABLE: Dict[Tuple[EventType, TargetKind], Tuple[str, RemoteCall]] = {
    (EventType.ADD, TargetKind.TRACK): (
        "Adding track",
        lambda client, t: client.add_track(t.title, t.url, t.collection_url)
    ),
    (EventType.ADD, TargetKind.SOUND): (
        "Adding sound",
        lambda client, t: client.add_sound(t.title, t.url, t.collection_url)
    ),
    (EventType.UNLINK, TargetKind.TRACK): (
        "Removing track",
        lambda client, t: client.remove_track(t.url, t.collection_url)
    ),
    (EventType.UNLINK, TargetKind.SOUND): (
        "Removing sound",
        lambda client, t: client.remove_sound(t.url, t.collection_url)
    ),
    (EventType.ADD_DIR, TargetKind.PLAYLIST): (
        "Adding playlist",
        lambda client, t: client.add_playlist(t.title, t.url)
    ),
    (EventType.ADD_DIR, TargetKind.SOUNDBOARD): (
        "Adding soundboard",
        lambda client, t: client.add_soundboard(t.title, t.url)
    ),
    (EventType.UNLINK_DIR, TargetKind.PLAYLIST): (
        "Removing playlist",
        lambda client, t: client.remove_playlist(t.url)
    ),
    (EventType.UNLINK_DIR, TargetKind.SOUNDBOARD): (
        "Removing soundboard",
        lambda client, t: client.remove_soundboard(t.url)
    ),
}


class ProcessOutcome(Enum):
    """What a single worker tick did"""
    EMPTY = "empty"                      # Nothing queued
    DEFERRED = "deferred"                # In-flight limit reached, nothing popped
    INACTIVE = "inactive"                # Popped and discarded by the activation gate
    NOT_APPLICABLE = "not_applicable"    # Popped and discarded by classification
    DISPATCHED = "dispatched"            # Popped and a remote call was spawned


@dataclass
class QueueMetrics:
    """Metrics for monitoring queue performance"""
    total_events_enqueued: int = 0
    total_events_dequeued: int = 0
    discarded_inactive: int = 0
    discarded_not_applicable: int = 0
    dispatched: int = 0
    deferred_ticks: int = 0
    remote_succeeded: int = 0
    remote_failed: int = 0
    max_queue_size_reached: int = 0
    dispatched_by_kind: Dict[str, int] = field(default_factory=dict)


class SyncEventQueue:
    """
    Unbounded FIFO of file system events drained by one periodic worker.

    Dequeue order is strict FIFO; completion order of the spawned remote
    calls is not. Remote failures are logged and dropped, never retried.
    Every mutation happens on the event loop thread.
    """

    def __init__(
        self,
        layout: DirectoryLayout,
        client: KenkuRemoteClient,
        gate: ActivationGate,
        interval_seconds: float = 0.5,
        max_in_flight: Optional[int] = None
    ):
        """
        Initialize the sync event queue.

        Args:
            layout: Directory layout used to classify event paths
            client: Remote client the dispatched calls go to
            gate: Activation gate checked at dequeue time
            interval_seconds: Worker tick interval
            max_in_flight: Optional cap on concurrent remote calls (None = unbounded)
        """
        self.layout = layout
        self.client = client
        self.gate = gate
        self.interval_seconds = interval_seconds
        self.max_in_flight = max_in_flight

        self._queue: Deque[FileSystemEvent] = deque()
        self._next_sequence = 0
        self._in_flight: Set[asyncio.Task] = set()

        self.metrics = QueueMetrics()
        self._start_time = datetime.now()

        self._worker_task: Optional[asyncio.Task] = None
        self._running = False

        logger.info(
            f"Initialized SyncEventQueue with interval={interval_seconds}s, "
            f"max_in_flight={max_in_flight or 'unbounded'}"
        )

    @property
    def is_active(self) -> bool:
        """Check if the worker is currently running"""
        return self._running

    @property
    def next_sequence(self) -> int:
        """Sequence number the next enqueued event will receive"""
        return self._next_sequence

    @property
    def in_flight_count(self) -> int:
        return len(self._in_flight)

    async def start(self) -> None:
        """Start the periodic worker"""
        if self._running:
            return

        self._running = True
        self._worker_task = asyncio.create_task(self._worker_loop())
        logger.info("Started SyncEventQueue worker")

    async def stop(self, in_flight_timeout: Optional[float] = 5.0) -> None:
        """
        Stop the worker. Pending events are dropped.

        Args:
            in_flight_timeout: Seconds to wait for outstanding remote calls
        """
        self._running = False

        if self._worker_task:
            self._worker_task.cancel()
            try:
                await self._worker_task
            except asyncio.CancelledError:
                pass
            self._worker_task = None

        if self._in_flight:
            finished = await self.wait_for_in_flight(timeout=in_flight_timeout)
            if not finished:
                logger.warning(f"Cancelling {len(self._in_flight)} remote calls still in flight")
                for task in list(self._in_flight):
                    task.cancel()

        if self._queue:
            logger.info(f"Dropping {len(self._queue)} pending events")
            self._queue.clear()

        logger.info("Stopped SyncEventQueue")

    def enqueue(self, event: FileSystemEvent) -> int:
        """
        Append an event at the tail. Never blocks and never rejects.

        Returns:
            The sequence number assigned to the event
        """
        event.sequence = self._next_sequence
        self._next_sequence += 1
        self._queue.append(event)

        self.metrics.total_events_enqueued += 1
        self.metrics.max_queue_size_reached = max(
            self.metrics.max_queue_size_reached,
            len(self._queue)
        )

        logger.debug(f"Enqueued event: {event} (queue size: {len(self._queue)})")
        return event.sequence

    def process_next(self) -> ProcessOutcome:
        """
        Pop one event from the head and handle it.

        Synchronous with respect to queue state: the remote call it triggers
        runs as a separate task and is not awaited. Must be called from the
        event loop thread.
        """
        if not self._queue:
            return ProcessOutcome.EMPTY

        if self.max_in_flight is not None and len(self._in_flight) >= self.max_in_flight:
            self.metrics.deferred_ticks += 1
            return ProcessOutcome.DEFERRED

        event = self._queue.popleft()
        self.metrics.total_events_dequeued += 1

        if not self.gate.admits(event.sequence):
            self.metrics.discarded_inactive += 1
            logger.debug(f"Gate closed for event, discarding: {event}")
            return ProcessOutcome.INACTIVE

        target = classify(self.layout, event)
        if not target.is_applicable:
            self.metrics.discarded_not_applicable += 1
            logger.debug(f"Path does not match layout, discarding: {event}")
            return ProcessOutcome.NOT_APPLICABLE

        self._dispatch(event, target)
        return ProcessOutcome.DISPATCHED

    def _dispatch(self, event: FileSystemEvent, target: ClassifiedTarget) -> None:
        """Spawn exactly one remote call for a classified event"""
        verb, remote_call = DISPATCH_TABLE[(event.event_type, target.kind)]
        description = f"{verb}: {event.path} ({target.title})"
        logger.info(description)

        task = asyncio.create_task(self._run_remote_call(description, remote_call(self.client, target)))
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)

        self.metrics.dispatched += 1
        kind = target.kind.value
        self.metrics.dispatched_by_kind[kind] = self.metrics.dispatched_by_kind.get(kind, 0) + 1

    async def _run_remote_call(self, description: str, call: Awaitable[Any]) -> None:
        """Await one remote call, logging and dropping any failure"""
        try:
            await call
            self.metrics.remote_succeeded += 1
        except RemoteSyncError as e:
            self.metrics.remote_failed += 1
            logger.error(f"{description} failed: {e}")
        except Exception as e:
            self.metrics.remote_failed += 1
            logger.error(f"{description} failed unexpectedly: {e}")

    async def _worker_loop(self) -> None:
        """Tick every interval_seconds until stopped"""
        while self._running:
            try:
                self.process_next()
            except Exception as e:
                logger.error(f"Error in queue worker: {e}")

            try:
                await asyncio.sleep(self.interval_seconds)
            except asyncio.CancelledError:
                break

    async def wait_for_in_flight(self, timeout: Optional[float] = None) -> bool:
        """
        Wait for every remote call currently in flight.

        Returns:
            True if all finished, False on timeout
        """
        if not self._in_flight:
            return True

        done, pending = await asyncio.wait(set(self._in_flight), timeout=timeout)
        return not pending

    async def drain(self, timeout: Optional[float] = None) -> int:
        """
        Process every queued event back to back, then wait for the calls.

        Returns:
            Number of events popped
        """
        processed = 0
        while self._queue:
            outcome = self.process_next()
            if outcome == ProcessOutcome.DEFERRED:
                await asyncio.wait(set(self._in_flight), return_when=asyncio.FIRST_COMPLETED)
                continue
            processed += 1
        await self.wait_for_in_flight(timeout=timeout)
        return processed

    def size(self) -> int:
        """Get current queue size"""
        return len(self._queue)

    def is_empty(self) -> bool:
        return not self._queue

    def get_metrics(self) -> Dict[str, Any]:
        """Get comprehensive queue metrics"""
        uptime = (datetime.now() - self._start_time).total_seconds()

        return {
            "current_size": len(self._queue),
            "max_size_reached": self.metrics.max_queue_size_reached,
            "events_enqueued": self.metrics.total_events_enqueued,
            "events_dequeued": self.metrics.total_events_dequeued,
            "discarded_inactive": self.metrics.discarded_inactive,
            "discarded_not_applicable": self.metrics.discarded_not_applicable,
            "dispatched": self.metrics.dispatched,
            "dispatched_by_kind": dict(self.metrics.dispatched_by_kind),
            "deferred_ticks": self.metrics.deferred_ticks,
            "remote_succeeded": self.metrics.remote_succeeded,
            "remote_failed": self.metrics.remote_failed,
            "in_flight": len(self._in_flight),
            "uptime_seconds": uptime
        }

    def __len__(self) -> int:
        return len(self._queue)

    async def __aenter__(self):
        """Async context manager entry"""
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit"""
        await self.stop()
