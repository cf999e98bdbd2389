"""
Watch Supervisor.

Owns the watchdog subscription for the library root, forwards every
add/addDir/unlink/unlinkDir event into the sync queue and opens the
activation gate once the initial directory scan is complete.
"""

import asyncio
import logging
import os
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from watchdog.observers import Observer
from watchdog.events import (
    FileSystemEventHandler,
    FileSystemEvent as WatchdogEvent,
    FileSystemMovedEvent,
)

from .events import FileSystemEvent
from .gate import ActivationGate
from .queue import SyncEventQueue

logger = logging.getLogger(__name__)


def convert_watchdog_event(event: WatchdogEvent) -> List[FileSystemEvent]:
    """
    Convert a watchdog event into zero or more FileSystemEvents.

    Moves become a removal of the source followed by an addition of the
    destination. Modifications, opens and closes are ignored.
    """
    src_path = os.fsdecode(event.src_path)

    if event.event_type == 'created':
        if event.is_directory:
            return [FileSystemEvent.directory_added(src_path)]
        return [FileSystemEvent.file_added(src_path)]

    if event.event_type == 'deleted':
        if event.is_directory:
            return [FileSystemEvent.directory_removed(src_path)]
        return [FileSystemEvent.file_removed(src_path)]

    if isinstance(event, FileSystemMovedEvent) or event.event_type == 'moved':
        dest_path = os.fsdecode(event.dest_path)
        if event.is_directory:
            return [
                FileSystemEvent.directory_removed(src_path),
                FileSystemEvent.directory_added(dest_path),
            ]
        return [
            FileSystemEvent.file_removed(src_path),
            FileSystemEvent.file_added(dest_path),
        ]

    return []


def scan_directory_tree(root: Path) -> List[FileSystemEvent]:
    """
    Produce the add events for everything that already exists under root.

    Top-down walk with sorted names: a directory's addDir always precedes
    the adds of its contents.
    """
    events: List[FileSystemEvent] = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames.sort()
        for name in dirnames:
            events.append(FileSystemEvent.directory_added(os.path.join(dirpath, name)))
        for name in sorted(filenames):
            events.append(FileSystemEvent.file_added(os.path.join(dirpath, name)))
    return events


class WatchSupervisor:
    """
    Bridges watchdog's observer thread to the asyncio sync queue.

    Watchdog does not replay existing files, so the supervisor scans the
    tree itself after the observer starts, enqueues the resulting add events
    and then signals readiness by opening the gate. In watch mode those scan
    events sit below the gate watermark and are discarded; in backfill mode
    the gate is already open and they are dispatched as real additions.
    """

    def __init__(
        self,
        root: Path,
        event_queue: SyncEventQueue,
        gate: ActivationGate,
        observer_factory: Callable[[], Any] = Observer
    ):
        """
        Initialize the watch supervisor.

        Args:
            root: Library root directory to monitor recursively
            event_queue: Queue receiving the forwarded events
            gate: Activation gate opened when the initial scan completes
            observer_factory: Factory for the watchdog observer
        """
        self.root = Path(root)
        self.event_queue = event_queue
        self.gate = gate
        self.observer_factory = observer_factory

        self.observer = None
        self.event_handler: Optional['QueueForwardingEventHandler'] = None

        self._is_monitoring = False
        self._is_ready = False
        self._monitor_start_time: Optional[datetime] = None
        self._events_forwarded = 0
        self._initial_scan_count = 0

        logger.info(f"Initialized WatchSupervisor for {self.root}")

    @property
    def is_monitoring(self) -> bool:
        return self._is_monitoring

    @property
    def is_ready(self) -> bool:
        """Initial scan complete"""
        return self._is_ready

    @property
    def monitoring_duration(self) -> Optional[timedelta]:
        if self._monitor_start_time:
            return datetime.now() - self._monitor_start_time
        return None

    async def start_monitoring(self) -> None:
        """
        Subscribe to the root, run the initial scan and signal readiness.

        Raises:
            FileNotFoundError: If root does not exist
            NotADirectoryError: If root is not a directory
        """
        if self._is_monitoring:
            logger.warning("File system monitoring is already active")
            return

        if not self.root.exists():
            raise FileNotFoundError(f"Root path does not exist: {self.root}")
        if not self.root.is_dir():
            raise NotADirectoryError(f"Root path is not a directory: {self.root}")

        logger.info(f"Starting file watcher on {self.root}")

        self.event_handler = QueueForwardingEventHandler(self)
        self.event_handler.set_event_loop(asyncio.get_running_loop())

        self.observer = self.observer_factory()
        self.observer.schedule(self.event_handler, str(self.root), recursive=True)
        self.observer.start()

        self._is_monitoring = True
        self._monitor_start_time = datetime.now()

        await self._scan_initial_state()

    async def stop_monitoring(self) -> None:
        """Stop file system monitoring and cleanup resources."""
        if not self._is_monitoring:
            return

        self._is_monitoring = False

        # Clear event loop reference in handler to prevent further events
        if self.event_handler:
            self.event_handler.set_event_loop(None)

        if self.observer:
            try:
                self.observer.stop()
                await asyncio.to_thread(self.observer.join, 5.0)
            except Exception as e:
                logger.warning(f"Error stopping observer: {e}")
            finally:
                self.observer = None

        self.event_handler = None
        logger.info(f"Stopped file system monitoring (duration: {self.monitoring_duration})")

    def forward(self, event: FileSystemEvent) -> None:
        """Push one event into the queue. Runs on the event loop thread."""
        if not self._is_monitoring:
            return

        self.event_queue.enqueue(event)
        self._events_forwarded += 1

    async def _scan_initial_state(self) -> None:
        """Enqueue adds for the existing tree, then open the gate."""
        events = await asyncio.to_thread(scan_directory_tree, self.root)
        for event in events:
            self.forward(event)
        self._initial_scan_count = len(events)

        self._is_ready = True
        logger.info(f"Ready: initial scan found {len(events)} entries under {self.root}")
        self.gate.open(
            watermark=self.event_queue.next_sequence,
            reason="initial scan complete"
        )

    def get_status(self) -> Dict[str, Any]:
        return {
            "root": str(self.root),
            "is_monitoring": self._is_monitoring,
            "is_ready": self._is_ready,
            "initial_scan_entries": self._initial_scan_count,
            "events_forwarded": self._events_forwarded,
            "monitoring_duration": str(self.monitoring_duration) if self.monitoring_duration else None
        }

    async def __aenter__(self):
        """Async context manager entry."""
        await self.start_monitoring()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.stop_monitoring()


class QueueForwardingEventHandler(FileSystemEventHandler):
    """
    Watchdog event handler that forwards events to a WatchSupervisor.

    Watchdog calls this from its observer thread; events are converted there
    and handed to the event loop with call_soon_threadsafe.
    """

    def __init__(self, supervisor: WatchSupervisor):
        super().__init__()
        self.supervisor = supervisor
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self._event_loop: Optional[asyncio.AbstractEventLoop] = None

    def set_event_loop(self, loop: Optional[asyncio.AbstractEventLoop]) -> None:
        self._event_loop = loop

    def on_any_event(self, event: WatchdogEvent) -> None:
        """Convert and schedule any file system event"""
        try:
            converted = convert_watchdog_event(event)
            if not converted:
                return

            loop = self._event_loop
            if loop is None or loop.is_closed():
                self.logger.debug(f"No event loop available, dropping event: {event}")
                return

            for fs_event in converted:
                try:
                    loop.call_soon_threadsafe(self.supervisor.forward, fs_event)
                except RuntimeError as e:
                    # Event loop might be closing or closed
                    if "closed" not in str(e).lower():
                        self.logger.error(f"Failed to schedule event on loop: {e}")
                    return

        except Exception as e:
            self.logger.error(f"Error in watchdog event handler: {e}")
