"""
Folder Sync Engine.

Central coordinator for one watching run: owns the activation gate, the
sync event queue and the watch supervisor.
"""

import asyncio
import logging
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from watchdog.observers import Observer

from core.models.config import DirectoryLayout, QueueSettings
from core.remote.client import KenkuRemoteClient
from .gate import ActivationGate
from .queue import SyncEventQueue
from .watcher import WatchSupervisor

logger = logging.getLogger(__name__)


class FolderSyncEngine:
    """
    Keeps the Kenku library in step with a directory tree.

    With ``backfill`` the gate is open from the start, so the initial scan is
    sent to the remote service as real additions. Otherwise the gate opens
    when the initial scan completes and only later changes are synced.
    """

    def __init__(
        self,
        layout: DirectoryLayout,
        client: KenkuRemoteClient,
        backfill: bool = False,
        queue_settings: Optional[QueueSettings] = None,
        observer_factory: Callable[[], Any] = Observer
    ):
        self.layout = layout
        self.client = client
        self.backfill = backfill
        queue_settings = queue_settings or QueueSettings()

        self.gate = ActivationGate(is_open=backfill)
        self.event_queue = SyncEventQueue(
            layout=layout,
            client=client,
            gate=self.gate,
            interval_seconds=queue_settings.interval_seconds,
            max_in_flight=queue_settings.max_in_flight
        )
        self.supervisor = WatchSupervisor(
            root=layout.root,
            event_queue=self.event_queue,
            gate=self.gate,
            observer_factory=observer_factory
        )

        self.is_running = False
        self.start_time: Optional[datetime] = None
        self._stop_event = asyncio.Event()

    async def start(self) -> None:
        """Start the queue worker, then the watcher and its initial scan"""
        if self.is_running:
            return

        logger.info(
            f"Starting FolderSyncEngine on {self.layout.root} "
            f"({'backfill' if self.backfill else 'watch'} mode)"
        )
        self._stop_event.clear()
        await self.event_queue.start()
        try:
            await self.supervisor.start_monitoring()
        except Exception:
            await self.event_queue.stop()
            raise

        self.is_running = True
        self.start_time = datetime.now()

    async def stop(self) -> None:
        """Stop watching and drop anything still queued"""
        if not self.is_running:
            return

        logger.info("Stopping FolderSyncEngine")
        self.is_running = False
        await self.supervisor.stop_monitoring()
        await self.event_queue.stop()
        self._stop_event.set()

        logger.info(f"Final queue metrics: {self.event_queue.get_metrics()}")

    def request_stop(self) -> None:
        """Ask run_until_stopped to return"""
        self._stop_event.set()

    async def run_until_stopped(self) -> None:
        """Start, block until request_stop (or cancellation), then stop"""
        await self.start()
        try:
            await self._stop_event.wait()
        finally:
            await self.stop()

    def get_status(self) -> Dict[str, Any]:
        uptime = (datetime.now() - self.start_time).total_seconds() if self.start_time else 0.0
        return {
            "root": self.layout.root,
            "mode": "backfill" if self.backfill else "watch",
            "is_running": self.is_running,
            "uptime_seconds": uptime,
            "gate": self.gate.get_status(),
            "queue": self.event_queue.get_metrics(),
            "watcher": self.supervisor.get_status(),
            "remote": self.client.get_stats()
        }

    async def __aenter__(self):
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.stop()
