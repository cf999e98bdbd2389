"""
Reconciliation Controller.

Selects how a run establishes the remote state before (or instead of)
steady-state watching: watch-only, backfill, purge, or a read-only view.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, List, Optional

from config.loader import ConfigurationError
from core.models.config import DirectoryLayout, QueueSettings
from core.models.remote import RemoteSnapshot
from core.remote.client import KenkuRemoteClient, RemoteSyncError
from .engine import FolderSyncEngine

logger = logging.getLogger(__name__)


class SyncMode(Enum):
    """Mutually exclusive startup modes"""
    WATCH = "watch"         # Sync future changes only
    BACKFILL = "backfill"   # Re-send everything that exists, then keep watching
    PURGE = "purge"         # Delete every remote playlist and soundboard, then exit
    VIEW = "view"           # List remote playlists and soundboards, then exit


@dataclass
class PurgeReport:
    """Outcome of a purge run"""
    playlists_removed: int = 0
    soundboards_removed: int = 0
    failures: List[str] = field(default_factory=list)

    @property
    def total_removed(self) -> int:
        return self.playlists_removed + self.soundboards_removed


class ReconciliationController:
    """Runs one startup mode against the remote service"""

    def __init__(
        self,
        client: KenkuRemoteClient,
        removal_delay: float = 0.5,
        queue_settings: Optional[QueueSettings] = None,
        engine_factory: Callable[..., FolderSyncEngine] = FolderSyncEngine
    ):
        """
        Args:
            client: Remote client
            removal_delay: Seconds to pause after each purge removal
            queue_settings: Queue worker settings for watching modes
            engine_factory: Builds the engine for watch and backfill
        """
        self.client = client
        self.removal_delay = removal_delay
        self.queue_settings = queue_settings or QueueSettings()
        self.engine_factory = engine_factory
        self.engine: Optional[FolderSyncEngine] = None

    @staticmethod
    def initial_gate_state(mode: SyncMode) -> bool:
        """Whether the activation gate starts open for a mode"""
        return mode == SyncMode.BACKFILL

    async def view(self) -> RemoteSnapshot:
        """Read current remote playlists and soundboards without mutating anything"""
        playlists = await self.client.list_playlists()
        soundboards = await self.client.list_soundboards()
        return RemoteSnapshot(playlists=playlists, soundboards=soundboards)

    async def purge(self) -> PurgeReport:
        """
        Remove every remote playlist and soundboard, one at a time.

        Listing failures propagate and abort the purge. A failed removal is
        logged and the purge moves on. Never touches the filesystem.
        """
        playlists = await self.client.list_playlists()
        soundboards = await self.client.list_soundboards()
        report = PurgeReport()

        if playlists.playlists:
            logger.info(f"Deleting {len(playlists.playlists)} playlists")
            for playlist in playlists.playlists:
                if await self._remove(self.client.remove_playlist, playlist.url, report):
                    report.playlists_removed += 1

        if soundboards.soundboards:
            logger.info(f"Deleting {len(soundboards.soundboards)} soundboards")
            for soundboard in soundboards.soundboards:
                if await self._remove(self.client.remove_soundboard, soundboard.url, report):
                    report.soundboards_removed += 1

        logger.info(
            f"Purge complete: {report.playlists_removed} playlists, "
            f"{report.soundboards_removed} soundboards, {len(report.failures)} failures"
        )
        return report

    async def _remove(self, remove: Callable[[str], Any], url: str, report: PurgeReport) -> bool:
        try:
            await remove(url)
            removed = True
        except RemoteSyncError as e:
            logger.error(f"Failed to remove {url}: {e}")
            report.failures.append(url)
            removed = False

        # Throttle remote load
        await asyncio.sleep(self.removal_delay)
        return removed

    def create_engine(self, mode: SyncMode, layout: DirectoryLayout) -> FolderSyncEngine:
        """Build the engine for a watching mode"""
        return self.engine_factory(
            layout=layout,
            client=self.client,
            backfill=self.initial_gate_state(mode),
            queue_settings=self.queue_settings
        )

    async def run(self, mode: SyncMode, layout: Optional[DirectoryLayout] = None) -> Any:
        """
        Execute a mode.

        Returns:
            RemoteSnapshot for VIEW, PurgeReport for PURGE, None for watching
            modes once the engine has been stopped.

        Raises:
            ConfigurationError: If a watching mode has no layout
        """
        if mode == SyncMode.VIEW:
            return await self.view()

        if mode == SyncMode.PURGE:
            return await self.purge()

        if layout is None:
            raise ConfigurationError(f"Mode '{mode.value}' requires a root directory")

        self.engine = self.create_engine(mode, layout)
        await self.engine.run_until_stopped()
        return None

    def request_stop(self) -> None:
        """Stop a running watch or backfill"""
        if self.engine:
            self.engine.request_stop()
