"""
Filesystem-to-Kenku Synchronization System.

This module keeps Kenku FM playlists, tracks, soundboards and sounds in step
with a directory tree laid out as <root>/<Playlists|Soundboards>/<collection>/<item>.

Key Components:
- FileSystemEvent: Event models for add/addDir/unlink/unlinkDir
- classify: Path classification against the directory layout
- ActivationGate: Suppresses remote calls until the initial scan is complete
- SyncEventQueue: FIFO queue drained by a single periodic worker
- WatchSupervisor: watchdog subscription and initial scan
- FolderSyncEngine: Coordinator for one watching run
- ReconciliationController: watch, backfill, purge and view modes
"""

from .events import FileSystemEvent, EventType
from .classifier import ClassifiedTarget, TargetKind, classify, classify_directory, classify_file
from .gate import ActivationGate
from .queue import SyncEventQueue, ProcessOutcome
from .watcher import WatchSupervisor
from .engine import FolderSyncEngine
from .reconciliation import ReconciliationController, SyncMode, PurgeReport

__all__ = [
    "FileSystemEvent",
    "EventType",
    "ClassifiedTarget",
    "TargetKind",
    "classify",
    "classify_directory",
    "classify_file",
    "ActivationGate",
    "SyncEventQueue",
    "ProcessOutcome",
    "WatchSupervisor",
    "FolderSyncEngine",
    "ReconciliationController",
    "SyncMode",
    "PurgeReport",
]

__version__ = "1.0.0"
