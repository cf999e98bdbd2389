"""
Core data models for kenku-sync

Pydantic models for configuration and remote collection state.
"""

from .config import (
    DirectoryLayout,
    RemoteEndpoint,
    QueueSettings,
    ReconciliationSettings,
    LoggingSettings,
    DirectorySettings,
    SyncSettings,
)
from .remote import RemoteCollection, PlaylistListing, SoundboardListing, RemoteSnapshot

__all__ = [
    # Configuration
    "DirectoryLayout",
    "RemoteEndpoint",
    "QueueSettings",
    "ReconciliationSettings",
    "LoggingSettings",
    "DirectorySettings",
    "SyncSettings",

    # Remote state
    "RemoteCollection",
    "PlaylistListing",
    "SoundboardListing",
    "RemoteSnapshot"
]
