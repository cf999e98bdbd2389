"""
kenku-sync core package

Filesystem-to-Kenku FM synchronization: models, remote client and sync engine.
"""

__version__ = "1.0.0"

from .models import DirectoryLayout, RemoteEndpoint, SyncSettings

__all__ = [
    "DirectoryLayout",
    "RemoteEndpoint",
    "SyncSettings"
]
