"""
Kenku FM remote API access.
"""

from .client import (
    KenkuRemoteClient,
    RemoteSyncError,
    RemoteOperationFailed,
    TransportError,
    UnexpectedResponse,
)

__all__ = [
    "KenkuRemoteClient",
    "RemoteSyncError",
    "RemoteOperationFailed",
    "TransportError",
    "UnexpectedResponse",
]
