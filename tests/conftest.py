"""
Shared fixtures for kenku-sync tests.
"""

from unittest.mock import AsyncMock, Mock

import pytest

from core.models.remote import PlaylistListing, SoundboardListing
from core.remote.client import KenkuRemoteClient

REMOTE_OPERATIONS = [
    "add_playlist",
    "add_track",
    "remove_track",
    "remove_playlist",
    "add_soundboard",
    "add_sound",
    "remove_sound",
    "remove_soundboard",
]


@pytest.fixture
def mock_client():
    """Remote client whose operations are AsyncMocks."""
    client = Mock(spec=KenkuRemoteClient)
    for name in REMOTE_OPERATIONS:
        setattr(client, name, AsyncMock(return_value={}))
    client.list_playlists = AsyncMock(return_value=PlaylistListing())
    client.list_soundboards = AsyncMock(return_value=SoundboardListing())
    client.get_stats = Mock(return_value={})
    return client


def remote_call_count(client) -> int:
    """Total number of mutating remote calls made on a mock client."""
    return sum(getattr(client, name).await_count for name in REMOTE_OPERATIONS)


@pytest.fixture
def count_remote_calls():
    """Counter for mutating remote calls on a mock client."""
    return remote_call_count
