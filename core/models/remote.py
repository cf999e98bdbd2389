"""
Remote collection models for the Kenku FM remote API.

Listing responses are decoded into these models during reconciliation.
Unknown fields returned by the remote service are preserved.
"""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field


class RemoteCollection(BaseModel):
    """A playlist or soundboard as reported by the remote service"""
    model_config = ConfigDict(extra='allow')

    url: str
    id: Optional[str] = None
    title: Optional[str] = None


class PlaylistListing(BaseModel):
    """Response of GET /v1/playlist"""
    model_config = ConfigDict(extra='allow')

    playlists: List[RemoteCollection] = Field(default_factory=list)
    tracks: List[Dict[str, Any]] = Field(default_factory=list)


class SoundboardListing(BaseModel):
    """Response of GET /v1/soundboard"""
    model_config = ConfigDict(extra='allow')

    soundboards: List[RemoteCollection] = Field(default_factory=list)
    sounds: List[Dict[str, Any]] = Field(default_factory=list)


class RemoteSnapshot(BaseModel):
    """Remote state read during reconciliation"""
    playlists: PlaylistListing = Field(default_factory=PlaylistListing)
    soundboards: SoundboardListing = Field(default_factory=SoundboardListing)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for display"""
        return {
            "playlists": self.playlists.model_dump(exclude_none=True),
            "soundboards": self.soundboards.model_dump(exclude_none=True)
        }
