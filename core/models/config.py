"""
Configuration models for kenku-sync.

Handles the watched directory layout, the Kenku remote endpoint and the
runtime settings of the queue worker and reconciliation.
"""

import os
from typing import Optional
from pydantic import BaseModel, Field, ConfigDict, field_validator, model_validator


class DirectoryLayout(BaseModel):
    """Watched directory tree: <root>/<playlists|soundboards>/<collection>/<item>"""
    model_config = ConfigDict(
        str_strip_whitespace=True,
        frozen=True
    )

    root: str
    playlists_dir: str = "Playlists"
    soundboards_dir: str = "Soundboards"

    @field_validator('root')
    @classmethod
    def validate_root(cls, v: str) -> str:
        """Make root absolute and normalized without following symlinks"""
        if not v:
            raise ValueError('Root directory must not be empty')
        return os.path.abspath(os.path.expanduser(v))

    @field_validator('playlists_dir', 'soundboards_dir')
    @classmethod
    def validate_subdirectory(cls, v: str) -> str:
        """Subdirectory names are single path segments"""
        if not v:
            raise ValueError('Subdirectory name must not be empty')
        if '/' in v or os.sep in v:
            raise ValueError(f'Subdirectory name must be a single path segment: {v!r}')
        return v

    @model_validator(mode='after')
    def validate_distinct(self) -> 'DirectoryLayout':
        """Playlists and soundboards must live in different sibling directories"""
        if self.playlists_dir == self.soundboards_dir:
            raise ValueError(
                f"Playlists and soundboards directories must differ "
                f"(both are {self.playlists_dir!r})"
            )
        return self


class RemoteEndpoint(BaseModel):
    """Kenku FM remote API endpoint"""
    model_config = ConfigDict(
        str_strip_whitespace=True,
        frozen=True
    )

    host: str = "127.0.0.1"
    port: int = Field(default=3333, ge=1, le=65535)
    timeout: Optional[float] = Field(default=30.0, gt=0)

    @field_validator('host')
    @classmethod
    def validate_host(cls, v: str) -> str:
        """Host is a bare hostname, the scheme is always http"""
        if not v:
            raise ValueError('Host must not be empty')
        if '://' in v:
            raise ValueError('Host must not include a scheme')
        return v

    @property
    def base_url(self) -> str:
        return f"http://{self.host}:{self.port}/v1"


class QueueSettings(BaseModel):
    """Event queue worker settings"""
    interval_seconds: float = Field(default=0.5, gt=0, le=60)
    max_in_flight: Optional[int] = Field(default=None, ge=1)


class ReconciliationSettings(BaseModel):
    """Purge throttling settings"""
    removal_delay_seconds: float = Field(default=0.5, ge=0)


class LoggingSettings(BaseModel):
    """Logging settings"""
    level: str = Field(default="INFO")

    @field_validator('level')
    @classmethod
    def validate_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f'Unknown log level: {v}')
        return level


class DirectorySettings(BaseModel):
    """Unvalidated directory settings; root is only required by watching modes"""
    root: Optional[str] = None
    playlists: str = "Playlists"
    soundboards: str = "Soundboards"


class SyncSettings(BaseModel):
    """Complete settings for one kenku-sync run"""
    model_config = ConfigDict(validate_assignment=True)

    remote: RemoteEndpoint = Field(default_factory=RemoteEndpoint)
    directories: DirectorySettings = Field(default_factory=DirectorySettings)
    queue: QueueSettings = Field(default_factory=QueueSettings)
    reconciliation: ReconciliationSettings = Field(default_factory=ReconciliationSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    def get_layout(self) -> DirectoryLayout:
        """
        Build the directory layout for watching modes.

        Raises:
            ValueError: If root is missing or the layout is invalid
        """
        if not self.directories.root:
            raise ValueError('Missing root directory')
        return DirectoryLayout(
            root=self.directories.root,
            playlists_dir=self.directories.playlists,
            soundboards_dir=self.directories.soundboards
        )
