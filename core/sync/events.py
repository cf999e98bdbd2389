"""
File System Event Models.

Defines the event kinds delivered by the watcher and the event structure
buffered by the sync queue.
"""

import os
from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field, field_validator


class EventType(Enum):
    """Types of file system events that trigger synchronization"""
    ADD = "add"                 # File created
    UNLINK = "unlink"           # File removed
    ADD_DIR = "addDir"          # Directory created
    UNLINK_DIR = "unlinkDir"    # Directory removed

    @property
    def is_directory(self) -> bool:
        return self in (EventType.ADD_DIR, EventType.UNLINK_DIR)


class FileSystemEvent(BaseModel):
    """
    A file system event awaiting synchronization.

    Created by the watcher, consumed exactly once by the queue worker and
    then discarded. The queue assigns ``sequence`` on enqueue.
    """

    event_type: EventType
    path: str
    sequence: Optional[int] = None
    timestamp: datetime = Field(default_factory=datetime.now)

    @field_validator('path')
    @classmethod
    def validate_path(cls, v: str) -> str:
        """Ensure path is absolute"""
        if not os.path.isabs(v):
            raise ValueError('Event path must be absolute')
        return v

    @classmethod
    def file_added(cls, path: str) -> 'FileSystemEvent':
        return cls(event_type=EventType.ADD, path=path)

    @classmethod
    def file_removed(cls, path: str) -> 'FileSystemEvent':
        return cls(event_type=EventType.UNLINK, path=path)

    @classmethod
    def directory_added(cls, path: str) -> 'FileSystemEvent':
        return cls(event_type=EventType.ADD_DIR, path=path)

    @classmethod
    def directory_removed(cls, path: str) -> 'FileSystemEvent':
        return cls(event_type=EventType.UNLINK_DIR, path=path)

    @property
    def is_directory(self) -> bool:
        return self.event_type.is_directory

    def __str__(self) -> str:
        """String representation for logging"""
        return f"{self.event_type.value}: {self.path}"
