"""
Default configuration values for kenku-sync.

Centralized defaults that can be overridden by a config file, environment
variables or command-line options.
"""

from typing import Any, Dict

# Global default settings
DEFAULT_SETTINGS: Dict[str, Any] = {
    # Kenku FM remote endpoint
    "remote": {
        "host": "127.0.0.1",
        "port": 3333,
        "timeout": 30.0  # Seconds per request, None waits forever
    },

    # Watched directory layout
    "directories": {
        "root": None,
        "playlists": "Playlists",
        "soundboards": "Soundboards"
    },

    # Event queue worker
    "queue": {
        "interval_seconds": 0.5,
        "max_in_flight": None  # Unbounded
    },

    # Purge throttling
    "reconciliation": {
        "removal_delay_seconds": 0.5
    },

    # Logging
    "logging": {
        "level": "INFO"
    }
}

# Sound defaults sent with every addSound call
DEFAULT_SOUND_OPTIONS = {
    "loop": True,
    "volume": 100,
    "fade_in": 500,
    "fade_out": 500
}

# Placeholder title for items whose name is empty once the extension is stripped
UNKNOWN_TITLE = "UnknownTitle"

# Environment variable mappings
ENV_VAR_MAPPING = {
    'KENKU_SYNC_HOST': 'remote.host',
    'KENKU_SYNC_PORT': 'remote.port',
    'KENKU_SYNC_TIMEOUT': 'remote.timeout',
    'KENKU_SYNC_ROOT_DIR': 'directories.root',
    'KENKU_SYNC_PLAYLISTS_DIR': 'directories.playlists',
    'KENKU_SYNC_SOUNDBOARDS_DIR': 'directories.soundboards',
    'KENKU_SYNC_QUEUE_INTERVAL': 'queue.interval_seconds',
    'KENKU_SYNC_MAX_IN_FLIGHT': 'queue.max_in_flight',
    'KENKU_SYNC_PURGE_DELAY': 'reconciliation.removal_delay_seconds',
    'KENKU_SYNC_LOG_LEVEL': 'logging.level'
}

# Keys that must stay strings even when the value looks numeric or boolean
STRING_SETTINGS = {
    'remote.host',
    'directories.root',
    'directories.playlists',
    'directories.soundboards',
    'logging.level'
}
