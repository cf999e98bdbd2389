"""
Kenku Sync - keep Kenku FM in step with a music directory.

Watches a directory tree of playlists and soundboards and mirrors every
added or removed collection and item into Kenku FM through its remote API.
"""

__version__ = "1.0.0"

__all__ = [
    "__version__",
]
