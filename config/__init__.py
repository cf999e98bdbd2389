"""
Configuration management for kenku-sync

Handles loading and validation of layered settings.
"""

from .loader import ConfigurationLoader, ConfigurationError
from .defaults import DEFAULT_SETTINGS

__all__ = ["ConfigurationLoader", "ConfigurationError", "DEFAULT_SETTINGS"]
