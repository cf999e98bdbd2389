"""
Unit tests for configuration models.

Tests DirectoryLayout normalization and validation, and settings models.
"""

import os

import pytest
from pydantic import ValidationError

from core.models.config import (
    DirectoryLayout,
    LoggingSettings,
    QueueSettings,
    SyncSettings,
)


class TestDirectoryLayout:
    """Test DirectoryLayout model"""

    def test_defaults(self):
        """Test default subdirectory names"""
        layout = DirectoryLayout(root="/r")

        assert layout.playlists_dir == "Playlists"
        assert layout.soundboards_dir == "Soundboards"

    def test_trailing_separator_stripped(self):
        """Test root is stored without a trailing separator"""
        assert DirectoryLayout(root="/r/").root == "/r"

    def test_relative_root_made_absolute(self):
        """Test a relative root is anchored at the working directory"""
        assert DirectoryLayout(root="music").root == os.path.join(os.getcwd(), "music")

    def test_symlinked_root_not_resolved(self, tmp_path):
        """Test a symlinked root keeps the path it was given"""
        target = tmp_path / "library"
        target.mkdir()
        link = tmp_path / "kenku"
        link.symlink_to(target, target_is_directory=True)

        layout = DirectoryLayout(root=str(link))

        assert layout.root == str(link)

    def test_filesystem_root(self):
        """Test / stays a valid root"""
        assert DirectoryLayout(root="/").root == "/"

    def test_empty_root(self):
        """Test an empty root is rejected"""
        with pytest.raises(ValidationError):
            DirectoryLayout(root="")

    def test_nested_subdirectory_rejected(self):
        """Test subdirectory names must be single segments"""
        with pytest.raises(ValidationError):
            DirectoryLayout(root="/r", playlists_dir="Audio/Playlists")

    def test_distinct_subdirectories(self):
        """Test playlists and soundboards must differ"""
        with pytest.raises(ValidationError):
            DirectoryLayout(root="/r", playlists_dir="Audio", soundboards_dir="Audio")

    def test_frozen(self):
        """Test layouts are immutable"""
        layout = DirectoryLayout(root="/r")

        with pytest.raises(ValidationError):
            layout.root = "/other"


class TestSettingsModels:
    """Test runtime settings models"""

    def test_queue_interval_must_be_positive(self):
        """Test zero interval is rejected"""
        with pytest.raises(ValidationError):
            QueueSettings(interval_seconds=0)

    def test_max_in_flight_minimum(self):
        """Test the in-flight cap must be at least one"""
        with pytest.raises(ValidationError):
            QueueSettings(max_in_flight=0)

    def test_log_level_normalized(self):
        """Test log levels are upper-cased"""
        assert LoggingSettings(level="warning").level == "WARNING"

    def test_get_layout_requires_root(self):
        """Test a layout cannot be built without root"""
        with pytest.raises(ValueError):
            SyncSettings().get_layout()

    def test_get_layout(self):
        """Test the layout uses directory settings"""
        settings = SyncSettings(directories={"root": "/r", "playlists": "Music"})

        layout = settings.get_layout()

        assert layout.playlists_dir == "Music"
        assert layout.soundboards_dir == "Soundboards"
