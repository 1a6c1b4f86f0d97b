"""
Unit Tests for Wallpaper Artifacts

Tests identifier minting and parsing, shared-folder scanning and newest
selection.

Author: WallSync Project
License: MIT
"""

import pytest
from datetime import datetime
from pathlib import Path

from wallsync.core.artifact import (
    WallpaperArtifact,
    is_artifact_name,
    mint_identifier,
    parse_identifier,
    scan_shared_folder,
    select_newest,
)


class TestIdentifiers:
    """Test suite for identifier minting and parsing."""

    def test_mint_format(self):
        """Colons become dashes and microseconds are dropped."""
        identifier = mint_identifier(datetime(2024, 6, 15, 14, 30, 0, 987654))

        assert identifier == "wallpaper-2024-06-15T14-30-00"

    def test_mint_defaults_to_now(self):
        """Without an argument the current time is used."""
        identifier = mint_identifier()

        assert identifier.startswith("wallpaper-")
        assert parse_identifier(identifier) is not None

    def test_parse_recovers_timestamp(self):
        """The timestamp encoded in the name is returned."""
        assert parse_identifier("wallpaper-2024-06-15T15-00-00") == datetime(2024, 6, 15, 15, 0, 0)

    @pytest.mark.parametrize("name", [
        "wallpaper-2024-06-15T15-00-00.jpg",
        "wallpaper-2024-06-15T15:00:00",
        "wallpaper-2024-06-15",
        ".wallpaper-2024-06-15T15-00-00.abc.part",
        "wallpaper-2024-06-15T15-00-00 (conflict)",
        "background",
        "",
    ])
    def test_parse_rejects_foreign_names(self, name):
        """Names that do not follow the pattern are not artifacts."""
        assert parse_identifier(name) is None
        assert is_artifact_name(name) is False

    def test_parse_rejects_impossible_dates(self):
        """A well-formed name with an invalid date is ignored rather than raising."""
        assert parse_identifier("wallpaper-2024-13-01T00-00-00") is None
        assert parse_identifier("wallpaper-2024-02-30T10-00-00") is None
        assert parse_identifier("wallpaper-2024-06-15T25-00-00") is None


class TestSharedFolderScan:
    """Test suite for scanning the shared folder."""

    def test_scan_keeps_only_artifacts(self, tmp_path):
        """Foreign files, temp files and directories are skipped."""
        (tmp_path / "wallpaper-2024-06-15T14-30-00").write_bytes(b"a")
        (tmp_path / "wallpaper-2024-13-01T00-00-00").write_bytes(b"corrupt")
        (tmp_path / "notes.txt").write_text("hello")
        (tmp_path / ".wallpaper-2024-06-15T16-00-00.x.part").write_bytes(b"partial")
        (tmp_path / "wallpaper-2024-06-15T17-00-00").mkdir()

        artifacts = scan_shared_folder(tmp_path)

        assert [a.identifier for a in artifacts] == ["wallpaper-2024-06-15T14-30-00"]
        assert artifacts[0].path == tmp_path / "wallpaper-2024-06-15T14-30-00"

    def test_scan_missing_folder_is_empty(self, tmp_path):
        """A shared folder that does not exist yet has no artifacts."""
        assert scan_shared_folder(tmp_path / "missing") == []


class TestSelectNewest:
    """Test suite for newest-artifact selection."""

    def test_newest_wins(self, tmp_path):
        """The later timestamp is selected."""
        older = WallpaperArtifact.from_path(tmp_path / "wallpaper-2024-06-15T14-30-00")
        newer = WallpaperArtifact.from_path(tmp_path / "wallpaper-2024-06-15T15-00-00")

        assert select_newest([older, newer]) == newer
        assert select_newest([newer, older]) == newer

    def test_empty_input(self):
        """No candidates yields None."""
        assert select_newest([]) is None

    def test_equal_timestamps_break_ties_on_identifier(self):
        """Equal timestamps fall back to the identifier string, independent of input order."""
        stamp = datetime(2024, 6, 15, 15, 0, 0)
        a = WallpaperArtifact("wallpaper-2024-06-15T15-00-00", stamp, Path("/shared/a"))
        b = WallpaperArtifact("wallpaper-2024-06-15T15-00-00~b", stamp, Path("/shared/b"))

        assert select_newest([a, b]) is b
        assert select_newest([b, a]) is b

    def test_from_path_rejects_foreign_name(self, tmp_path):
        """from_path returns None for non-artifact names."""
        assert WallpaperArtifact.from_path(tmp_path / "background") is None


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
