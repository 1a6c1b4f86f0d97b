"""
Unit Tests for the Command-Line Entry Point

Only --once runs are exercised; the long-running loop is covered by the
orchestrator tests.

Author: WallSync Project
License: MIT
"""

import logging
import os
import pytest
import yaml

from wallsync.main import build_parser, main


@pytest.fixture(autouse=True)
def isolated(monkeypatch):
    for key in list(os.environ):
        if key.startswith("WALLSYNC_"):
            monkeypatch.delenv(key)
    yield
    root = logging.getLogger("wallsync")
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    root.propagate = True


def write_config(tmp_path, commands):
    config_path = tmp_path / "config.yaml"
    config_path.write_text(yaml.safe_dump({
        "app": {"log_to_file": False},
        "sync": {
            "background_path": str(tmp_path / "config" / "background"),
            "shared_folder": str(tmp_path / "shared"),
            "state_path": str(tmp_path / "state" / "handled.json"),
        },
        "apply": {
            "backend": "command",
            "commands": commands,
            "retry_attempts": 1,
        },
    }))
    return config_path


class TestParser:
    """Test suite for argument parsing."""

    def test_defaults(self):
        args = build_parser().parse_args([])

        assert args.config is None
        assert args.log_level is None
        assert args.once is False

    def test_log_level_case_insensitive(self):
        args = build_parser().parse_args(["--log-level", "debug", "--once", "-c", "/tmp/c.yaml"])

        assert args.log_level == "DEBUG"
        assert args.once is True
        assert args.config == "/tmp/c.yaml"


class TestMain:
    """Test suite for --once runs."""

    def test_once_applies_and_exits(self, tmp_path):
        """A successful catch-up exits 0 and records the artifact."""
        config_path = write_config(tmp_path, [["true"]])
        shared = tmp_path / "shared"
        shared.mkdir()
        (shared / "wallpaper-2024-06-15T15-00-00").write_bytes(b"image")

        assert main(["--config", str(config_path), "--once"]) == 0

        state = (tmp_path / "state" / "handled.json").read_text()
        assert "wallpaper-2024-06-15T15-00-00" in state

    def test_once_with_empty_shared_folder(self, tmp_path):
        """Nothing to do is still a success, and directories are created."""
        config_path = write_config(tmp_path, [["true"]])

        assert main(["-c", str(config_path), "--once"]) == 0
        assert (tmp_path / "shared").is_dir()

    def test_once_apply_failure_exits_nonzero(self, tmp_path):
        """A failed apply makes --once exit 1."""
        config_path = write_config(tmp_path, [["false"]])
        shared = tmp_path / "shared"
        shared.mkdir()
        (shared / "wallpaper-2024-06-15T15-00-00").write_bytes(b"image")

        assert main(["-c", str(config_path), "--once"]) == 1

    def test_invalid_config_exits_nonzero(self, tmp_path, capsys):
        """A configuration error is reported on stderr."""
        config_path = tmp_path / "config.yaml"
        config_path.write_text("sync:\n  local_debounce_ms: -1\n")

        assert main(["-c", str(config_path), "--once"]) == 1
        assert "wallsync:" in capsys.readouterr().err


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
