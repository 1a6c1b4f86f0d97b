"""
Unit Tests for the Handled-Set Store

Tests persistence format, atomic writes, corrupt-state recovery and the
claim/mark discipline that keeps concurrent passes from acting twice.

Author: WallSync Project
License: MIT
"""

import json
import threading
import time
import pytest

from wallsync.core import handled_store
from wallsync.core.handled_store import HandledSetStore, read_handled_set
from wallsync.exceptions import CorruptStateError

ID_A = "wallpaper-2024-06-15T14-30-00"
ID_B = "wallpaper-2024-06-15T15-00-00"


@pytest.fixture
def state_path(tmp_path):
    return tmp_path / "state" / "handled.json"


class TestPersistence:
    """Test suite for loading and saving the handled-set."""

    def test_absent_file_is_empty(self, state_path):
        """First run starts with an empty set and creates nothing."""
        store = HandledSetStore(state_path)

        assert store.load() == 0
        assert len(store) == 0
        assert not state_path.exists()

    def test_mark_persists_schema(self, state_path):
        """Marked identifiers are written under handledWallpapers."""
        store = HandledSetStore(state_path)
        store.mark_handled(ID_B)
        store.mark_handled(ID_A)

        data = json.loads(state_path.read_text())
        assert data == {"handledWallpapers": [ID_A, ID_B]}

    def test_reload_from_disk(self, state_path):
        """A new store instance sees what an earlier one marked."""
        HandledSetStore(state_path).mark_handled(ID_A)

        fresh = HandledSetStore(state_path)
        fresh.load()

        assert ID_A in fresh
        assert fresh.contains(ID_B) is False

    def test_no_temp_files_left_behind(self, state_path):
        """Atomic writes clean up their temporary files."""
        store = HandledSetStore(state_path)
        store.mark_handled(ID_A)
        store.mark_handled(ID_B)

        assert [p.name for p in state_path.parent.iterdir()] == ["handled.json"]

    def test_mark_is_idempotent(self, state_path):
        """Marking twice reports the duplicate and stores one entry."""
        store = HandledSetStore(state_path)

        assert store.mark_handled(ID_A) is True
        assert store.mark_handled(ID_A) is False
        assert json.loads(state_path.read_text())["handledWallpapers"] == [ID_A]

    def test_failed_write_is_rolled_back(self, state_path, monkeypatch):
        """If the set cannot be persisted the identifier is not considered handled."""
        store = HandledSetStore(state_path)
        store.load()

        def fail(path, identifiers):
            raise OSError("disk full")

        monkeypatch.setattr(handled_store, "write_handled_set", fail)

        with pytest.raises(OSError):
            store.mark_handled(ID_A)
        assert ID_A not in store


class TestCorruptState:
    """Test suite for unreadable state files."""

    @pytest.mark.parametrize("content", [
        "{not json",
        "[]",
        "{}",
        '{"handledWallpapers": "wallpaper-2024-06-15T14-30-00"}',
        '{"handledWallpapers": [1, 2]}',
        b"\x89PNG\r\n\x1a\n garbage \xff",
    ])
    def test_read_rejects_bad_content(self, state_path, content):
        """Invalid JSON, undecodable bytes or a schema mismatch raise CorruptStateError."""
        state_path.parent.mkdir(parents=True)
        if isinstance(content, bytes):
            state_path.write_bytes(content)
        else:
            state_path.write_text(content)

        with pytest.raises(CorruptStateError):
            read_handled_set(state_path)

    def test_load_recovers_with_quarantine(self, state_path):
        """A corrupt file is moved aside and the store starts empty."""
        state_path.parent.mkdir(parents=True)
        state_path.write_text("{not json")

        store = HandledSetStore(state_path, quarantine_corrupt=True)

        assert store.load() == 0
        assert not state_path.exists()
        assert store.quarantined_path is not None
        assert store.quarantined_path.read_text() == "{not json"
        assert store.quarantined_path.name.startswith("handled.json.corrupt-")

    def test_load_recovers_from_binary_garbage(self, state_path):
        """A state file that is not text at all is quarantined like any other corruption."""
        state_path.parent.mkdir(parents=True)
        state_path.write_bytes(b"\x89PNG\r\n\x1a\n garbage \xff")

        store = HandledSetStore(state_path)

        assert store.load() == 0
        assert not state_path.exists()
        assert store.quarantined_path.read_bytes().startswith(b"\x89PNG")

    def test_load_recovers_without_quarantine(self, state_path):
        """With quarantine disabled the file stays until the next write replaces it."""
        state_path.parent.mkdir(parents=True)
        state_path.write_text('{"other": []}')

        store = HandledSetStore(state_path, quarantine_corrupt=False)
        store.load()

        assert state_path.read_text() == '{"other": []}'
        store.mark_handled(ID_A)
        assert json.loads(state_path.read_text()) == {"handledWallpapers": [ID_A]}


class TestClaim:
    """Test suite for claiming identifiers."""

    def test_claim_unhandled(self, state_path):
        """An unhandled identifier can be claimed."""
        store = HandledSetStore(state_path)

        with store.claim(ID_A) as claimed:
            assert claimed is True

    def test_claim_handled(self, state_path):
        """A handled identifier cannot be claimed."""
        store = HandledSetStore(state_path)
        store.mark_handled(ID_A)

        with store.claim(ID_A) as claimed:
            assert claimed is False

    def test_claim_is_exclusive_while_held(self, state_path):
        """A second claim on the same identifier fails until the first is released."""
        store = HandledSetStore(state_path)

        with store.claim(ID_A) as first:
            with store.claim(ID_A) as second:
                assert first is True
                assert second is False
            with store.claim(ID_B) as other:
                assert other is True

        with store.claim(ID_A) as again:
            assert again is True

    def test_concurrent_passes_act_once(self, state_path):
        """Many threads racing on one identifier: exactly one acts."""
        store = HandledSetStore(state_path)
        store.load()
        acted = []
        lock = threading.Lock()

        def worker():
            with store.claim(ID_A) as claimed:
                if claimed:
                    time.sleep(0.05)
                    store.mark_handled(ID_A)
                    with lock:
                        acted.append(threading.get_ident())

        threads = [threading.Thread(target=worker) for _ in range(20)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(acted) == 1
        assert store.snapshot() == {ID_A}


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
