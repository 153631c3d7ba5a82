"""
Unit tests for preview_cache module.
"""

import json
import os
from pathlib import Path

from gallery.sync.preview_cache import PreviewCache, fingerprint


class TestFingerprint:
    """Tests for the path + size + mtime fingerprint."""

    def test_stable_for_unchanged_file(self, tmp_path: Path):
        video = tmp_path / "a.mp4"
        video.write_bytes(b"data")
        assert fingerprint(video) == fingerprint(video)

    def test_changes_with_mtime(self, tmp_path: Path):
        video = tmp_path / "a.mp4"
        video.write_bytes(b"data")
        before = fingerprint(video)

        st = video.stat()
        os.utime(video, (st.st_atime, st.st_mtime + 5))

        assert fingerprint(video) != before

    def test_changes_with_size(self, tmp_path: Path):
        video = tmp_path / "a.mp4"
        video.write_bytes(b"data")
        st = video.stat()
        before = fingerprint(video)

        video.write_bytes(b"more data")
        os.utime(video, (st.st_atime, st.st_mtime))

        assert fingerprint(video) != before

    def test_is_md5_hex(self, tmp_path: Path):
        video = tmp_path / "a.mp4"
        video.write_bytes(b"data")
        value = fingerprint(video)
        assert len(value) == 32
        int(value, 16)


class TestPreviewCache:
    """Tests for loading and saving the cache file."""

    def test_missing_file_loads_empty(self, tmp_path: Path):
        cache = PreviewCache.load(tmp_path / ".thumb-cache.json")
        assert len(cache) == 0

    def test_corrupt_file_loads_empty(self, tmp_path: Path):
        path = tmp_path / ".thumb-cache.json"
        path.write_text("{not json", encoding="utf-8")

        cache = PreviewCache.load(path)

        assert len(cache) == 0

    def test_entry_without_hash_loads_empty(self, tmp_path: Path):
        path = tmp_path / ".thumb-cache.json"
        path.write_text(json.dumps({"a.mp4": {"generated": "2024-01-01T00:00:00Z"}}), encoding="utf-8")

        assert len(PreviewCache.load(path)) == 0

    def test_save_writes_hash_and_generated(self, tmp_path: Path):
        path = tmp_path / ".thumb-cache.json"
        cache = PreviewCache(path)
        cache.record("a.mp4", "abc123")

        assert cache.save() is True

        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["a.mp4"]["hash"] == "abc123"
        assert data["a.mp4"]["generated"].endswith("Z")
        assert not (tmp_path / ".thumb-cache.json.tmp").exists()

    def test_saved_cache_reloads_matching(self, tmp_path: Path):
        path = tmp_path / ".thumb-cache.json"
        cache = PreviewCache(path)
        cache.record("a.mp4", "abc123")
        cache.save()

        reloaded = PreviewCache.load(path)

        assert reloaded.matches("a.mp4", "abc123")
        assert not reloaded.matches("a.mp4", "other")
        assert not reloaded.matches("b.mp4", "abc123")

    def test_save_failure_returns_false(self, tmp_path: Path):
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("file", encoding="utf-8")
        cache = PreviewCache(blocker / ".thumb-cache.json")
        cache.record("a.mp4", "abc123")

        assert cache.save() is False
