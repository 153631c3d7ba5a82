"""
Unit tests for previews module (fingerprint-based preview memoization).
"""

import os
from pathlib import Path

import pytest

from gallery.sync.preview_cache import PreviewCache, fingerprint
from gallery.sync.previews import PreviewGenerator, derived_name, derived_url
from gallery.sync.transcoder import TranscodeOptions
from fakes import FakeTranscoder


@pytest.fixture
def video(tmp_path: Path) -> Path:
    videos = tmp_path / "videos"
    videos.mkdir()
    path = videos / "beach_day.mp4"
    path.write_bytes(b"source video")
    return path


def _generator(tmp_path: Path, transcoder, cache=None, flavor="thumbnail") -> PreviewGenerator:
    return PreviewGenerator(
        transcoder=transcoder,
        cache=cache or PreviewCache(tmp_path / ".thumb-cache.json"),
        output_dir=tmp_path / ("thumbs" if flavor == "thumbnail" else "previews"),
        options=TranscodeOptions(flavor=flavor),
    )


def _age(path: Path, seconds: float) -> None:
    """Move a file's mtime into the past."""
    st = path.stat()
    os.utime(path, (st.st_atime, st.st_mtime - seconds))


class TestDerivedNames:
    """Tests for deterministic preview names."""

    def test_thumbnail_name_keeps_extension(self):
        assert derived_name("a.mp4", "thumbnail") == "a.mp4.webp"
        assert derived_name("a.mov", "thumbnail") == "a.mov.webp"

    def test_clip_name(self):
        assert derived_name("a.mp4", "clip") == "preview_a.mp4"
        assert derived_name("a.mov", "clip") == "preview_a.mov.mp4"

    def test_urls_are_quoted(self):
        assert derived_url("my trip.mp4", "thumbnail") == "/thumbs/my%20trip.mp4.webp"
        assert derived_url("a.mp4", "clip") == "/previews/preview_a.mp4"


class TestPreviewGenerator:
    """Tests for PreviewGenerator.generate()."""

    def test_generates_missing_preview_and_records_cache(self, tmp_path: Path, video: Path):
        transcoder = FakeTranscoder()
        generator = _generator(tmp_path, transcoder)

        asset = generator.generate(video)

        assert asset is not None
        assert asset.regenerated
        assert asset.path == tmp_path / "thumbs" / "beach_day.mp4.webp"
        assert asset.path.exists()
        assert asset.url == "/thumbs/beach_day.mp4.webp"
        assert transcoder.calls == [("beach_day.mp4", "beach_day.mp4.webp")]
        assert generator.cache.matches("beach_day.mp4", fingerprint(video))

    def test_skips_when_cache_matches(self, tmp_path: Path, video: Path):
        transcoder = FakeTranscoder()
        generator = _generator(tmp_path, transcoder)
        generator.generate(video)

        # Make the preview older than the source; the cache hit alone must skip
        preview = generator.derived_path(video)
        _age(preview, 3600)

        asset = generator.generate(video)

        assert asset is not None
        assert not asset.regenerated
        assert len(transcoder.calls) == 1

    def test_skips_when_preview_newer_than_source(self, tmp_path: Path, video: Path):
        """No cache entry, but the preview on disk is newer than the video."""
        _age(video, 3600)
        preview = tmp_path / "thumbs" / "beach_day.mp4.webp"
        preview.parent.mkdir()
        preview.write_bytes(b"existing preview")

        transcoder = FakeTranscoder()
        asset = _generator(tmp_path, transcoder).generate(video)

        assert asset is not None
        assert not asset.regenerated
        assert transcoder.calls == []

    def test_regenerates_when_source_changed(self, tmp_path: Path, video: Path):
        transcoder = FakeTranscoder()
        generator = _generator(tmp_path, transcoder)
        generator.generate(video)
        _age(generator.derived_path(video), 3600)

        video.write_bytes(b"replaced source video")

        asset = generator.generate(video)

        assert asset.regenerated
        assert len(transcoder.calls) == 2

    def test_regenerates_when_preview_deleted(self, tmp_path: Path, video: Path):
        transcoder = FakeTranscoder()
        generator = _generator(tmp_path, transcoder)
        generator.generate(video)

        generator.derived_path(video).unlink()
        asset = generator.generate(video)

        assert asset.regenerated
        assert len(transcoder.calls) == 2

    def test_failure_returns_none_and_leaves_cache(self, tmp_path: Path, video: Path):
        transcoder = FakeTranscoder(fail_names={"beach_day.mp4"})
        generator = _generator(tmp_path, transcoder)

        assert generator.generate(video) is None
        assert generator.cache.get("beach_day.mp4") is None

    def test_clip_flavor_writes_to_previews(self, tmp_path: Path, video: Path):
        transcoder = FakeTranscoder()
        asset = _generator(tmp_path, transcoder, flavor="clip").generate(video)

        assert asset.flavor == "clip"
        assert asset.path == tmp_path / "previews" / "preview_beach_day.mp4"
        assert asset.url == "/previews/preview_beach_day.mp4"
