"""
Preview generation with fingerprint memoization.

A preview is regenerated only when the source video's fingerprint has
changed and the existing preview is not newer than the source.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional
from urllib.parse import quote

from gallery.sync.errors import PerItemTranscodeError
from gallery.sync.preview_cache import PreviewCache, fingerprint
from gallery.sync.transcoder import PreviewFlavor, TranscodeOptions, Transcoder

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DerivedAsset:
    """A generated preview for one source video."""

    path: Path
    url: str
    flavor: PreviewFlavor
    regenerated: bool = False


def derived_name(video_name: str, flavor: PreviewFlavor) -> str:
    """
    Deterministic preview file name for a source video.

    The full source name is kept so that "a.mp4" and "a.mov" never share a
    preview.
    """
    if flavor == "clip":
        name = f"preview_{video_name}"
        return name if name.lower().endswith(".mp4") else f"{name}.mp4"
    return f"{video_name}.webp"


def derived_url(video_name: str, flavor: PreviewFlavor) -> str:
    directory = "previews" if flavor == "clip" else "thumbs"
    return f"/{directory}/{quote(derived_name(video_name, flavor))}"


class PreviewGenerator:
    """
    Produces one derived asset per local video.

    Usage:
        generator = PreviewGenerator(transcoder, cache, output_dir, options)
        asset = generator.generate(Path("videos/beach.mp4"))
        if asset is None:
            # generation failed, leave the video out of the manifest
            ...
    """

    def __init__(
        self,
        transcoder: Transcoder,
        cache: PreviewCache,
        output_dir: Path,
        options: TranscodeOptions,
    ):
        self.transcoder = transcoder
        self.cache = cache
        self.output_dir = Path(output_dir)
        self.options = options

    def derived_path(self, video_path: Path) -> Path:
        return self.output_dir / derived_name(video_path.name, self.options.flavor)

    def is_fresh(self, video_path: Path, content_hash: str) -> bool:
        """
        True when the existing preview can be reused.

        The preview must exist, and either the cached fingerprint matches or
        the preview file is strictly newer than the source.
        """
        preview_path = self.derived_path(video_path)
        if not preview_path.exists():
            return False
        if self.cache.matches(video_path.name, content_hash):
            return True
        return preview_path.stat().st_mtime_ns > video_path.stat().st_mtime_ns

    def generate(self, video_path: Path) -> Optional[DerivedAsset]:
        """
        Return the preview for a video, generating it if needed.

        Returns:
            The DerivedAsset, or None if transcoding failed
        """
        video_path = Path(video_path)
        name = video_path.name
        preview_path = self.derived_path(video_path)
        url = derived_url(name, self.options.flavor)

        content_hash = fingerprint(video_path)
        if self.is_fresh(video_path, content_hash):
            logger.info(f"Preview up to date: {preview_path.name}")
            return DerivedAsset(path=preview_path, url=url, flavor=self.options.flavor)

        logger.info(f"Generating {self.options.flavor} preview: {preview_path.name}")
        try:
            self.transcoder.transcode(video_path, preview_path, self.options)
        except PerItemTranscodeError as e:
            logger.error(str(e))
            return None

        self.cache.record(name, content_hash)
        logger.info(f"Preview generated: {preview_path.name}")
        return DerivedAsset(
            path=preview_path, url=url, flavor=self.options.flavor, regenerated=True
        )
