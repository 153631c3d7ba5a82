"""
The published video manifest (videos.json).

This document is the only contract with the browser gallery. Every write
replaces the whole file.
"""

import logging
import os
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional
from urllib.parse import quote

from pydantic import BaseModel, ConfigDict, Field

from gallery.sync.previews import DerivedAsset

logger = logging.getLogger(__name__)


class ManifestRecord(BaseModel):
    """One video in the gallery."""

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., description="Local file name of the video")
    title: str = Field(..., description="Display title")
    video_url: str = Field(..., alias="videoUrl")
    preview_url: Optional[str] = Field(None, alias="previewUrl")
    thumb_url: Optional[str] = Field(None, alias="thumbUrl")
    download_url: str = Field(..., alias="downloadUrl")
    size_bytes: int = Field(..., alias="sizeBytes")
    last_modified: datetime = Field(..., alias="lastModified")
    source_id: str = Field(..., alias="sourceId")


class Manifest(BaseModel):
    """Envelope written to videos.json."""

    model_config = ConfigDict(populate_by_name=True)

    generated_at: datetime = Field(..., alias="generatedAt")
    count: int
    videos: list[ManifestRecord] = Field(default_factory=list)
    demo: Optional[bool] = None

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True, indent=2)

    @property
    def names(self) -> set[str]:
        return {record.name for record in self.videos}


@dataclass
class ProcessedVideo:
    """A local video together with its preview, ready to publish."""

    name: str
    video_path: Path
    preview: DerivedAsset
    size_bytes: int
    last_modified: datetime
    source_id: str


def title_from_name(name: str) -> str:
    """Convert a file name to a readable title: "my_trip-2024.mp4" -> "My Trip 2024"."""
    stem = Path(name).stem
    words = re.sub(r"[-_]", " ", stem).split()
    return " ".join(word[:1].upper() + word[1:] for word in words)


def _title_sort_key(record: ManifestRecord) -> tuple[str, str, str]:
    return (record.title.casefold(), record.title, record.name)


def to_record(video: ProcessedVideo) -> ManifestRecord:
    video_url = f"/videos/{quote(video.name)}"
    is_clip = video.preview.flavor == "clip"
    return ManifestRecord(
        name=video.name,
        title=title_from_name(video.name),
        video_url=video_url,
        preview_url=video.preview.url if is_clip else None,
        thumb_url=None if is_clip else video.preview.url,
        download_url=video_url,
        size_bytes=video.size_bytes,
        last_modified=video.last_modified,
        source_id=video.source_id,
    )


def build_records(videos: list[ProcessedVideo]) -> list[ManifestRecord]:
    """
    Turn processed videos into manifest records sorted by title.

    Videos whose local file or preview is gone are left out, so the
    manifest never points at a missing asset.
    """
    records = []
    for video in videos:
        if not video.video_path.is_file():
            logger.warning(f"Not publishing {video.name}: video file missing")
            continue
        if not video.preview.path.is_file():
            logger.warning(f"Not publishing {video.name}: preview missing")
            continue
        records.append(to_record(video))
    return sorted(records, key=_title_sort_key)


class ManifestWriter:
    """Writes the manifest document to its published path."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def write(self, videos: list[ProcessedVideo], demo: bool = False) -> Manifest:
        records = build_records(videos)
        manifest = Manifest(
            generated_at=datetime.now(timezone.utc),
            count=len(records),
            videos=records,
            demo=True if demo else None,
        )
        self.write_manifest(manifest)
        label = "demo videos.json" if demo else "videos.json"
        logger.info(f"Wrote {label} with {manifest.count} videos")
        return manifest

    def write_manifest(self, manifest: Manifest) -> None:
        """Replace the published document via a temp file and rename."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_name(self.path.name + ".tmp")
        tmp.write_text(manifest.to_json() + "\n", encoding="utf-8")
        os.replace(tmp, self.path)


def read_manifest(path: Path) -> Manifest:
    """
    Load a published manifest.

    Raises:
        OSError: If the file cannot be read
        pydantic.ValidationError: If the content is not a manifest
    """
    return Manifest.model_validate_json(Path(path).read_text(encoding="utf-8"))


def empty_manifest() -> Manifest:
    """Placeholder served before the first run has published anything."""
    return Manifest(generated_at=datetime.now(timezone.utc), count=0, videos=[], demo=True)
