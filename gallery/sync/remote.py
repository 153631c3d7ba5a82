"""
Remote file model and the storage interface the pipeline consumes.
"""

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import BinaryIO, Optional, Protocol

SUPPORTED_EXTENSIONS = frozenset({".mp4", ".mov", ".avi", ".mkv", ".webm"})


def has_video_extension(name: str) -> bool:
    """Check a file name against the supported video extensions."""
    return Path(name).suffix.lower() in SUPPORTED_EXTENSIONS


def sanitize_filename(name: str) -> str:
    """Reduce a remote name to a bare, filesystem-safe file name."""
    sanitized = re.sub(r'[<>:"/\\|?*\x00-\x1f]', "_", name)
    sanitized = re.sub(r"\s+", " ", sanitized).strip()
    if sanitized in ("", ".", ".."):
        return "untitled"
    return sanitized


def _parse_datetime(value: Optional[str]) -> Optional[datetime]:
    """Parse an RFC 3339 timestamp as returned by the Drive API."""
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (ValueError, AttributeError):
        return None


@dataclass(frozen=True)
class RemoteFile:
    """A video file in the remote folder."""

    id: str  # Opaque ID assigned by the remote store
    name: str  # Used as the local file name
    size_bytes: Optional[int]
    modified_at: datetime
    mime_type: str = ""

    @property
    def is_video(self) -> bool:
        return has_video_extension(self.name) or self.mime_type.startswith("video/")

    @classmethod
    def from_api(cls, data: dict) -> "RemoteFile":
        """Create from a Drive `files` resource."""
        size = data.get("size")
        modified = _parse_datetime(data.get("modifiedTime"))
        return cls(
            id=data["id"],
            name=sanitize_filename(data.get("name", "")),
            size_bytes=int(size) if size is not None else None,
            modified_at=modified or datetime.fromtimestamp(0, tz=timezone.utc),
            mime_type=data.get("mimeType") or "",
        )


class RemoteStore(Protocol):
    """The two remote operations the pipeline depends on."""

    def list_videos(self) -> list[RemoteFile]:
        """List video files in the configured folder, newest first."""
        ...

    def download_to(self, file_id: str, fh: BinaryIO) -> None:
        """Stream a file's content into an open binary handle."""
        ...
