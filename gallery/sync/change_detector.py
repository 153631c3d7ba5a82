"""
Decides whether a remote file needs to be (re)downloaded.
"""

import enum
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from gallery.sync.remote import RemoteFile


class FileState(str, enum.Enum):
    MISSING = "missing"
    STALE = "stale"
    CURRENT = "current"


@dataclass(frozen=True)
class LocalAsset:
    """Filesystem state of a local copy."""

    path: Path
    size_bytes: int
    modified_at: datetime

    @classmethod
    def stat(cls, path: Path) -> Optional["LocalAsset"]:
        """Stat a path; None when there is no regular file there."""
        try:
            st = path.stat()
        except FileNotFoundError:
            return None
        if not path.is_file():
            return None
        return cls(
            path=path,
            size_bytes=st.st_size,
            modified_at=datetime.fromtimestamp(st.st_mtime, tz=timezone.utc),
        )


def classify(remote: RemoteFile, local_path: Path) -> FileState:
    """
    Compare a remote file with its local copy.

    No tolerance is applied for clock skew: a remote timestamp strictly
    newer than the local mtime makes the copy stale, an equal one does not.
    """
    local = LocalAsset.stat(local_path)
    if local is None:
        return FileState.MISSING
    if remote.modified_at > local.modified_at:
        return FileState.STALE
    return FileState.CURRENT
