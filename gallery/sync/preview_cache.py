"""
Fingerprint cache for generated previews.

Persisted as JSON mapping a source file name to {"hash", "generated"}.
The fingerprint covers path, size and mtime, not file content, so checking
it never reads the video itself.
"""

import hashlib
import json
import logging
import os
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from gallery.sync.errors import CacheIOError

logger = logging.getLogger(__name__)


def fingerprint(path: Path) -> str:
    """md5 of "<path>:<size>:<mtime millis>" for a source video."""
    st = Path(path).stat()
    mtime_ms = st.st_mtime_ns // 1_000_000
    data = f"{path}:{st.st_size}:{mtime_ms}"
    return hashlib.md5(data.encode("utf-8")).hexdigest()


@dataclass
class CacheEntry:
    """Cache record for one source video."""

    source_key: str
    content_hash: str
    generated_at: datetime

    def to_dict(self) -> dict:
        return {
            "hash": self.content_hash,
            "generated": self.generated_at.isoformat().replace("+00:00", "Z"),
        }

    @classmethod
    def from_dict(cls, source_key: str, data: dict) -> "CacheEntry":
        generated = data.get("generated")
        try:
            generated_at = datetime.fromisoformat(generated.replace("Z", "+00:00"))
        except (ValueError, AttributeError):
            generated_at = datetime.fromtimestamp(0, tz=timezone.utc)
        return cls(source_key=source_key, content_hash=data["hash"], generated_at=generated_at)


class PreviewCache:
    """
    In-memory view of the cache file, safe to update from worker threads.

    Usage:
        cache = PreviewCache.load(path)
        if cache.matches("clip.mp4", fingerprint(video_path)):
            ...
        cache.record("clip.mp4", new_hash)
        cache.save()
    """

    def __init__(self, path: Path, entries: Optional[dict[str, CacheEntry]] = None):
        self.path = Path(path)
        self._entries: dict[str, CacheEntry] = dict(entries or {})
        self._lock = threading.Lock()

    @classmethod
    def load(cls, path: Path) -> "PreviewCache":
        """Load the cache file; an unreadable file yields an empty cache."""
        path = Path(path)
        try:
            entries = cls._read(path)
        except CacheIOError as e:
            logger.warning(f"Could not load cache: {e}")
            entries = {}
        return cls(path, entries)

    @staticmethod
    def _read(path: Path) -> dict[str, CacheEntry]:
        if not path.exists():
            return {}
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
            return {name: CacheEntry.from_dict(name, data) for name, data in raw.items()}
        except (OSError, ValueError, TypeError, KeyError, AttributeError) as e:
            raise CacheIOError(f"{path}: {e}") from e

    def get(self, name: str) -> Optional[CacheEntry]:
        with self._lock:
            return self._entries.get(name)

    def matches(self, name: str, content_hash: str) -> bool:
        entry = self.get(name)
        return entry is not None and entry.content_hash == content_hash

    def record(self, name: str, content_hash: str) -> CacheEntry:
        entry = CacheEntry(
            source_key=name,
            content_hash=content_hash,
            generated_at=datetime.now(timezone.utc),
        )
        with self._lock:
            self._entries[name] = entry
        return entry

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def save(self) -> bool:
        """
        Rewrite the whole cache file.

        Returns:
            True if saved; failures are logged and reported as False
        """
        with self._lock:
            data = {name: entry.to_dict() for name, entry in sorted(self._entries.items())}

        tmp = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(json.dumps(data, indent=2), encoding="utf-8")
            os.replace(tmp, self.path)
        except OSError as e:
            logger.warning(f"Could not save cache: {e}")
            return False
        return True
