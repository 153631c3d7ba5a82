"""
Removes local videos that are no longer in the published manifest.
"""

import logging
from pathlib import Path

from pydantic import ValidationError

from gallery.sync.manifest import read_manifest
from gallery.sync.remote import has_video_extension

logger = logging.getLogger(__name__)

SENTINEL_FILES = frozenset({".gitkeep"})


class Reconciler:
    """
    Keeps the videos directory a subset of the manifest.

    Only files with a supported video extension are considered, and the
    sentinel file is never touched.
    """

    def __init__(self, videos_dir: Path, manifest_path: Path):
        self.videos_dir = Path(videos_dir)
        self.manifest_path = Path(manifest_path)

    def reconcile(self) -> list[str]:
        """
        Delete unlisted local videos.

        Returns:
            Names of the deleted files (empty if cleanup was skipped)
        """
        try:
            manifest = read_manifest(self.manifest_path)
            entries = sorted(self.videos_dir.iterdir())
        except (OSError, ValidationError) as e:
            logger.warning(f"Cleanup skipped: {e}")
            return []

        keep = manifest.names
        removed = []
        for path in entries:
            name = path.name
            if name in SENTINEL_FILES or not path.is_file():
                continue
            if not has_video_extension(name) or name in keep:
                continue
            try:
                path.unlink()
            except OSError as e:
                logger.error(f"Could not remove obsolete video {name}: {e}")
                continue
            removed.append(name)
            logger.info(f"Removed obsolete video: {name}")

        return removed
