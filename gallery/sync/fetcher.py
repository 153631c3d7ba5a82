"""
Downloads new and changed remote files into local storage.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from gallery.sync.change_detector import FileState, classify
from gallery.sync.drive_client import REMOTE_ERRORS
from gallery.sync.errors import PerItemDownloadError
from gallery.sync.remote import RemoteFile, RemoteStore

logger = logging.getLogger(__name__)


@dataclass
class FetchResult:
    """Outcome of fetching one remote file."""

    remote: RemoteFile
    path: Path
    state: FileState  # State before the fetch

    @property
    def downloaded(self) -> bool:
        return self.state != FileState.CURRENT


class Fetcher:
    """
    Streams missing or stale files from a RemoteStore to a local directory.

    Each download goes to a `.part` sibling first and is renamed over the
    target only once complete, so the gallery never serves a torn file.
    """

    def __init__(self, store: RemoteStore, videos_dir: Path):
        self.store = store
        self.videos_dir = Path(videos_dir)

    def local_path(self, remote: RemoteFile) -> Path:
        return self.videos_dir / remote.name

    def fetch(self, remote: RemoteFile) -> FetchResult:
        """
        Download a remote file if the local copy is missing or stale.

        Raises:
            PerItemDownloadError: If the transfer fails or is incomplete
        """
        local_path = self.local_path(remote)
        state = classify(remote, local_path)

        if state == FileState.CURRENT:
            logger.info(f"Skipping (already up to date): {remote.name}")
            return FetchResult(remote=remote, path=local_path, state=state)

        logger.info(f"Downloading ({state.value}): {remote.name}")
        self._download(remote, local_path)
        logger.info(f"Downloaded: {remote.name}")
        return FetchResult(remote=remote, path=local_path, state=state)

    def _download(self, remote: RemoteFile, local_path: Path) -> None:
        local_path.parent.mkdir(parents=True, exist_ok=True)
        part_path = local_path.with_name(local_path.name + ".part")

        try:
            with open(part_path, "wb") as fh:
                self.store.download_to(remote.id, fh)
            written = part_path.stat().st_size
        except REMOTE_ERRORS as e:
            _remove_quietly(part_path)
            raise PerItemDownloadError(remote.name, str(e)) from e

        if remote.size_bytes is not None and written != remote.size_bytes:
            _remove_quietly(part_path)
            raise PerItemDownloadError(
                remote.name, f"expected {remote.size_bytes} bytes, got {written}"
            )

        os.replace(part_path, local_path)


def _remove_quietly(path: Path) -> None:
    try:
        path.unlink()
    except FileNotFoundError:
        pass
