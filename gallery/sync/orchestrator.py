"""
Sync orchestrator for the video gallery.

Coordinates:
1. Listing videos in the Drive folder
2. Downloading new or changed files
3. Preview generation (memoized by fingerprint)
4. Publishing videos.json
5. Optional cleanup of local videos no longer on Drive

Falls back to a demo manifest built from local files when Drive is not
configured or cannot be listed.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional, TypeVar

from pydantic import ValidationError

from gallery.config import Settings, get_settings
from gallery.sync.change_detector import LocalAsset
from gallery.sync.drive_client import DriveClient
from gallery.sync.errors import PerItemDownloadError, RemoteListError
from gallery.sync.fetcher import Fetcher
from gallery.sync.manifest import Manifest, ManifestWriter, ProcessedVideo, read_manifest
from gallery.sync.preview_cache import PreviewCache
from gallery.sync.previews import PreviewGenerator
from gallery.sync.reconciler import Reconciler
from gallery.sync.remote import RemoteFile, RemoteStore, has_video_extension
from gallery.sync.transcoder import FFmpegTranscoder, TranscodeOptions, Transcoder

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

DEMO_SOURCE_ID = "demo"


@dataclass
class ItemOutcome:
    """What happened to a single video during a run."""

    name: str
    video: Optional[ProcessedVideo] = None
    downloaded: bool = False
    preview_generated: bool = False
    error: Optional[str] = None


@dataclass
class SyncStats:
    """Statistics from a sync run."""

    demo: bool = False
    discovered: int = 0
    downloaded: int = 0
    up_to_date: int = 0
    previews_generated: int = 0
    previews_reused: int = 0
    published: int = 0
    failed: int = 0
    removed: int = 0
    errors: list[str] = field(default_factory=list)

    def record(self, outcome: ItemOutcome) -> None:
        if outcome.downloaded:
            self.downloaded += 1
        if outcome.error:
            self.failed += 1
            self.errors.append(outcome.error)
            return
        if not outcome.downloaded and not self.demo:
            self.up_to_date += 1
        if outcome.preview_generated:
            self.previews_generated += 1
        else:
            self.previews_reused += 1

    def __str__(self) -> str:
        return (
            f"Mode: {'DEMO (local files only)' if self.demo else 'Google Drive'}\n"
            f"Discovered: {self.discovered}\n"
            f"Downloaded: {self.downloaded}\n"
            f"Already up to date: {self.up_to_date}\n"
            f"Previews generated: {self.previews_generated}\n"
            f"Previews reused: {self.previews_reused}\n"
            f"Published: {self.published}\n"
            f"Failed: {self.failed}\n"
            f"Removed: {self.removed}\n"
            f"Errors: {len(self.errors)}"
        )


class SyncOrchestrator:
    """
    Runs the gallery sync pipeline.

    Usage:
        orchestrator = SyncOrchestrator()

        # Check ffmpeg before doing anything (raises ConfigError)
        orchestrator.check_dependencies()

        # Sync from Drive and publish videos.json
        stats = orchestrator.sync()

        # Sync, then delete local videos no longer on Drive
        stats = orchestrator.run(cleanup=True)
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        store: Optional[RemoteStore] = None,
        transcoder: Optional[Transcoder] = None,
    ):
        """
        Initialize the orchestrator.

        Args:
            settings: Settings instance (defaults to the cached environment settings)
            store: Remote store to sync from (built from settings if not provided)
            transcoder: Preview transcoder (ffmpeg if not provided)
        """
        self.settings = settings or get_settings()
        self.transcoder = transcoder or FFmpegTranscoder(
            ffmpeg_path=self.settings.ffmpeg_path,
            timeout_seconds=self.settings.transcode_timeout_seconds,
        )
        self.writer = ManifestWriter(self.settings.manifest_path)

        # Drive client is lazy-initialized
        self._store = store
        self._store_resolved = store is not None

    @property
    def store(self) -> Optional[RemoteStore]:
        """Lazy-load the Drive client; None means demo mode."""
        if not self._store_resolved:
            self._store = DriveClient.from_settings(self.settings)
            self._store_resolved = True
        return self._store

    def check_dependencies(self) -> None:
        """
        Raises:
            ConfigError: If the transcoding tool is unavailable
        """
        self.transcoder.ensure_available()

    def _ensure_dirs(self) -> None:
        for directory in (self.settings.videos_dir, self.settings.derived_dir):
            Path(directory).mkdir(parents=True, exist_ok=True)

    def _map(self, fn: Callable[[T], R], items: list[T]) -> list[R]:
        """Apply fn to each item, in parallel when configured, keeping order."""
        workers = self.settings.sync_workers
        if workers <= 1 or len(items) <= 1:
            return [fn(item) for item in items]
        with ThreadPoolExecutor(max_workers=workers) as executor:
            return list(executor.map(fn, items))

    def sync(self) -> SyncStats:
        """
        Run one sync pass and publish videos.json.

        Returns:
            SyncStats with results

        Raises:
            ConfigError: If the transcoding tool is unavailable
        """
        self.check_dependencies()
        self._ensure_dirs()

        cache = PreviewCache.load(self.settings.cache_path)
        generator = PreviewGenerator(
            transcoder=self.transcoder,
            cache=cache,
            output_dir=self.settings.derived_dir,
            options=TranscodeOptions.from_settings(self.settings),
        )

        store = self.store
        if store is None:
            logger.info("Demo mode: building videos.json from local files")
            stats = self._publish_local(generator)
        else:
            logger.info("Starting Google Drive video sync...")
            try:
                remote_files = store.list_videos()
            except RemoteListError as e:
                logger.error(f"Sync failed: {e}")
                logger.info("Creating fallback videos.json from local files")
                stats = self._publish_local(generator)
                stats.errors.insert(0, str(e))
            else:
                logger.info(f"Found {len(remote_files)} videos in Google Drive")
                stats = self._publish_remote(store, remote_files, generator)

        cache.save()
        return stats

    def run(self, cleanup: bool = False) -> SyncStats:
        """Sync, then optionally reconcile local storage with the new manifest."""
        stats = self.sync()
        if cleanup:
            stats.removed = len(self.cleanup())
        return stats

    def cleanup(self) -> list[str]:
        """Delete local videos that are not in the published manifest."""
        reconciler = Reconciler(self.settings.videos_dir, self.settings.manifest_path)
        return reconciler.reconcile()

    def _publish_remote(
        self,
        store: RemoteStore,
        remote_files: list[RemoteFile],
        generator: PreviewGenerator,
    ) -> SyncStats:
        stats = SyncStats(discovered=len(remote_files))
        fetcher = Fetcher(store, self.settings.videos_dir)

        def process(remote: RemoteFile) -> ItemOutcome:
            return self._guard(remote.name, lambda: self._process_remote(remote, fetcher, generator))

        outcomes = self._map(process, remote_files)
        manifest = self._write(outcomes, stats, demo=False)
        logger.info(f"Sync completed: {manifest.count} of {stats.discovered} videos published")
        return stats

    def _process_remote(
        self, remote: RemoteFile, fetcher: Fetcher, generator: PreviewGenerator
    ) -> ItemOutcome:
        try:
            result = fetcher.fetch(remote)
        except PerItemDownloadError as e:
            logger.error(str(e))
            return ItemOutcome(name=remote.name, error=str(e))

        preview = generator.generate(result.path)
        if preview is None:
            return ItemOutcome(
                name=remote.name,
                downloaded=result.downloaded,
                error=f"Preview generation failed for {remote.name}",
            )

        size = remote.size_bytes
        if size is None:
            size = result.path.stat().st_size

        video = ProcessedVideo(
            name=remote.name,
            video_path=result.path,
            preview=preview,
            size_bytes=size,
            last_modified=remote.modified_at,
            source_id=remote.id,
        )
        return ItemOutcome(
            name=remote.name,
            video=video,
            downloaded=result.downloaded,
            preview_generated=preview.regenerated,
        )

    def _publish_local(self, generator: PreviewGenerator) -> SyncStats:
        """Publish whatever videos already exist locally, flagged as demo."""
        stats = SyncStats(demo=True)
        videos_dir = Path(self.settings.videos_dir)
        try:
            paths = sorted(
                p for p in videos_dir.iterdir() if p.is_file() and has_video_extension(p.name)
            )
        except OSError as e:
            logger.warning(f"No existing videos found: {e}")
            paths = []

        stats.discovered = len(paths)

        def process(path: Path) -> ItemOutcome:
            return self._guard(path.name, lambda: self._process_local(path, generator))

        outcomes = self._map(process, paths)
        self._write(outcomes, stats, demo=True)
        return stats

    def _process_local(self, path: Path, generator: PreviewGenerator) -> ItemOutcome:
        local = LocalAsset.stat(path)
        if local is None:
            return ItemOutcome(name=path.name, error=f"Video disappeared: {path.name}")

        preview = generator.generate(path)
        if preview is None:
            return ItemOutcome(name=path.name, error=f"Preview generation failed for {path.name}")

        video = ProcessedVideo(
            name=path.name,
            video_path=path,
            preview=preview,
            size_bytes=local.size_bytes,
            last_modified=local.modified_at,
            source_id=DEMO_SOURCE_ID,
        )
        return ItemOutcome(name=path.name, video=video, preview_generated=preview.regenerated)

    def _guard(self, name: str, fn: Callable[[], ItemOutcome]) -> ItemOutcome:
        """Contain unexpected errors to the item that raised them."""
        try:
            return fn()
        except Exception as e:
            error_msg = f"Error processing {name}: {e}"
            logger.exception(error_msg)
            return ItemOutcome(name=name, error=error_msg)

    def _write(self, outcomes: list[ItemOutcome], stats: SyncStats, demo: bool) -> Manifest:
        for outcome in outcomes:
            stats.record(outcome)
        videos = [o.video for o in outcomes if o.video is not None]
        manifest = self.writer.write(videos, demo=demo)
        stats.published = manifest.count
        return manifest

    def get_status(self) -> dict:
        """Summarize the currently published manifest."""
        try:
            manifest = read_manifest(self.settings.manifest_path)
        except (OSError, ValidationError) as e:
            return {"error": str(e)}
        return {
            "generated_at": manifest.generated_at.isoformat(),
            "count": manifest.count,
            "demo": bool(manifest.demo),
            "credential_mode": self.settings.credential_mode,
        }
