"""
Video sync package for the gallery.

Pulls videos from a Google Drive folder, generates short previews with
ffmpeg, and publishes the videos.json manifest read by the browser gallery.
"""

from gallery.sync.errors import (
    SyncError,
    ConfigError,
    RemoteListError,
    PerItemDownloadError,
    PerItemTranscodeError,
    CacheIOError,
)
from gallery.sync.remote import RemoteFile, RemoteStore
from gallery.sync.drive_client import DriveClient
from gallery.sync.manifest import Manifest, ManifestRecord
from gallery.sync.orchestrator import SyncOrchestrator, SyncStats
from gallery.sync.runner import ContinuousSync

__all__ = [
    "SyncError",
    "ConfigError",
    "RemoteListError",
    "PerItemDownloadError",
    "PerItemTranscodeError",
    "CacheIOError",
    "RemoteFile",
    "RemoteStore",
    "DriveClient",
    "Manifest",
    "ManifestRecord",
    "SyncOrchestrator",
    "SyncStats",
    "ContinuousSync",
]
