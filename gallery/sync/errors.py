"""
Exceptions raised by the sync pipeline.

Only ConfigError is fatal to a run. Everything else is caught by the
orchestrator and degrades the published manifest instead.
"""


class SyncError(Exception):
    """Base class for sync pipeline errors."""


class ConfigError(SyncError):
    """A required external dependency (e.g. ffmpeg) is unavailable."""


class RemoteListError(SyncError):
    """Listing the remote folder failed (network, auth, quota)."""


class PerItemDownloadError(SyncError):
    """Downloading a single file failed."""

    def __init__(self, name: str, reason: str):
        self.name = name
        self.reason = reason
        super().__init__(f"Download failed for {name}: {reason}")


class PerItemTranscodeError(SyncError):
    """Generating a preview for a single file failed."""

    def __init__(self, name: str, reason: str):
        self.name = name
        self.reason = reason
        super().__init__(f"Preview generation failed for {name}: {reason}")


class CacheIOError(SyncError):
    """The preview cache could not be read or written."""
