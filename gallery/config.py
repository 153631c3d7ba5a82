"""
Configuration management using Pydantic Settings.
Loads from environment variables with sensible defaults for development.
"""

from pathlib import Path
from functools import lru_cache
from typing import Literal, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict

PROJECT_ROOT = Path(__file__).parent.parent

CredentialMode = Literal["service_account_file", "service_account_json", "oauth"]


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Google Drive source
    google_drive_folder_id: str = ""
    google_service_account_key_file: str = ""  # Path to service account JSON (relative to project root)
    google_service_account_key: str = ""  # Service account JSON as a string
    google_client_id: str = ""
    google_client_secret: str = ""
    google_refresh_token: str = ""

    # Paths
    videos_dir: Path = PROJECT_ROOT / "videos"
    previews_dir: Path = PROJECT_ROOT / "previews"
    thumbs_dir: Path = PROJECT_ROOT / "thumbs"
    manifest_path: Path = PROJECT_ROOT / "videos.json"
    cache_path: Path = PROJECT_ROOT / ".thumb-cache.json"

    # Preview generation
    preview_flavor: Literal["clip", "thumbnail"] = "thumbnail"
    ffmpeg_path: str = "ffmpeg"
    preview_duration_seconds: float = 0.5
    preview_fps: int = 30
    preview_width: int = 540
    preview_height: int = 960
    preview_quality: int = 85
    transcode_timeout_seconds: int = 300

    # Sync behaviour
    sync_workers: int = 1  # >1 fans out fetch + preview per file
    http_timeout_seconds: int = 60
    sync_interval_seconds: float = 10.0  # Continuous runner tick
    sync_retry_delay_seconds: float = 5.0  # Delay after a failed run

    # Gallery display options (served to the browser)
    gallery_preview_mode: Literal["inline-loop", "click-to-play", "thumbnail-lazy"] = "thumbnail-lazy"
    gallery_autoplay: bool = True
    gallery_lazy_load_thumbnails: bool = True
    gallery_refresh_seconds: int = 30

    # Server settings
    admin_api_key: str = "dev-admin-key"  # For protected endpoints
    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False

    @property
    def credential_mode(self) -> Optional[CredentialMode]:
        """Which Drive credential source is configured, in order of preference."""
        if self.google_service_account_key_file:
            return "service_account_file"
        if self.google_service_account_key:
            return "service_account_json"
        if self.google_client_id and self.google_client_secret and self.google_refresh_token:
            return "oauth"
        return None

    @property
    def is_demo(self) -> bool:
        """True when there is no way to reach the Drive folder."""
        return self.credential_mode is None or not self.google_drive_folder_id

    @property
    def derived_dir(self) -> Path:
        """Directory holding the active preview flavor's assets."""
        return self.previews_dir if self.preview_flavor == "clip" else self.thumbs_dir


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
