"""
Shared fixtures: isolated settings and a fake transcoder.
"""

from pathlib import Path

import pytest

from gallery.config import Settings
from fakes import FakeTranscoder


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings pointing every path into tmp_path, with no Drive credentials."""
    return Settings(
        _env_file=None,
        google_drive_folder_id="",
        google_service_account_key_file="",
        google_service_account_key="",
        google_client_id="",
        google_client_secret="",
        google_refresh_token="",
        videos_dir=tmp_path / "videos",
        previews_dir=tmp_path / "previews",
        thumbs_dir=tmp_path / "thumbs",
        manifest_path=tmp_path / "videos.json",
        cache_path=tmp_path / ".thumb-cache.json",
        preview_flavor="thumbnail",
        sync_workers=1,
    )


@pytest.fixture
def transcoder() -> FakeTranscoder:
    return FakeTranscoder()
