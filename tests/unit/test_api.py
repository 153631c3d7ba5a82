"""
Tests for the FastAPI routes.
"""

from datetime import datetime, timezone
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from gallery.api import routes
from gallery.config import get_settings
from gallery.main import create_app
from gallery.sync.manifest import Manifest, ManifestRecord, ManifestWriter
from gallery.sync.orchestrator import SyncStats


@pytest.fixture
def api_settings(settings):
    return settings.model_copy(update={"admin_api_key": "secret-key"})


@pytest.fixture
def client(api_settings):
    app = create_app()
    app.dependency_overrides[get_settings] = lambda: api_settings
    with TestClient(app) as client:
        yield client


def _publish(settings, names, demo=None):
    records = [
        ManifestRecord(
            name=name,
            title=name.rsplit(".", 1)[0].title(),
            video_url=f"/videos/{name}",
            thumb_url=f"/thumbs/{name}.webp",
            download_url=f"/videos/{name}",
            size_bytes=10,
            last_modified=datetime(2024, 1, 2, tzinfo=timezone.utc),
            source_id=f"id-{name}",
        )
        for name in names
    ]
    manifest = Manifest(
        generated_at=datetime(2024, 1, 3, tzinfo=timezone.utc),
        count=len(records),
        videos=records,
        demo=demo,
    )
    ManifestWriter(settings.manifest_path).write_manifest(manifest)


class TestManifestEndpoint:
    """Tests for GET /videos.json."""

    def test_serves_published_manifest(self, client, api_settings):
        _publish(api_settings, ["a.mp4", "b.mov"])

        response = client.get("/videos.json")

        assert response.status_code == 200
        assert response.headers["cache-control"] == "no-cache"
        data = response.json()
        assert data["count"] == 2
        assert data["videos"][0]["videoUrl"] == "/videos/a.mp4"
        assert "demo" not in data

    def test_empty_demo_manifest_before_first_sync(self, client):
        response = client.get("/videos.json")

        assert response.status_code == 200
        data = response.json()
        assert data["count"] == 0
        assert data["videos"] == []
        assert data["demo"] is True


class TestInfoEndpoints:
    """Tests for health and gallery config."""

    def test_health(self, client, api_settings):
        _publish(api_settings, ["a.mp4"])

        data = client.get("/api/health").json()

        assert data["status"] == "healthy"
        assert data["video_count"] == 1
        assert data["demo"] is False
        assert data["credential_mode"] is None
        assert data["sync_in_progress"] is False

    def test_health_without_manifest(self, client):
        data = client.get("/api/health").json()

        assert data["video_count"] == 0
        assert data["demo"] is True

    def test_gallery_config_uses_camel_case(self, client):
        data = client.get("/api/gallery-config").json()

        assert data == {
            "previewMode": "thumbnail-lazy",
            "previewFlavor": "thumbnail",
            "autoplay": True,
            "lazyLoadThumbnails": True,
            "refreshSeconds": 30,
            "manifestUrl": "/videos.json",
        }


class TestSyncEndpoint:
    """Tests for POST /api/sync."""

    def test_requires_admin_key(self, client):
        assert client.post("/api/sync").status_code == 401
        assert client.post("/api/sync", headers={"X-Admin-Key": "wrong"}).status_code == 401

    def test_starts_background_sync(self, client):
        with patch.object(routes, "SyncOrchestrator") as orchestrator_cls:
            orchestrator_cls.return_value.run.return_value = SyncStats(published=3)

            response = client.post(
                "/api/sync", json={"cleanup": True}, headers={"X-Admin-Key": "secret-key"}
            )

        assert response.status_code == 202
        assert response.json()["status"] == "started"
        orchestrator_cls.return_value.run.assert_called_once_with(cleanup=True)
        assert not routes._sync_lock.locked()

    def test_background_failure_releases_lock(self, client):
        with patch.object(routes, "SyncOrchestrator") as orchestrator_cls:
            orchestrator_cls.return_value.run.side_effect = RuntimeError("boom")

            response = client.post("/api/sync", headers={"X-Admin-Key": "secret-key"})

        assert response.status_code == 202
        assert not routes._sync_lock.locked()

    def test_rejects_concurrent_sync(self, client):
        routes._sync_lock.acquire()
        try:
            response = client.post("/api/sync", headers={"X-Admin-Key": "secret-key"})
        finally:
            routes._sync_lock.release()

        assert response.status_code == 409
