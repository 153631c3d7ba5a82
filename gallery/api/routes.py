"""
API route handlers for the video gallery.
"""

import logging
import threading
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Header, HTTPException
from fastapi.responses import Response
from pydantic import ValidationError

from gallery.config import Settings, get_settings
from gallery.api.models import (
    ErrorResponse,
    GalleryConfigResponse,
    HealthResponse,
    SyncRequest,
    SyncResponse,
)
from gallery.sync.errors import ConfigError
from gallery.sync.manifest import Manifest, empty_manifest, read_manifest
from gallery.sync.orchestrator import SyncOrchestrator

logger = logging.getLogger(__name__)

router = APIRouter()
manifest_router = APIRouter()

# One sync at a time per process
_sync_lock = threading.Lock()


def verify_admin_key(
    x_admin_key: Optional[str] = Header(None),
    settings: Settings = Depends(get_settings),
) -> str:
    """Verify admin API key for protected endpoints."""
    if not x_admin_key or x_admin_key != settings.admin_api_key:
        raise HTTPException(status_code=401, detail="Invalid or missing admin key")
    return x_admin_key


def load_published_manifest(settings: Settings) -> Optional[Manifest]:
    """The manifest on disk, or None if nothing usable has been published."""
    try:
        return read_manifest(settings.manifest_path)
    except FileNotFoundError:
        return None
    except (OSError, ValidationError) as e:
        logger.warning(f"Could not read {settings.manifest_path}: {e}")
        return None


@manifest_router.get("/videos.json")
async def videos_manifest(settings: Settings = Depends(get_settings)):
    """
    The gallery manifest.

    Before the first sync has published anything, an empty demo manifest is
    returned so the browser always has something to render.
    """
    manifest = load_published_manifest(settings) or empty_manifest()
    return Response(
        content=manifest.to_json(),
        media_type="application/json",
        headers={"Cache-Control": "no-cache"},
    )


@router.get("/health", response_model=HealthResponse)
async def health(settings: Settings = Depends(get_settings)):
    """Health check with a summary of the published manifest."""
    manifest = load_published_manifest(settings)
    return HealthResponse(
        status="healthy",
        video_count=manifest.count if manifest else 0,
        demo=bool(manifest.demo) if manifest else True,
        generated_at=manifest.generated_at.isoformat() if manifest else None,
        credential_mode=settings.credential_mode,
        sync_in_progress=_sync_lock.locked(),
    )


@router.get("/gallery-config", response_model=GalleryConfigResponse, response_model_by_alias=True)
async def gallery_config(settings: Settings = Depends(get_settings)):
    """Display options for the single configurable gallery component."""
    return GalleryConfigResponse(
        preview_mode=settings.gallery_preview_mode,
        preview_flavor=settings.preview_flavor,
        autoplay=settings.gallery_autoplay,
        lazy_load_thumbnails=settings.gallery_lazy_load_thumbnails,
        refresh_seconds=settings.gallery_refresh_seconds,
    )


def _run_sync(settings: Settings, cleanup: bool) -> None:
    """Background task body; the lock is already held."""
    try:
        stats = SyncOrchestrator(settings).run(cleanup=cleanup)
        logger.info(f"Background sync finished: {stats.published} videos published")
    except ConfigError as e:
        logger.error(f"Background sync aborted: {e}")
    except Exception:
        logger.exception("Background sync error")
    finally:
        _sync_lock.release()


@router.post(
    "/sync",
    response_model=SyncResponse,
    status_code=202,
    responses={409: {"model": ErrorResponse}},
)
async def trigger_sync(
    background_tasks: BackgroundTasks,
    request: Optional[SyncRequest] = None,
    settings: Settings = Depends(get_settings),
    _: str = Depends(verify_admin_key),
):
    """
    Start a sync run in the background (admin only).

    Requires X-Admin-Key header.
    """
    if not _sync_lock.acquire(blocking=False):
        raise HTTPException(status_code=409, detail="A sync is already in progress")

    cleanup = request.cleanup if request else False
    background_tasks.add_task(_run_sync, settings, cleanup)
    return SyncResponse(
        status="started",
        message=f"Sync started{' with cleanup' if cleanup else ''}",
    )
