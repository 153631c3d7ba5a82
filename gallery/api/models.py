"""
Pydantic models for API request/response schemas.
"""

from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


# === Request Models ===

class SyncRequest(BaseModel):
    """Request body for the sync trigger endpoint."""
    cleanup: bool = Field(False, description="Delete local videos no longer on Drive after syncing")


# === Response Models ===

class GalleryConfigResponse(BaseModel):
    """Display options for the browser gallery component."""
    model_config = ConfigDict(populate_by_name=True)

    preview_mode: str = Field(..., alias="previewMode", description="inline-loop, click-to-play or thumbnail-lazy")
    preview_flavor: str = Field(..., alias="previewFlavor", description="clip (previewUrl) or thumbnail (thumbUrl)")
    autoplay: bool
    lazy_load_thumbnails: bool = Field(..., alias="lazyLoadThumbnails")
    refresh_seconds: int = Field(..., alias="refreshSeconds", description="Manifest polling interval")
    manifest_url: str = Field("/videos.json", alias="manifestUrl")


class HealthResponse(BaseModel):
    """Response from health check endpoint."""
    status: str
    video_count: int
    demo: bool
    generated_at: Optional[str] = None
    credential_mode: Optional[str] = None
    sync_in_progress: bool = False


class SyncResponse(BaseModel):
    """Response from the sync trigger endpoint."""
    status: str
    message: str


class ErrorResponse(BaseModel):
    """Error response."""
    error: str
    detail: Optional[str] = None
