"""
FastAPI application entry point for the video gallery.

Serves the published manifest, the video and preview directories, and the
gallery frontend when present.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from fastapi.responses import FileResponse

from gallery.config import PROJECT_ROOT, get_settings
from gallery.api.routes import router as api_router, manifest_router

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown."""
    settings = get_settings()
    logger.info("Starting video gallery")
    logger.info(f"Videos dir: {settings.videos_dir}")
    logger.info(f"Preview flavor: {settings.preview_flavor}")
    if settings.is_demo:
        logger.info("No Google Drive configuration: syncs will run in demo mode")
    else:
        logger.info(f"Drive credentials: {settings.credential_mode}")

    yield

    logger.info("Shutting down video gallery")


def create_app() -> FastAPI:
    settings = get_settings()

    app = FastAPI(
        title="Video Gallery",
        description="Personal video gallery synced from Google Drive",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    app.include_router(api_router, prefix="/api")
    app.include_router(manifest_router)

    # Media directories may not exist until the first sync
    for url_path, directory in (
        ("/videos", settings.videos_dir),
        ("/previews", settings.previews_dir),
        ("/thumbs", settings.thumbs_dir),
    ):
        name = url_path.strip("/")
        app.mount(url_path, StaticFiles(directory=str(directory), check_dir=False), name=name)

    frontend_dir = PROJECT_ROOT / "frontend"
    if frontend_dir.exists():
        app.mount("/static", StaticFiles(directory=str(frontend_dir)), name="static")

        @app.get("/")
        async def serve_frontend():
            """Serve the gallery page."""
            return FileResponse(str(frontend_dir / "index.html"))

    return app


app = create_app()


def main():
    """Run the application with uvicorn."""
    import uvicorn
    settings = get_settings()

    uvicorn.run(
        "gallery.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )


if __name__ == "__main__":
    main()
