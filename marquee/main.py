"""FastAPI application entry point for Marquee."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from loguru import logger

from marquee import __version__
from marquee.api import router as api_router
from marquee.config import ensure_paths_exist, settings
from marquee.core.logging import setup_logging
from marquee.core.watcher import LibraryWatcher
from marquee.services.pipeline import create_pipeline


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifespan - startup and shutdown."""
    # Startup
    setup_logging()
    logger.info("Starting Marquee...")

    ensure_paths_exist(settings)
    if not settings.auth_code:
        logger.warning("MARQUEE_AUTH_CODE is empty; API requests need an empty ?code=")

    pipeline = create_pipeline(settings)
    app.state.pipeline = pipeline
    pipeline.start()

    watcher = LibraryWatcher(settings.library_path, pipeline.handle_event)
    watcher.start()
    app.state.watcher = watcher

    yield

    # Shutdown
    logger.info("Shutting down Marquee...")
    watcher.stop()
    await pipeline.stop()
    logger.info("Shutdown complete")


app = FastAPI(
    title="Marquee API",
    description="Media library ingestion, subtitles and byte-range streaming",
    version=__version__,
    lifespan=lifespan,
)

app.include_router(api_router)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn

    try:
        uvicorn.run(app, host=settings.host, port=settings.port, reload=False)
    except Exception as e:
        logger.error(f"Fatal error: {e}")
        raise
