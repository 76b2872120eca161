"""REST API routes for Marquee."""

import logging
from pathlib import Path

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request, Response
from fastapi.responses import FileResponse, JSONResponse

from marquee.api.auth import get_settings, require_auth_code
from marquee.api.streaming import stream_file
from marquee.catalog.srt_utils import CAPTION_EXTENSIONS
from marquee.config import Settings
from marquee.services.library import LibraryView
from marquee.services.pipeline import IngestionPipeline

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["library"], dependencies=[Depends(require_auth_code)])

CAPTION_CONTENT_TYPES = {".srt": "text/srt", ".vtt": "text/vtt"}


def get_pipeline(request: Request) -> IngestionPipeline:
    pipeline = getattr(request.app.state, "pipeline", None)
    if pipeline is None:
        raise HTTPException(status_code=503, detail="Library not ready")
    return pipeline


def get_library(pipeline: IngestionPipeline = Depends(get_pipeline)) -> LibraryView:
    return pipeline.view


# Routes
@router.get("/movies")
async def list_movies(library: LibraryView = Depends(get_library)) -> list[dict]:
    """List every title in the library."""
    return [movie.model_dump(by_alias=True, mode="json") for movie in library.list_movies()]


@router.get("/movies/{cache_id}")
async def get_movie(cache_id: str, library: LibraryView = Depends(get_library)) -> dict:
    """Get one title by cache id."""
    movie = library.get_movie(cache_id)
    if movie is None:
        raise HTTPException(status_code=404, detail="Movie not found")
    return movie.model_dump(by_alias=True, mode="json")


@router.get("/subtitles/{cache_id}")
async def list_subtitles(
    cache_id: str,
    token: str | None = Query(default=None),
    library: LibraryView = Depends(get_library),
) -> list[dict]:
    """Caption files of a title; empty when none were found."""
    records = []
    for record in library.get_subtitles(cache_id):
        url = f"{record.url}&token={token}" if token is not None else record.url
        records.append({**record.model_dump(), "url": url})
    return records


@router.get("/subtitles/{cache_id}/status")
async def subtitle_status(cache_id: str, library: LibraryView = Depends(get_library)) -> dict:
    """Caption acquisition progress of a title."""
    return {"id": cache_id, "status": library.acquisition_status(cache_id).value}


@router.get("/subtitle-file")
async def subtitle_file(
    path: str = Query(default=""),
    pipeline: IngestionPipeline = Depends(get_pipeline),
    config: Settings = Depends(get_settings),
) -> Response:
    """Serve a caption file from the subtitle directory."""
    cors = {}
    if config.is_dev:
        cors = {
            "Access-Control-Allow-Origin": "*",
            "Access-Control-Allow-Methods": "GET, OPTIONS",
            "Access-Control-Allow-Headers": "Content-Type",
        }

    file_path = Path(path).expanduser().resolve() if path else None
    if (
        file_path is None
        or not file_path.is_file()
        or not file_path.is_relative_to(pipeline.subtitles_root)
    ):
        logger.warning(f"Subtitle file not found: {path}")
        return JSONResponse({"error": "Subtitle file not found"}, status_code=404, headers=cors)

    ext = file_path.suffix.lower()
    if ext not in CAPTION_EXTENSIONS:
        logger.warning(f"Invalid subtitle file type: {path}")
        return JSONResponse({"error": "Invalid subtitle file type"}, status_code=400, headers=cors)

    return FileResponse(
        file_path,
        media_type=CAPTION_CONTENT_TYPES[ext],
        headers={**cors, "Content-Disposition": f'inline; filename="{file_path.name}"'},
    )


@router.get("/stream/{cache_id}")
async def stream_movie(
    cache_id: str,
    range_header: str | None = Header(default=None, alias="Range"),
    library: LibraryView = Depends(get_library),
) -> Response:
    """Stream a title's media file, honoring byte-range requests."""
    movie = library.get_movie(cache_id)
    if movie is None:
        logger.warning(f"Stream API Route - Movie Not Found: {cache_id}")
        raise HTTPException(status_code=404, detail="Movie not found")

    file_path = Path(movie.file_path)
    if not file_path.is_file():
        logger.warning(f"Stream API Route - File missing for {cache_id}: {file_path}")
        raise HTTPException(status_code=404, detail="Movie file not found")

    return stream_file(file_path, range_header)
