"""Subtitle Source Client - "obtain captions for this title".

Policy order: the subtitle archive first (only when a catalog id is known),
then speech-to-text transcription, which works from the media file alone
and so also covers unidentified titles. Archive captions are kept as
downloaded; transcription output is segmented in place.
"""

import asyncio
from collections.abc import Callable
from pathlib import Path

from loguru import logger

from marquee.catalog.models import AcquisitionStatus
from marquee.catalog.segmentation import rewrite_caption_file
from marquee.catalog.srt_utils import list_caption_files
from marquee.catalog.subdl_client import SubdlClient
from marquee.catalog.transcriber import WhisperTranscriber
from marquee.core.errors import SubtitleFetchError, TranscriptionError, error_context

StatusCallback = Callable[[AcquisitionStatus], None]


def transcript_filename(cache_id: str) -> str:
    """File name of the generated transcript for a title."""
    return f"{cache_id.replace(':', '_')}_ai.srt"


class SubtitleSourceClient:
    def __init__(self, archive: SubdlClient | None, transcriber: WhisperTranscriber | None):
        self.archive = archive
        self.transcriber = transcriber

    async def fetch_from_archive(
        self,
        catalog_id: str,
        output_dir: Path,
        season: int | None = None,
        episode: int | None = None,
    ) -> list[Path]:
        """Search the archive and unpack every result into ``output_dir``."""
        if self.archive is None or not self.archive.configured:
            logger.debug("Subtitle archive not configured, skipping search")
            return []
        try:
            found = await asyncio.to_thread(self.archive.search, catalog_id, season, episode)
        except SubtitleFetchError as e:
            logger.warning(f"Archive search for {catalog_id} produced nothing: {e}")
            return []
        return await asyncio.to_thread(self.archive.download_all, found, output_dir)

    async def transcribe(self, cache_id: str, media_path: Path, output_dir: Path) -> Path | None:
        """Generate and segment a transcript; None when transcription fails."""
        if self.transcriber is None:
            logger.debug("Transcription disabled, skipping fallback")
            return None

        output_path = output_dir / transcript_filename(cache_id)
        try:
            await asyncio.to_thread(self.transcriber.transcribe, media_path, output_path)
        except TranscriptionError as e:
            logger.warning(f"No transcript for {cache_id}: {e}")
            return None

        # Keep the raw transcript if segmentation can't parse it
        with error_context(
            error_types=(ValueError,),
            default_message=f"Could not segment transcript {output_path.name}",
            log_level="warning",
            suppress=True,
        ):
            await asyncio.to_thread(rewrite_caption_file, output_path)
        return output_path

    async def obtain(
        self,
        cache_id: str,
        media_path: Path,
        output_dir: Path,
        catalog_id: str | None = None,
        season: int | None = None,
        episode: int | None = None,
        on_status: StatusCallback | None = None,
    ) -> AcquisitionStatus:
        """Make sure ``output_dir`` holds at least one caption file for the title.

        Returns:
            DONE if captions are available afterwards, FAILED otherwise
        """

        def report(status: AcquisitionStatus) -> None:
            if on_status:
                on_status(status)

        output_dir.mkdir(parents=True, exist_ok=True)

        if catalog_id and not list_caption_files(output_dir):
            extracted = await self.fetch_from_archive(catalog_id, output_dir, season, episode)
            logger.info(f"Archive produced {len(extracted)} caption files for {cache_id}")
            report(AcquisitionStatus.ARCHIVE_TRIED)

        if not list_caption_files(output_dir):
            if await self.transcribe(cache_id, media_path, output_dir):
                report(AcquisitionStatus.TRANSCRIBED)

        if list_caption_files(output_dir):
            return AcquisitionStatus.DONE
        logger.warning(f"No captions available for {cache_id}")
        return AcquisitionStatus.FAILED
