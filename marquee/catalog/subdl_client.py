"""subdl.com subtitle archive client.

Searches by IMDb id and language (paginated) and unpacks the downloaded
zip archives into a title's subtitle directory.
"""

import io
import zipfile
from pathlib import Path

import requests
from loguru import logger
from pydantic import ValidationError

from marquee.catalog.models import ArchiveSearchResponse, ArchiveSubtitle
from marquee.catalog.network import new_session
from marquee.catalog.srt_utils import is_caption_file
from marquee.core.errors import (
    ExtractionError,
    SubtitleFetchError,
    error_context,
    handle_errors,
)


class SubdlClient:
    """Client for the subdl.com subtitle API."""

    API_URL = "https://api.subdl.com/api/v1/subtitles"
    DOWNLOAD_URL = "https://dl.subdl.com"

    def __init__(
        self,
        api_key: str,
        languages: str = "en",
        page_size: int = 30,
        download_timeout: float = 10.0,
        session: requests.Session | None = None,
    ):
        self.api_key = api_key
        self.languages = languages
        self.page_size = page_size
        self.download_timeout = download_timeout
        self.session = session or new_session()

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    @handle_errors(
        error_types=(requests.RequestException, ValueError, ValidationError),
        default_message="Subtitle search failed",
        log_level="warning",
        wrap_as=SubtitleFetchError,
    )
    def search(
        self, imdb_id: str, season: int | None = None, episode: int | None = None
    ) -> list[ArchiveSubtitle]:
        """Collect every result page for ``imdb_id``.

        Raises:
            SubtitleFetchError: If the API can't be reached or answers garbage
        """
        subtitles: list[ArchiveSubtitle] = []
        page = 1
        total_pages = 1

        while page <= total_pages:
            params = {
                "api_key": self.api_key,
                "imdb_id": imdb_id,
                "languages": self.languages,
                "subs_per_page": self.page_size,
                "page": page,
            }
            if season is not None and episode is not None:
                params.update({"type": "tv", "season_number": season, "episode_number": episode})

            logger.debug(f"Searching subtitles for {imdb_id} (page {page})")
            response = self.session.get(self.API_URL, params=params, timeout=30)
            response.raise_for_status()
            data = ArchiveSearchResponse.model_validate(response.json())

            if not data.status or not data.subtitles:
                break

            total_pages = data.total_pages
            subtitles.extend(data.subtitles)
            page += 1

        logger.info(f"Found {len(subtitles)} archived subtitles for {imdb_id}")
        return subtitles

    def download(self, subtitle: ArchiveSubtitle, output_dir: Path) -> list[Path]:
        """Download one archive and extract its caption files into ``output_dir``.

        Raises:
            SubtitleFetchError: If the download fails
            ExtractionError: If the archive can't be unpacked
        """
        url = f"{self.DOWNLOAD_URL}{subtitle.url}"
        logger.debug(f"Downloading subtitle archive {url}")
        try:
            response = self.session.get(url, timeout=self.download_timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise SubtitleFetchError(f"Download failed for {url}: {e}") from e

        with error_context(
            error_types=(zipfile.BadZipFile, zipfile.LargeZipFile, OSError),
            default_message=f"Failed to extract {url}",
            log_level="warning",
            wrap_as=ExtractionError,
        ):
            return extract_captions(response.content, output_dir)

    def download_all(self, subtitles: list[ArchiveSubtitle], output_dir: Path) -> list[Path]:
        """Download every archive; a failed item is dropped and the rest continue."""
        extracted: list[Path] = []
        for subtitle in subtitles:
            try:
                extracted.extend(self.download(subtitle, output_dir))
            except (SubtitleFetchError, ExtractionError) as e:
                logger.warning(f"Skipping subtitle {subtitle.name or subtitle.url}: {e}")
        return extracted


def extract_captions(archive: bytes, output_dir: Path) -> list[Path]:
    """Write the caption files of a zip archive into ``output_dir``.

    Archive paths are flattened to their base name so entries can't escape
    the target directory.
    """
    output_dir.mkdir(parents=True, exist_ok=True)
    written = []
    with zipfile.ZipFile(io.BytesIO(archive)) as zf:
        for info in zf.infolist():
            if info.is_dir():
                continue
            name = Path(info.filename).name
            if not name or not is_caption_file(name):
                continue
            target = output_dir / name
            target.write_bytes(zf.read(info))
            written.append(target)
    if not written:
        logger.warning("No caption files found in subtitle archive")
    return written
