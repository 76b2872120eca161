"""In-memory library index: the Movie Cache and the Subtitle Cache.

Both caches are owned by the ingestion pipeline and only mutated on its
event loop. The serving layer gets a :class:`LibraryView`, which exposes
reads only and must tolerate ids appearing or disappearing between calls.
"""

import logging

from marquee.catalog.models import AcquisitionStatus, MovieMeta, SubtitleRecord

logger = logging.getLogger(__name__)


class LibraryCache:
    """Movie and subtitle entries keyed by cache id."""

    def __init__(self) -> None:
        self._movies: dict[str, MovieMeta] = {}
        self._subtitles: dict[str, list[SubtitleRecord]] = {}
        self._acquisition: dict[str, AcquisitionStatus] = {}

    # --- Movie Cache ---

    def get_movie(self, cache_id: str) -> MovieMeta | None:
        return self._movies.get(cache_id)

    def list_movies(self) -> list[MovieMeta]:
        return list(self._movies.values())

    def put_movie(self, movie: MovieMeta) -> None:
        """Insert or wholesale replace the entry for ``movie.id``."""
        self._movies[movie.id] = movie

    def remove_movie(self, cache_id: str) -> MovieMeta | None:
        return self._movies.pop(cache_id, None)

    def find_by_path(self, file_path: str) -> str | None:
        """Reverse lookup of the cache id whose entry points at ``file_path``.

        Linear in catalog size.
        """
        for cache_id, movie in self._movies.items():
            if movie.file_path == file_path:
                return cache_id
        return None

    # --- Subtitle Cache ---

    def has_subtitles(self, cache_id: str) -> bool:
        return cache_id in self._subtitles

    def get_subtitles(self, cache_id: str) -> list[SubtitleRecord] | None:
        return self._subtitles.get(cache_id)

    def put_subtitles(self, cache_id: str, records: list[SubtitleRecord]) -> None:
        self._subtitles[cache_id] = list(records)

    # --- Acquisition status side index ---

    def acquisition_status(self, cache_id: str) -> AcquisitionStatus:
        return self._acquisition.get(cache_id, AcquisitionStatus.NOT_STARTED)

    def set_acquisition_status(self, cache_id: str, status: AcquisitionStatus) -> None:
        logger.debug(f"Acquisition status for {cache_id}: {status.value}")
        self._acquisition[cache_id] = status


class LibraryView:
    """Read-only accessor handed to the serving layer."""

    def __init__(self, cache: LibraryCache) -> None:
        self._cache = cache

    def list_movies(self) -> list[MovieMeta]:
        return self._cache.list_movies()

    def get_movie(self, cache_id: str) -> MovieMeta | None:
        return self._cache.get_movie(cache_id)

    def get_subtitles(self, cache_id: str) -> list[SubtitleRecord]:
        return list(self._cache.get_subtitles(cache_id) or [])

    def acquisition_status(self, cache_id: str) -> AcquisitionStatus:
        return self._cache.acquisition_status(cache_id)
