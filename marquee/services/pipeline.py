"""Ingestion Pipeline - turns library file events into cache entries.

A single worker drains the processing queue, so only one path is ever
mid-pipeline. That keeps co-located files from triggering duplicate
external lookups and keeps two runs from writing the same subtitle
directory at once.

Per path: normalize name -> identify -> commit Movie Cache entry ->
acquire captions (archive, then transcription) -> commit Subtitle Cache
entry. Every failure degrades to placeholders or "no captions"; nothing
stops the queue except resource exhaustion.
"""

import asyncio
import logging
from pathlib import Path
from urllib.parse import quote

from marquee.catalog.identification import IdentificationClient
from marquee.catalog.models import AcquisitionStatus, IdentifyResult, MovieMeta, SubtitleRecord
from marquee.catalog.srt_utils import list_caption_files
from marquee.catalog.subtitle_source import SubtitleSourceClient
from marquee.core.errors import QueueItemError, is_resource_exhaustion
from marquee.core.normalizer import normalize_title, parse_episode
from marquee.services.ingest_state_machine import IngestState, IngestStateMachine
from marquee.services.library import LibraryCache, LibraryView

logger = logging.getLogger(__name__)

SUPPORTED_FORMATS = frozenset({".mp4", ".webm", ".avi", ".mkv", ".mov", ".flv", ".wmv"})


class FileEvent:
    """Kinds of file-change notifications the pipeline understands."""

    ADD = "add"
    CHANGE = "change"
    UNLINK = "unlink"


def is_supported_media(path: str | Path) -> bool:
    return Path(path).suffix.lower() in SUPPORTED_FORMATS


def episode_cache_id(base_id: str, season: int, episode: int) -> str:
    return f"{base_id}:{season}:{episode}"


class IngestionPipeline:
    """Owns the caches and the single-consumer processing queue."""

    def __init__(
        self,
        identification: IdentificationClient,
        subtitle_source: SubtitleSourceClient,
        library_root: Path,
        subtitles_root: Path,
        app_url: str = "",
        language: str = "en",
        cache: LibraryCache | None = None,
    ) -> None:
        self.identification = identification
        self.subtitle_source = subtitle_source
        self.library_root = Path(library_root).expanduser().resolve()
        self.subtitles_root = Path(subtitles_root).expanduser().resolve()
        self.app_url = app_url.rstrip("/")
        self.language = language
        self.cache = cache or LibraryCache()
        self.view = LibraryView(self.cache)
        self.states = IngestStateMachine()

        self._queue: asyncio.Queue[str] = asyncio.Queue()
        self._pending: set[str] = set()
        # Paths skipped because another file already holds their cache id
        self._duplicates: dict[str, list[str]] = {}
        self._worker: asyncio.Task | None = None

    # --- Lifecycle ---

    def start(self) -> None:
        """Start the queue worker on the running event loop."""
        if self._worker is not None and not self._worker.done():
            return
        self._worker = asyncio.get_running_loop().create_task(self._drain())
        self._worker.add_done_callback(self._on_worker_done)
        logger.info("Ingestion pipeline started")

    async def stop(self) -> None:
        """Stop the worker. The path in flight, if any, is abandoned."""
        if self._worker is None:
            return
        self._worker.cancel()
        try:
            await self._worker
        except asyncio.CancelledError:
            pass
        self._worker = None
        logger.info("Ingestion pipeline stopped")

    async def join(self) -> None:
        """Wait until every queued path has been processed."""
        await self._queue.join()

    def _on_worker_done(self, task: asyncio.Task) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.critical(f"Ingestion worker died: {exc!r}")

    # --- Events ---

    def handle_event(self, kind: str, path: str) -> None:
        """Apply a file-change notification. Must run on the event loop."""
        path = str(path)
        if kind == FileEvent.ADD:
            self.enqueue(path)
        elif kind == FileEvent.CHANGE:
            # Fresh identification: drop the old entry and re-queue ahead of any duplicates
            self.evict(path, requeue=True)
        elif kind == FileEvent.UNLINK:
            self.evict(path)
        else:
            logger.warning(f"Ignoring unknown file event '{kind}' for {path}")

    def enqueue(self, path: str) -> bool:
        """Queue a media file for processing; returns False if ignored."""
        path = str(path)
        if not is_supported_media(path):
            logger.debug(f"Ignoring unsupported file {path}")
            return False
        if path in self._pending:
            logger.debug(f"Already queued: {path}")
            return False
        self._pending.add(path)
        self._queue.put_nowait(path)
        logger.info(f"Queued {path} ({self._queue.qsize()} pending)")
        return True

    def evict(self, path: str, requeue: bool = False) -> str | None:
        """Remove the Movie Cache entry backed by ``path``.

        A path still being processed is marked evicted so its run discards
        its commits. If another file was skipped as a duplicate of the
        evicted title, it is queued so the title stays in the library.
        With ``requeue``, ``path`` itself is queued first and so keeps the
        title.
        """
        path = str(path)
        self.states.evict(path)
        for aliases in self._duplicates.values():
            if path in aliases:
                aliases.remove(path)
        if requeue:
            self.enqueue(path)

        cache_id = self.cache.find_by_path(path)
        if cache_id is None:
            return None

        self.cache.remove_movie(cache_id)
        logger.info(f"Evicted {cache_id} ({path})")

        base_id = cache_id.split(":", 1)[0]
        survivors = self._duplicates.pop(base_id, [])
        for survivor in survivors:
            if Path(survivor).is_file():
                self.enqueue(survivor)
        return cache_id

    # --- Worker ---

    async def _drain(self) -> None:
        while True:
            path = await self._queue.get()
            self._pending.discard(path)
            try:
                await self.process_path(path)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                if is_resource_exhaustion(e):
                    raise
                error = QueueItemError(f"Failed to process {path}: {e}")
                logger.error(str(error), exc_info=True)
                if self.states.state_of(path) is not None:
                    self.states.transition(path, IngestState.FAILED)
            finally:
                self._queue.task_done()

    async def process_path(self, path: str) -> str | None:
        """Run one library path through the whole pipeline.

        Returns:
            The committed cache id, or None if the path was skipped or evicted
        """
        self.states.begin(path)
        media_path = Path(path)

        if not is_supported_media(media_path) or not media_path.is_file():
            logger.info(f"Skipping {path}: not a supported media file on disk")
            self.states.transition(path, IngestState.SKIPPED)
            return None

        stem = media_path.stem
        title = normalize_title(stem)
        episode = parse_episode(stem)

        self.states.transition(path, IngestState.IDENTIFYING)
        result = await self.identification.identify(title, episode)
        if result.error:
            logger.info(f"Identification degraded for '{title}': {result.error}")

        # Un-suffixed id: look for work already done by another file
        base_id = result.catalog_id or stem
        existing = self.cache.get_movie(base_id)
        if existing is not None:
            if existing.file_path != path:
                self._duplicates.setdefault(base_id, []).append(path)
                logger.info(f"{path} duplicates cached title {base_id}, skipping")
            self.states.transition(path, IngestState.SKIPPED)
            return None

        cache_id = base_id
        if result.identified and episode:
            cache_id = episode_cache_id(base_id, *episode)

        if self.states.is_evicted(path):
            logger.info(f"{path} was evicted during identification, discarding")
            return None

        movie = self._build_entry(result, cache_id, base_id, path, episode)
        self.cache.put_movie(movie)
        self.states.transition(path, IngestState.CACHE_COMMITTED)
        logger.info(f"Cached {cache_id}: {movie.name}")

        if self.cache.has_subtitles(cache_id):
            self.states.transition(path, IngestState.DONE)
            return cache_id

        subtitle_dir = self.subtitle_dir_for(media_path)
        subtitle_dir.mkdir(parents=True, exist_ok=True)

        acquired = self.cache.acquisition_status(cache_id) == AcquisitionStatus.DONE
        if not acquired and not list_caption_files(subtitle_dir):
            self.states.transition(path, IngestState.SUBTITLE_ACQUIRING)
            status = await self.subtitle_source.obtain(
                cache_id,
                media_path,
                subtitle_dir,
                catalog_id=result.catalog_id,
                season=episode[0] if episode else None,
                episode=episode[1] if episode else None,
                on_status=lambda s: self.cache.set_acquisition_status(cache_id, s),
            )
            self.cache.set_acquisition_status(cache_id, status)
        else:
            self.cache.set_acquisition_status(cache_id, AcquisitionStatus.DONE)

        if self.states.is_evicted(path):
            logger.info(f"{path} was evicted during subtitle acquisition, discarding")
            return None

        self.cache.put_subtitles(cache_id, self.scan_subtitles(subtitle_dir))
        self.states.transition(path, IngestState.SUBTITLE_CACHE_COMMITTED)
        self.states.transition(path, IngestState.DONE)
        return cache_id

    # --- Helpers ---

    def _build_entry(
        self,
        result: IdentifyResult,
        cache_id: str,
        base_id: str,
        path: str,
        episode: tuple[int, int] | None,
    ) -> MovieMeta:
        data = result.meta.model_dump(by_alias=True)
        data["behaviorHints"] = {**data.get("behaviorHints", {}), "defaultVideoId": base_id}
        data.update(id=cache_id, filePath=path)
        if result.identified and episode:
            data.update(season=episode[0], episode=episode[1])
        return MovieMeta.model_validate(data)

    def subtitle_dir_for(self, media_path: Path) -> Path:
        """Subtitle directory of a media file, mirroring the library layout."""
        parent = media_path.expanduser().resolve().parent
        try:
            relative = parent.relative_to(self.library_root)
        except ValueError:
            relative = Path()
        return self.subtitles_root / relative / media_path.stem

    def subtitle_url(self, caption_file: Path) -> str:
        return f"{self.app_url}/api/subtitle-file?path={quote(str(caption_file), safe='')}"

    def scan_subtitles(self, directory: Path) -> list[SubtitleRecord]:
        return [
            SubtitleRecord(id=f.name, lang=self.language, url=self.subtitle_url(f))
            for f in list_caption_files(directory)
        ]


def create_pipeline(config) -> IngestionPipeline:
    """Wire the pipeline and its collaborators from settings."""
    from marquee.catalog.cinemeta_client import CinemetaClient
    from marquee.catalog.name_resolver import NameResolver
    from marquee.catalog.subdl_client import SubdlClient
    from marquee.catalog.transcriber import WhisperTranscriber

    identification = IdentificationClient(
        resolver=NameResolver(timeout=config.request_timeout),
        catalog=CinemetaClient(timeout=config.request_timeout),
    )
    archive = None
    if config.subdl_api_key:
        archive = SubdlClient(
            api_key=config.subdl_api_key,
            languages=config.subtitle_languages,
            page_size=config.subdl_page_size,
            download_timeout=config.subtitle_download_timeout,
        )
    else:
        logger.warning("No subdl API key configured; only transcription will produce captions")

    transcriber = WhisperTranscriber(
        model_name=config.whisper_model,
        device=config.whisper_device,
        translate=config.whisper_translate,
    )
    return IngestionPipeline(
        identification=identification,
        subtitle_source=SubtitleSourceClient(archive=archive, transcriber=transcriber),
        library_root=config.library_path,
        subtitles_root=config.subtitles_path,
        app_url=config.app_url,
        language=config.subtitle_languages.split(",")[0].strip() or "en",
    )
