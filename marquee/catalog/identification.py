"""Identification Client - one "identify" call over name resolution and the catalog.

Failures never escape: an unresolvable title comes back with no catalog id
and placeholder metadata, a catalog outage keeps the catalog id but falls
back to placeholders. The reason is reported in ``IdentifyResult.error``.
"""

import asyncio

from loguru import logger
from pydantic import ValidationError

from marquee.catalog.cinemeta_client import CinemetaClient
from marquee.catalog.models import IdentifyResult, MediaType, Metadata
from marquee.catalog.name_resolver import NameResolver
from marquee.core.errors import IdentificationError, MetadataFetchError
from marquee.core.normalizer import parse_episode


class IdentificationClient:
    def __init__(
        self,
        resolver: NameResolver | None = None,
        catalog: CinemetaClient | None = None,
    ):
        self.resolver = resolver or NameResolver()
        self.catalog = catalog or CinemetaClient()

    async def identify(
        self, clean_title: str, episode: tuple[int, int] | None = None
    ) -> IdentifyResult:
        """Resolve a clean title to a catalog id and metadata.

        Args:
            clean_title: Output of the title normalizer
            episode: (season, episode) parsed from the raw filename; when
                omitted, an ``SxxExx`` marker in ``clean_title`` is used

        Returns:
            IdentifyResult, always populated with usable metadata
        """
        placeholder = Metadata.placeholder(clean_title)

        try:
            catalog_id = await asyncio.to_thread(self.resolver.resolve, clean_title)
        except IdentificationError as e:
            return IdentifyResult(meta=placeholder, error=str(e))

        if not catalog_id:
            return IdentifyResult(meta=placeholder, error=f"No catalog match for '{clean_title}'")

        if episode is None:
            episode = parse_episode(clean_title)
        media_type = MediaType.SERIES if episode else MediaType.MOVIE

        try:
            data = await asyncio.to_thread(self.catalog.fetch_meta, catalog_id, media_type)
        except MetadataFetchError as e:
            return IdentifyResult(
                catalog_id=catalog_id, meta=placeholder, media_type=media_type, error=str(e)
            )

        if data is None:
            return IdentifyResult(
                catalog_id=catalog_id,
                meta=placeholder,
                media_type=media_type,
                error=f"Catalog has no {media_type.value} entry for {catalog_id}",
            )

        try:
            meta = Metadata.model_validate(data)
        except ValidationError as e:
            logger.warning(f"Unusable catalog metadata for {catalog_id}: {e}")
            return IdentifyResult(
                catalog_id=catalog_id, meta=placeholder, media_type=media_type, error=str(e)
            )

        if not meta.imdb_id:
            meta.imdb_id = catalog_id
        return IdentifyResult(catalog_id=catalog_id, meta=meta, media_type=media_type)
