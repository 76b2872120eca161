"""Cinemeta metadata catalog client."""

import requests
from loguru import logger

from marquee.catalog.models import MediaType
from marquee.catalog.network import new_session, retry_network_operation
from marquee.core.errors import MetadataFetchError, handle_errors

CINEMETA_URL = "https://v3-cinemeta.strem.io/meta/{type}/{id}.json"


class CinemetaClient:
    """Fetches title metadata keyed by IMDb id and content type."""

    def __init__(self, session: requests.Session | None = None, timeout: float = 30.0):
        self.session = session or new_session()
        self.timeout = timeout

    @retry_network_operation(max_retries=2, base_delay=1.0)
    def _get(self, url: str) -> dict:
        logger.debug(f"GET {url}")
        response = self.session.get(url, timeout=self.timeout)
        response.raise_for_status()
        return response.json()

    @handle_errors(
        error_types=(requests.RequestException, ValueError),
        default_message="Metadata lookup failed",
        log_level="warning",
        wrap_as=MetadataFetchError,
    )
    def fetch_meta(self, catalog_id: str, media_type: MediaType) -> dict | None:
        """Return the catalog's metadata dict, or None if the catalog has no entry.

        Raises:
            MetadataFetchError: If the catalog can't be reached or returns garbage
        """
        data = self._get(CINEMETA_URL.format(type=media_type.value, id=catalog_id))
        meta = data.get("meta") if isinstance(data, dict) else None
        if not isinstance(meta, dict) or not meta.get("name"):
            logger.info(f"Catalog has no {media_type.value} entry for {catalog_id}")
            return None
        return meta
