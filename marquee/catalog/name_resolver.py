"""Name resolution: clean titles to IMDb ids.

Uses the public IMDb suggestion endpoint, the same source the Stremio
ecosystem relies on. Results are cached per process because multi-file
releases resolve the same title over and over.
"""

import re
from urllib.parse import quote

import requests
from loguru import logger

from marquee.catalog.network import new_session, retry_network_operation
from marquee.core.errors import IdentificationError, handle_errors

SUGGESTION_URL = "https://v3.sg.media-imdb.com/suggestion/{prefix}/{query}.json"

# IMDb suggestion "qid" values we can look up in the catalog
_SUPPORTED_KINDS = {"movie", "tvSeries", "tvMiniSeries", "tvMovie", "video", "tvSpecial"}

_YEAR_SUFFIX = re.compile(r"^(?P<name>.+?)\s+(?P<year>(?:19|20)\d{2})$")


def split_year(title: str) -> tuple[str, int | None]:
    """Split a trailing release year off a title: "Heat 1995" -> ("Heat", 1995)."""
    match = _YEAR_SUFFIX.match(title.strip())
    if match:
        return match.group("name"), int(match.group("year"))
    return title.strip(), None


def _simplify(name: str) -> str:
    return " ".join(re.sub(r"[^\w\s]", "", name).lower().split())


def pick_best_match(candidates: list[dict], name: str, year: int | None = None) -> str | None:
    """Choose the best suggestion for ``name``.

    Exact name matches win over partial ones; a matching year breaks ties.
    Suggestions that are not titles (people, lists) are ignored.
    """
    titles = [
        c
        for c in candidates
        if isinstance(c, dict)
        and str(c.get("id", "")).startswith("tt")
        and c.get("qid", "movie") in _SUPPORTED_KINDS
    ]
    if not titles:
        return None

    target = _simplify(name)

    def score(candidate: dict) -> tuple[int, int]:
        exact = int(_simplify(str(candidate.get("l", ""))) == target)
        same_year = int(year is not None and candidate.get("y") == year)
        return exact, same_year

    # max() keeps the first of equal scores, preserving IMDb's popularity order
    best = max(titles, key=score)
    return best["id"]


class NameResolver:
    """Resolves titles to IMDb ids, best-effort."""

    def __init__(self, session: requests.Session | None = None, timeout: float = 30.0):
        self.session = session or new_session()
        self.timeout = timeout
        self._cache: dict[str, str | None] = {}

    @retry_network_operation(max_retries=2, base_delay=1.0)
    def _suggest(self, query: str) -> list[dict]:
        url = SUGGESTION_URL.format(prefix=quote(query[0]), query=quote(query))
        logger.debug(f"GET {url}")
        response = self.session.get(url, timeout=self.timeout)
        response.raise_for_status()
        data = response.json()
        suggestions = data.get("d") if isinstance(data, dict) else None
        if not isinstance(suggestions, list):
            logger.warning(f"Unexpected suggestion payload for '{query}'")
            return []
        return suggestions

    @handle_errors(
        error_types=(requests.RequestException, ValueError),
        default_message="Name resolution failed",
        log_level="warning",
        wrap_as=IdentificationError,
    )
    def resolve(self, title: str) -> str | None:
        """Return the IMDb id for ``title``, or None when nothing matches.

        Raises:
            IdentificationError: If the suggestion service can't be reached
        """
        key = title.strip().lower()
        if not key:
            return None
        if key in self._cache:
            return self._cache[key]

        name, year = split_year(title)
        candidates = self._suggest(name.lower())
        catalog_id = pick_best_match(candidates, name, year)

        if catalog_id:
            logger.info(f"Resolved '{title}' -> {catalog_id}")
        else:
            logger.info(f"No catalog match for '{title}'")
        self._cache[key] = catalog_id
        return catalog_id
