"""Title Normalizer - raw release filenames to clean human titles.

Release names carry a lot of noise (codecs, sources, resolutions, editions,
group signatures). Stripping happens in a fixed order: broad technical
tokens must go before the trailing release-group strip, otherwise a leftover
codec such as ``x264`` would be taken for the group signature.
"""

import re

# Episode marker, e.g. S01E05 / s1e5
EPISODE_PATTERN = re.compile(r"[Ss](\d{1,2})[Ee](\d{1,3})")

_I = re.IGNORECASE

# (pattern, replacement) applied in order
_CLEANUP_STEPS: list[tuple[re.Pattern, str]] = [
    # Bracketed and parenthesized annotations
    (re.compile(r"\[.*?\]"), ""),
    (re.compile(r"\(.*?\)"), ""),
    # Episode marker and whatever follows it (episode titles, tags)
    (re.compile(r"\b[Ss]\d{1,2}[Ee]\d{1,3}.*$"), ""),
    # Date stamps, but not standalone years
    (re.compile(r"\b\d{4}\.\d{2}\.\d{2}\b"), ""),
    (re.compile(r"\b\d{2}\.\d{2}\.\d{4}\b"), ""),
    # Specific technical tokens first
    (re.compile(r"\bH\.?264\b", _I), ""),
    (re.compile(r"\b(?:DD|AAC|DTS)?5\.1\b", _I), ""),
    (re.compile(r"\bAAC\d*\b", _I), ""),
    (re.compile(r"\bMVGroup\b", _I), ""),
    # Broad resolution / source tokens
    (
        re.compile(
            r"\b(?:\d{3,4}[pi]|(?:480|720|1080|2160)[pi]|HDTV|HD|UHD|BRRip|BluRay|WEBRip"
            r"|WEB-DL|DVDRip|DVDR|DVD|WEB|Blu-Ray)\b",
            _I,
        ),
        "",
    ),
    # Codecs, with an optional trailing ".tag"
    (
        re.compile(
            r"\b(?:x264|x265|HEVC|XviD|DivX|MP4|AC3|DTS|DDP?5\.1|10bit)\b(?:\.[A-Za-z0-9]+)?",
            _I,
        ),
        "",
    ),
    # Remaster / edition tags
    (re.compile(r"\b(?:REMASTERED|EXTENDED|UNRATED|PROPER|REPACK|IMAX)\b", _I), ""),
    # File size annotations
    (re.compile(r"\b\d+(?:\.\d+)?(?:MB|GB)\b", _I), ""),
    # Quality indicators
    (re.compile(r"\b(?:HQ|HDR|SDR)\b", _I), ""),
    # Media file extensions
    (re.compile(r"\.\b(?:mkv|avi|mp4|mov|wmv|flv|webm|m4v|mpg|mpeg)\b", _I), ""),
    # Trailing domain suffix left by site watermarks
    (re.compile(r"\.(?:com|net|org|io|tv|cc|me|to|info)$", _I), ""),
    # Release group signature; must come after the technical cleanups
    (re.compile(r"-[A-Za-z0-9]+(?:\[.*?\])?$"), ""),
    # Separators
    (re.compile(r"\."), " "),
    (re.compile(r"\s*-\s*"), " "),
    (re.compile(r"\s*,\s*"), " "),
    (re.compile(r"\s+"), " "),
]


def normalize_title(raw_name: str) -> str:
    """Turn a raw filename stem into a clean title.

    Pure and total: unmatched input comes back unchanged apart from
    whitespace normalization.

    >>> normalize_title("Show.S01E01.1080p.WEB-DL.x264-GRP")
    'Show'
    """
    name = raw_name
    for pattern, replacement in _CLEANUP_STEPS:
        name = pattern.sub(replacement, name)
    return name.strip()


def parse_episode(name: str) -> tuple[int, int] | None:
    """Extract (season, episode) from an ``SxxExx`` marker, if present."""
    match = EPISODE_PATTERN.search(name)
    if match:
        return int(match.group(1)), int(match.group(2))
    return None
