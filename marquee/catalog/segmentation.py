"""Segmentation Engine - raw caption lines to readable display segments.

Speech-to-text output arrives as one caption line per word (or per short
phrase). A single forward pass folds those lines into segments bounded by
silence gaps, duration, word count and sentence-ending punctuation.

The split conditions are checked in a fixed order and the first true one
wins; reordering them changes the output for lines that satisfy several
conditions at once.
"""

import re
from pathlib import Path

from loguru import logger

from marquee.catalog.models import CaptionLine, Segment
from marquee.catalog.srt_utils import read_srt_file, write_srt_file

TIME_GAP_THRESHOLD_MS = 1000
MAX_SEGMENT_DURATION_MS = 7000
MAX_WORDS_PER_SEGMENT = 20
MIN_SEGMENT_DURATION_MS = 1000
DEFAULT_LINE_DURATION_MS = 1000

NOISE_WORDS = frozenset({"uh", "um", "ah", "er", "hmm"})

_SENTENCE_END = re.compile(r"[.!?]$")
_NON_WORD = re.compile(r"[^\w]")
_WHITESPACE = re.compile(r"\s+")


def is_noise_line(text: str) -> bool:
    """True when every word of ``text`` is a filler token, or it has no words."""
    words = text.lower().split()
    return all(_NON_WORD.sub("", word) in NOISE_WORDS for word in words)


def _clean_lines(lines: list[CaptionLine]) -> list[CaptionLine]:
    cleaned = []
    for line in lines:
        text = line.text.strip()
        if not text or is_noise_line(text):
            continue
        end = line.end
        if end <= line.start:
            end = line.start + DEFAULT_LINE_DURATION_MS
        cleaned.append(CaptionLine(start=line.start, end=end, text=text))
    return cleaned


def _should_split(segment: Segment, line: CaptionLine) -> bool:
    # Order matters: gap, duration, word count, punctuation
    if line.start - segment.end > TIME_GAP_THRESHOLD_MS:
        return True
    if line.end - segment.start > MAX_SEGMENT_DURATION_MS:
        return True
    if len(segment.text.split()) >= MAX_WORDS_PER_SEGMENT:
        return True
    return bool(_SENTENCE_END.search(segment.text.strip()))


def segment(lines: list[CaptionLine]) -> list[Segment]:
    """Merge ordered caption lines into ordered display segments.

    Args:
        lines: Caption lines in playback order, times in milliseconds

    Returns:
        Segments with 1-based ids, each at least MIN_SEGMENT_DURATION_MS long
    """
    segments: list[Segment] = []
    current: Segment | None = None

    for line in _clean_lines(lines):
        if current is None:
            current = Segment(id=len(segments) + 1, start=line.start, end=line.end, text=line.text)
            continue

        if _should_split(current, line):
            segments.append(current)
            current = Segment(id=len(segments) + 1, start=line.start, end=line.end, text=line.text)
        else:
            current.end = line.end
            current.text += " " + line.text

    if current is not None and current.text.strip():
        segments.append(current)

    for seg in segments:
        if seg.end - seg.start < MIN_SEGMENT_DURATION_MS:
            seg.end = seg.start + MIN_SEGMENT_DURATION_MS
        seg.text = _WHITESPACE.sub(" ", seg.text.strip())

    return segments


def to_lines(segments: list[Segment]) -> list[CaptionLine]:
    """Inverse of :func:`segment` for serialization: segments back to caption lines."""
    return [CaptionLine(start=s.start, end=s.end, text=s.text) for s in segments]


def rewrite_caption_file(path: Path) -> int:
    """Segment an SRT file in place.

    Returns:
        Number of segments written
    """
    lines = read_srt_file(path)
    segments = segment(lines)
    write_srt_file(path, to_lines(segments))
    logger.info(f"Segmented {path.name}: {len(lines)} lines -> {len(segments)} segments")
    return len(segments)
