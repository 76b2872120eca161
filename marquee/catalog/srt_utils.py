from datetime import timedelta
from pathlib import Path

import chardet
import srt
from loguru import logger

from marquee.catalog.models import CaptionLine

CAPTION_EXTENSIONS = (".srt", ".vtt")


def detect_file_encoding(file_path) -> str:
    """Detect the encoding of a file using chardet.

    Args:
        file_path: Path to the file

    Returns:
        Detected encoding, defaults to 'utf-8' if detection fails
    """
    try:
        with open(file_path, "rb") as f:
            raw_data = f.read(min(1024 * 1024, Path(file_path).stat().st_size))
        result = chardet.detect(raw_data)
        encoding = result["encoding"]
        confidence = result["confidence"] or 0.0

        logger.debug(
            f"Detected encoding {encoding} with {confidence:.2%} confidence for {file_path}"
        )
        return encoding if encoding else "utf-8"
    except OSError as e:
        logger.warning(f"Error detecting encoding for {file_path}: {e}")
        return "utf-8"


def read_file_with_fallback(file_path, encodings=None) -> str:
    """Read a file trying multiple encodings in order of preference.

    Not cached: caption files are rewritten in place after transcription.

    Args:
        file_path: Path to the file
        encodings: List of encodings to try, defaults to common subtitle encodings

    Returns:
        File contents

    Raises:
        ValueError: If file cannot be read with any encoding
    """
    if encodings is None:
        detected = detect_file_encoding(file_path)
        encodings = [detected, "utf-8", "latin-1", "cp1252", "iso-8859-1"]

    file_path = Path(file_path)
    errors = []

    for encoding in encodings:
        try:
            with open(file_path, encoding=encoding) as f:
                content = f.read()
            logger.debug(f"Successfully read {file_path} using {encoding} encoding")
            return content
        except (UnicodeDecodeError, LookupError) as e:
            errors.append(f"{encoding}: {str(e)}")
            continue

    error_msg = f"Failed to read {file_path} with any encoding. Errors:\n" + "\n".join(errors)
    logger.error(error_msg)
    raise ValueError(error_msg)


def to_ms(delta: timedelta) -> int:
    return int(round(delta.total_seconds() * 1000))


def parse_srt(content: str) -> list[CaptionLine]:
    """Parse SRT text into caption lines, skipping malformed blocks."""
    lines = []
    for sub in srt.parse(content, ignore_errors=True):
        lines.append(
            CaptionLine(start=to_ms(sub.start), end=to_ms(sub.end), text=sub.content.strip())
        )
    return lines


def compose_srt(lines: list[CaptionLine]) -> str:
    """Serialize caption lines as SRT, numbering blocks from 1."""
    subs = [
        srt.Subtitle(
            index=i,
            start=timedelta(milliseconds=line.start),
            end=timedelta(milliseconds=line.end),
            content=line.text,
        )
        for i, line in enumerate(lines, start=1)
    ]
    return srt.compose(subs, reindex=False)


def read_srt_file(file_path) -> list[CaptionLine]:
    """Read an SRT file with robust encoding handling."""
    return parse_srt(read_file_with_fallback(file_path))


def write_srt_file(file_path, lines: list[CaptionLine]) -> None:
    Path(file_path).write_text(compose_srt(lines), encoding="utf-8")


def is_caption_file(path) -> bool:
    return Path(path).suffix.lower() in CAPTION_EXTENSIONS


def list_caption_files(directory) -> list[Path]:
    """Caption files directly inside ``directory``, sorted by name."""
    directory = Path(directory)
    if not directory.is_dir():
        return []
    return sorted(p for p in directory.iterdir() if p.is_file() and is_caption_file(p))
