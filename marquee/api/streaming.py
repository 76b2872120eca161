"""Byte-range file streaming for media players that seek with HTTP ranges."""

from collections.abc import Iterator
from pathlib import Path

from fastapi.responses import PlainTextResponse, Response, StreamingResponse

CHUNK_SIZE = 64 * 1024
VIDEO_CONTENT_TYPE = "video/mp4"


class RangeNotSatisfiable(ValueError):
    """The requested byte range lies outside the file."""


def parse_range(header: str, file_size: int) -> tuple[int, int]:
    """Parse a single ``bytes=start-end`` range into inclusive offsets.

    An omitted end means "to the end of the file"; ``bytes=-N`` asks for
    the last N bytes.

    Raises:
        RangeNotSatisfiable: If the range is malformed or exceeds the file
    """
    value = header.strip()
    if not value.startswith("bytes="):
        raise RangeNotSatisfiable(header)
    first, _, last = value[len("bytes=") :].split(",")[0].partition("-")

    try:
        if first.strip():
            start = int(first)
            end = int(last) if last.strip() else file_size - 1
        else:
            suffix = int(last)
            start, end = max(file_size - suffix, 0), file_size - 1
    except ValueError as e:
        raise RangeNotSatisfiable(header) from e

    if start < 0 or start >= file_size or end >= file_size or start > end:
        raise RangeNotSatisfiable(header)
    return start, end


def iter_file(path: Path, start: int, end: int, chunk_size: int = CHUNK_SIZE) -> Iterator[bytes]:
    """Yield the bytes ``start..end`` (inclusive) of ``path``."""
    remaining = end - start + 1
    with open(path, "rb") as f:
        f.seek(start)
        while remaining > 0:
            chunk = f.read(min(chunk_size, remaining))
            if not chunk:
                break
            remaining -= len(chunk)
            yield chunk


def stream_file(path: Path, range_header: str | None) -> Response:
    """Serve ``path`` whole (200) or partially (206) depending on ``Range``."""
    file_size = path.stat().st_size

    if range_header:
        try:
            start, end = parse_range(range_header, file_size)
        except RangeNotSatisfiable:
            return PlainTextResponse(
                "Requested range not satisfiable\n",
                status_code=416,
                headers={"Content-Range": f"bytes */{file_size}"},
            )
        headers = {
            "Content-Range": f"bytes {start}-{end}/{file_size}",
            "Accept-Ranges": "bytes",
            "Content-Length": str(end - start + 1),
        }
        return StreamingResponse(
            iter_file(path, start, end),
            status_code=206,
            headers=headers,
            media_type=VIDEO_CONTENT_TYPE,
        )

    return StreamingResponse(
        iter_file(path, 0, file_size - 1),
        status_code=200,
        headers={"Content-Length": str(file_size)},
        media_type=VIDEO_CONTENT_TYPE,
    )
