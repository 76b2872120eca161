"""Library Watcher - file-change notifications for the media library.

Walks the library once at startup (synthesizing ``add`` events for every
existing file), then relays watchdog events from the observer thread onto
the asyncio event loop as ``add`` / ``change`` / ``unlink``.
"""

import asyncio
import logging
import os
from collections.abc import Callable
from pathlib import Path

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

logger = logging.getLogger(__name__)

# Callback type
FileCallback = Callable[[str, str], None]  # (event kind, absolute path)


def walk_library(root: Path) -> list[str]:
    """All files below ``root``, depth-first in sorted order."""
    found = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames.sort()
        for name in sorted(filenames):
            found.append(os.path.join(dirpath, name))
    return found


def _src(event: FileSystemEvent) -> str:
    path = event.src_path
    return os.fsdecode(path) if isinstance(path, bytes) else path


class _EventRelay(FileSystemEventHandler):
    """Translates watchdog events and hands them to the event loop."""

    def __init__(self, emit: Callable[[str, str], None]) -> None:
        self._emit = emit

    def on_created(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._emit("add", _src(event))

    def on_modified(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._emit("change", _src(event))

    def on_deleted(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._emit("unlink", _src(event))

    def on_moved(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        dest = event.dest_path
        self._emit("unlink", _src(event))
        self._emit("add", os.fsdecode(dest) if isinstance(dest, bytes) else dest)


class LibraryWatcher:
    """Watches the library root and reports file events to a callback.

    The callback always runs on the event loop thread.
    """

    def __init__(self, root: Path, callback: FileCallback) -> None:
        self.root = Path(root).expanduser().resolve()
        self._callback = callback
        self._loop: asyncio.AbstractEventLoop | None = None
        self._observer: Observer | None = None

    def _emit(self, kind: str, path: str) -> None:
        """Marshal an event from the observer thread onto the loop."""
        if self._loop is None or self._loop.is_closed():
            return
        self._loop.call_soon_threadsafe(self._dispatch, kind, path)

    def _dispatch(self, kind: str, path: str) -> None:
        logger.debug(f"File event: {kind} {path}")
        try:
            self._callback(kind, path)
        except Exception as e:
            logger.error(f"Error handling {kind} for {path}: {e}", exc_info=True)

    def scan(self) -> int:
        """Synthesize ``add`` events for every file already in the library."""
        files = walk_library(self.root)
        for path in files:
            self._dispatch("add", path)
        logger.info(f"Initial scan found {len(files)} files under {self.root}")
        return len(files)

    def start(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        """Scan the library, then start watching for changes."""
        if self._observer is not None:
            return

        self._loop = loop or asyncio.get_running_loop()
        self.root.mkdir(parents=True, exist_ok=True)
        self.scan()

        self._observer = Observer()
        self._observer.schedule(_EventRelay(self._emit), str(self.root), recursive=True)
        self._observer.daemon = True
        self._observer.start()
        logger.info(f"Watching {self.root} for changes")

    def stop(self) -> None:
        """Stop the observer thread."""
        if self._observer is None:
            return
        self._observer.stop()
        self._observer.join(timeout=5)
        self._observer = None
        logger.info("Library watcher stopped")
