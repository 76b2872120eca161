"""Unit tests for the library watcher."""

import asyncio

import pytest
from watchdog.events import (
    DirCreatedEvent,
    FileCreatedEvent,
    FileDeletedEvent,
    FileModifiedEvent,
    FileMovedEvent,
)

from marquee.core.watcher import LibraryWatcher, _EventRelay, walk_library


@pytest.fixture
def events():
    return []


@pytest.fixture
def relay(events):
    return _EventRelay(lambda kind, path: events.append((kind, path)))


@pytest.mark.unit
class TestEventRelay:
    def test_created(self, relay, events):
        relay.on_created(FileCreatedEvent("/lib/a.mkv"))
        assert events == [("add", "/lib/a.mkv")]

    def test_modified(self, relay, events):
        relay.on_modified(FileModifiedEvent("/lib/a.mkv"))
        assert events == [("change", "/lib/a.mkv")]

    def test_deleted(self, relay, events):
        relay.on_deleted(FileDeletedEvent("/lib/a.mkv"))
        assert events == [("unlink", "/lib/a.mkv")]

    def test_moved_is_unlink_then_add(self, relay, events):
        relay.on_moved(FileMovedEvent("/lib/a.mkv", "/lib/b.mkv"))
        assert events == [("unlink", "/lib/a.mkv"), ("add", "/lib/b.mkv")]

    def test_directories_ignored(self, relay, events):
        relay.on_created(DirCreatedEvent("/lib/Season 1"))
        assert events == []


@pytest.mark.unit
class TestLibraryWatcher:
    def test_walk_is_sorted_depth_first(self, tmp_path):
        for name in ["b.mkv", "a/2.mkv", "a/1.mkv", "c.mp4"]:
            path = tmp_path / name
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(b"")

        found = [p[len(str(tmp_path)) + 1 :] for p in walk_library(tmp_path)]

        assert found == ["b.mkv", "c.mp4", "a/1.mkv", "a/2.mkv"]

    def test_scan_synthesizes_adds(self, tmp_path, events):
        (tmp_path / "a.mkv").write_bytes(b"")
        (tmp_path / "sub").mkdir()
        (tmp_path / "sub" / "b.mp4").write_bytes(b"")
        watcher = LibraryWatcher(tmp_path, lambda kind, path: events.append((kind, path)))

        assert watcher.scan() == 2
        assert {kind for kind, _ in events} == {"add"}
        assert len(events) == 2

    def test_callback_errors_are_contained(self, tmp_path):
        (tmp_path / "a.mkv").write_bytes(b"")

        def explode(kind, path):
            raise RuntimeError("boom")

        assert LibraryWatcher(tmp_path, explode).scan() == 1

    async def test_events_marshalled_onto_loop(self, tmp_path, events):
        watcher = LibraryWatcher(tmp_path, lambda kind, path: events.append((kind, path)))
        watcher._loop = asyncio.get_running_loop()

        watcher._emit("unlink", "/lib/a.mkv")
        await asyncio.sleep(0.01)

        assert events == [("unlink", "/lib/a.mkv")]

    def test_emit_without_loop_is_dropped(self, tmp_path, events):
        watcher = LibraryWatcher(tmp_path, lambda kind, path: events.append((kind, path)))
        watcher._emit("add", "/lib/a.mkv")
        assert events == []

    async def test_start_scans_and_stop(self, tmp_path, events):
        root = tmp_path / "library"
        watcher = LibraryWatcher(root, lambda kind, path: events.append((kind, path)))

        watcher.start()
        try:
            assert root.is_dir()
        finally:
            watcher.stop()
        assert watcher._observer is None
