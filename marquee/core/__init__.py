"""Core modules for Marquee."""

from marquee.core.normalizer import normalize_title, parse_episode
from marquee.core.watcher import LibraryWatcher

__all__ = ["LibraryWatcher", "normalize_title", "parse_episode"]
