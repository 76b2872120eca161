"""Marquee - media library ingestion, captions and streaming."""

__version__ = "0.1.0"
