"""Catalog adapters: identification, subtitle sources and caption segmentation."""

from marquee.catalog.identification import IdentificationClient
from marquee.catalog.subtitle_source import SubtitleSourceClient

__all__ = ["IdentificationClient", "SubtitleSourceClient"]
