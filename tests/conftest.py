"""Core pytest fixtures for Marquee tests."""

import pytest

from marquee.catalog.models import (
    AcquisitionStatus,
    IdentifyResult,
    MediaType,
    Metadata,
)

SAMPLE_SRT = """1
00:00:01,000 --> 00:00:02,000
Hello there.

2
00:00:02,500 --> 00:00:04,000
General Kenobi!

"""


@pytest.fixture
def library_dirs(tmp_path):
    """Isolated library and subtitle roots for each test."""
    library = tmp_path / "movies"
    subs = tmp_path / "subs"
    library.mkdir()
    subs.mkdir()
    return library, subs


@pytest.fixture
def sample_srt_file(tmp_path):
    """A small, well-formed SRT file."""
    path = tmp_path / "sample.srt"
    path.write_text(SAMPLE_SRT, encoding="utf-8")
    return path


@pytest.fixture
def make_media():
    """Factory writing a dummy media file of ``size`` bytes."""

    def _make(directory, name: str, size: int = 1000):
        path = directory / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(bytes(i % 256 for i in range(size)))
        return path

    return _make


class FakeIdentification:
    """Identification client double with a fixed title -> catalog id table."""

    def __init__(self, known=None, error=None):
        self.known = known or {}
        self.error = error
        self.calls = []
        self.before_return = None

    async def identify(self, clean_title, episode=None):
        self.calls.append((clean_title, episode))
        if self.before_return:
            self.before_return(clean_title)
        if self.error is not None:
            raise self.error
        catalog_id = self.known.get(clean_title)
        if catalog_id is None:
            return IdentifyResult(
                meta=Metadata.placeholder(clean_title),
                error=f"No catalog match for '{clean_title}'",
            )
        media_type = MediaType.SERIES if episode else MediaType.MOVIE
        meta = Metadata(
            name=clean_title,
            type=media_type,
            description=f"About {clean_title}",
            imdb_id=catalog_id,
        )
        return IdentifyResult(catalog_id=catalog_id, meta=meta, media_type=media_type)


class FakeSubtitleSource:
    """Subtitle source double that drops one caption file per call."""

    def __init__(self, produce=True):
        self.produce = produce
        self.calls = []
        self.during_obtain = None

    async def obtain(
        self,
        cache_id,
        media_path,
        output_dir,
        catalog_id=None,
        season=None,
        episode=None,
        on_status=None,
    ):
        self.calls.append(
            {"cache_id": cache_id, "catalog_id": catalog_id, "season": season, "episode": episode}
        )
        if self.during_obtain:
            self.during_obtain(media_path)
        if not self.produce:
            return AcquisitionStatus.FAILED
        output_dir.mkdir(parents=True, exist_ok=True)
        (output_dir / "english.srt").write_text(SAMPLE_SRT, encoding="utf-8")
        if on_status:
            on_status(AcquisitionStatus.ARCHIVE_TRIED)
        return AcquisitionStatus.DONE


@pytest.fixture
def fake_identification():
    return FakeIdentification(known={"Show": "tt123", "Title": "tt555", "The Matrix 1999": "tt0133093"})


@pytest.fixture
def fake_subtitle_source():
    return FakeSubtitleSource()
