"""Unit tests for the subdl.com archive client."""

import io
import zipfile
from unittest.mock import Mock

import pytest
import requests

from marquee.catalog.models import ArchiveSubtitle
from marquee.catalog.subdl_client import SubdlClient, extract_captions
from marquee.core.errors import ExtractionError, SubtitleFetchError


def make_zip(files: dict[str, str]) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as zf:
        for name, content in files.items():
            zf.writestr(name, content)
    return buffer.getvalue()


def page(subtitles, total_pages=1, current_page=1, status=True):
    response = Mock()
    response.raise_for_status.return_value = None
    response.json.return_value = {
        "status": status,
        "subtitles": subtitles,
        "totalPages": total_pages,
        "currentPage": current_page,
    }
    return response


def archive_response(content: bytes):
    response = Mock()
    response.raise_for_status.return_value = None
    response.content = content
    return response


@pytest.fixture
def session():
    return Mock()


@pytest.fixture
def client(session):
    return SubdlClient(api_key="key123", languages="en", session=session)


@pytest.mark.unit
class TestSearch:
    def test_collects_every_page(self, client, session):
        session.get.side_effect = [
            page([{"url": "/subtitle/1.zip", "name": "a", "lang": "english"}], total_pages=2),
            page([{"url": "/subtitle/2.zip", "name": "b"}], total_pages=2, current_page=2),
        ]

        results = client.search("tt0133093")

        assert [s.url for s in results] == ["/subtitle/1.zip", "/subtitle/2.zip"]
        assert session.get.call_count == 2
        params = session.get.call_args_list[1].kwargs["params"]
        assert params["page"] == 2
        assert params["imdb_id"] == "tt0133093"
        assert params["languages"] == "en"
        assert params["subs_per_page"] == 30
        assert "type" not in params

    def test_episode_query(self, client, session):
        session.get.return_value = page([])

        client.search("tt123", season=1, episode=4)

        params = session.get.call_args.kwargs["params"]
        assert params["type"] == "tv"
        assert params["season_number"] == 1
        assert params["episode_number"] == 4

    def test_empty_status_stops(self, client, session):
        session.get.return_value = page([], status=False)

        assert client.search("tt1") == []
        assert session.get.call_count == 1

    def test_http_error_wrapped(self, client, session):
        response = Mock()
        response.raise_for_status.side_effect = requests.HTTPError("401 Unauthorized")
        session.get.return_value = response

        with pytest.raises(SubtitleFetchError):
            client.search("tt1")

    def test_configured(self, session):
        assert SubdlClient(api_key="k", session=session).configured
        assert not SubdlClient(api_key="", session=session).configured


@pytest.mark.unit
class TestDownload:
    def test_extracts_caption_files_only(self, client, session, tmp_path):
        session.get.return_value = archive_response(
            make_zip({"sub/Movie.srt": "1\n", "Movie.vtt": "WEBVTT\n", "readme.txt": "hi"})
        )

        written = client.download(ArchiveSubtitle(url="/subtitle/1.zip"), tmp_path / "out")

        assert sorted(p.name for p in written) == ["Movie.srt", "Movie.vtt"]
        assert (tmp_path / "out" / "Movie.srt").read_text() == "1\n"
        assert not (tmp_path / "out" / "readme.txt").exists()
        assert session.get.call_args[0][0] == "https://dl.subdl.com/subtitle/1.zip"
        assert session.get.call_args.kwargs["timeout"] == 10.0

    def test_bad_archive(self, client, session, tmp_path):
        session.get.return_value = archive_response(b"not a zip")

        with pytest.raises(ExtractionError):
            client.download(ArchiveSubtitle(url="/subtitle/1.zip"), tmp_path)

    def test_download_failure(self, client, session, tmp_path):
        session.get.side_effect = requests.Timeout("slow")

        with pytest.raises(SubtitleFetchError):
            client.download(ArchiveSubtitle(url="/subtitle/1.zip"), tmp_path)

    def test_download_all_skips_failed_items(self, client, session, tmp_path):
        session.get.side_effect = [
            archive_response(b"garbage"),
            archive_response(make_zip({"good.srt": "1\n"})),
        ]
        subtitles = [ArchiveSubtitle(url="/subtitle/bad.zip"), ArchiveSubtitle(url="/subtitle/ok.zip")]

        written = client.download_all(subtitles, tmp_path)

        assert [p.name for p in written] == ["good.srt"]


@pytest.mark.unit
class TestExtractCaptions:
    def test_paths_are_flattened(self, tmp_path):
        written = extract_captions(make_zip({"../../escape.srt": "x"}), tmp_path / "out")

        assert written == [tmp_path / "out" / "escape.srt"]

    def test_archive_without_captions(self, tmp_path):
        assert extract_captions(make_zip({"readme.txt": "x"}), tmp_path) == []
