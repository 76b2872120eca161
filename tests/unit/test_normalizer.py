"""Unit tests for the title normalizer."""

import pytest

from marquee.core.normalizer import normalize_title, parse_episode


@pytest.mark.unit
class TestNormalizeTitle:
    """Release names to clean titles."""

    def test_episode_release(self):
        assert normalize_title("Show.S01E01.1080p.WEB-DL.x264-GRP") == "Show"

    def test_episode_marker_drops_trailing_episode_title(self):
        assert normalize_title("Title.S02E05.x264") == "Title"
        assert normalize_title("Some.Show.S03E10.The.Big.One.720p.HDTV") == "Some Show"

    def test_multi_episode_release(self):
        assert normalize_title("Show.S01E01E02.720p.HDTV.x264-GRP") == "Show"
        assert normalize_title("Show.S01E01-E02.720p") == "Show"

    def test_movie_release_keeps_year(self):
        assert normalize_title("The.Matrix.1999.1080p.BluRay.x264-GROUP") == "The Matrix 1999"

    def test_brackets_and_parens_removed(self):
        assert normalize_title("[YTS.MX] Inception (2010) [1080p]") == "Inception"

    def test_audio_and_codec_tokens(self):
        assert normalize_title("Heat.1995.DTS5.1.H.264.AAC-RARBG") == "Heat 1995"

    def test_edition_and_size_tokens(self):
        assert normalize_title("Alien.1979.REMASTERED.2.5GB.HDR") == "Alien 1979"

    def test_media_extension_stripped(self):
        assert normalize_title("Movie.Name.2010.mkv") == "Movie Name 2010"

    def test_date_stamp_removed(self):
        assert normalize_title("Daily.Show.2021.03.14.WEB") == "Daily Show"

    def test_domain_suffix_removed(self):
        assert normalize_title("Some.Film.2004.rarbg.com") == "Some Film 2004 rarbg"

    def test_plain_title_unchanged(self):
        assert normalize_title("Plain Title") == "Plain Title"

    def test_whitespace_collapsed(self):
        assert normalize_title("  Some   Title  ") == "Some Title"

    def test_empty_input(self):
        assert normalize_title("") == ""

    @pytest.mark.parametrize(
        "raw",
        [
            "Show.S01E01.1080p.WEB-DL.x264-GRP",
            "The.Matrix.1999.1080p.BluRay.x264-GROUP",
            "[YTS.MX] Inception (2010) [1080p]",
            "Plain Title",
        ],
    )
    def test_idempotent(self, raw):
        once = normalize_title(raw)
        assert normalize_title(once) == once


@pytest.mark.unit
class TestParseEpisode:
    """SxxExx marker extraction."""

    def test_standard_marker(self):
        assert parse_episode("Show.S01E01.1080p") == (1, 1)

    def test_two_digit_values(self):
        assert parse_episode("Title.S02E05.x264") == (2, 5)
        assert parse_episode("Long.Show.S12E103") == (12, 103)

    def test_multi_episode_marker_takes_first(self):
        assert parse_episode("Show.S01E01E02.720p.HDTV.x264-GRP") == (1, 1)

    def test_lowercase_marker(self):
        assert parse_episode("show.s1e12.web") == (1, 12)

    def test_no_marker(self):
        assert parse_episode("The.Matrix.1999") is None
