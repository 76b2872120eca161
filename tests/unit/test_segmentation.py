"""Unit tests for the caption segmentation engine."""

import pytest

from marquee.catalog.models import CaptionLine
from marquee.catalog.segmentation import (
    MAX_WORDS_PER_SEGMENT,
    MIN_SEGMENT_DURATION_MS,
    is_noise_line,
    rewrite_caption_file,
    segment,
    to_lines,
)
from marquee.catalog.srt_utils import read_srt_file, write_srt_file


def words(texts, step=100, start=0):
    """Contiguous one-word caption lines, ``step`` ms each."""
    return [
        CaptionLine(start=start + i * step, end=start + (i + 1) * step, text=t)
        for i, t in enumerate(texts)
    ]


@pytest.mark.unit
class TestNoiseFilter:
    def test_pure_filler_is_noise(self):
        assert is_noise_line("um")
        assert is_noise_line("Um, uh...")
        assert is_noise_line("hmm")

    def test_mixed_line_is_not_noise(self):
        assert not is_noise_line("um hello")

    def test_blank_is_noise(self):
        assert is_noise_line("   ")


@pytest.mark.unit
class TestSegment:
    """Forward-pass merging of caption lines."""

    def test_empty_input(self):
        assert segment([]) == []

    def test_word_limit_splits_after_twenty_words(self):
        lines = words([f"w{i}" for i in range(25)])

        segments = segment(lines)

        assert len(segments) == 2
        assert len(segments[0].text.split()) == MAX_WORDS_PER_SEGMENT
        assert len(segments[1].text.split()) == 5
        assert segments[0].start == 0
        assert segments[0].end == 2000
        assert segments[1].start == 2000

    def test_short_segment_extended_to_minimum(self):
        segments = segment([CaptionLine(start=0, end=200, text="Hi")])

        assert len(segments) == 1
        assert segments[0].end - segments[0].start == MIN_SEGMENT_DURATION_MS

    def test_noise_lines_dropped(self):
        lines = [
            CaptionLine(start=0, end=300, text="um uh"),
            CaptionLine(start=300, end=600, text="hmm"),
        ]
        assert segment(lines) == []

    def test_noise_between_words_skipped(self):
        lines = words(["so", "um", "anyway"])

        segments = segment(lines)

        assert [s.text for s in segments] == ["so anyway"]

    def test_silence_gap_splits(self):
        lines = [
            CaptionLine(start=0, end=500, text="Hello"),
            CaptionLine(start=2000, end=2500, text="there"),
        ]

        segments = segment(lines)

        assert [s.text for s in segments] == ["Hello", "there"]

    def test_gap_at_threshold_does_not_split(self):
        lines = [
            CaptionLine(start=0, end=500, text="Hello"),
            CaptionLine(start=1500, end=1800, text="there"),
        ]
        assert [s.text for s in segment(lines)] == ["Hello there"]

    def test_sentence_end_splits(self):
        lines = words(["Hello.", "World", "again!", "More"])

        segments = segment(lines)

        assert [s.text for s in segments] == ["Hello.", "World again!", "More"]

    def test_max_duration_splits(self):
        lines = words([f"w{i}" for i in range(10)], step=1000)

        segments = segment(lines)

        assert len(segments) == 2
        assert segments[0].start == 0
        assert segments[0].end == 7000
        assert segments[1].start == 7000
        assert segments[1].end == 10000

    def test_zero_length_line_gets_default_duration(self):
        segments = segment([CaptionLine(start=500, end=500, text="Hey")])

        assert segments[0].start == 500
        assert segments[0].end == 1500

    def test_whitespace_normalized(self):
        segments = segment([CaptionLine(start=0, end=1500, text="  hello   world ")])

        assert segments[0].text == "hello world"

    def test_ids_are_sequential_and_order_kept(self):
        lines = words(["One.", "Two.", "Three."])

        segments = segment(lines)

        assert [s.id for s in segments] == [1, 2, 3]
        starts = [s.start for s in segments]
        assert starts == sorted(starts)

    def test_every_segment_meets_minimum_duration(self):
        lines = words([f"w{i}." for i in range(6)], step=50)

        for seg in segment(lines):
            assert seg.end - seg.start >= MIN_SEGMENT_DURATION_MS

    def test_to_lines_keeps_timing(self):
        segments = segment(words(["Hello", "world."]))

        lines = to_lines(segments)

        assert lines == [CaptionLine(start=0, end=1000, text="Hello world.")]


@pytest.mark.unit
class TestRewriteCaptionFile:
    def test_rewrites_in_place(self, tmp_path):
        path = tmp_path / "tt1_ai.srt"
        write_srt_file(path, words(["Good", "morning.", "um", "How", "are", "you?"], step=300))

        count = rewrite_caption_file(path)

        assert count == 2
        lines = read_srt_file(path)
        assert [line.text for line in lines] == ["Good morning.", "How are you?"]
        assert lines[0].start == 0
        assert lines[0].end == 1000
