"""Tests for playback-time highlight resolution."""

import pytest

from lyricsync.core.highlight import (
    WordState,
    active_segment_index,
    fill_percent,
    resolve_highlight,
    visible_window,
    word_states,
)
from lyricsync.core.text_utils import format_time, is_instrumental_line


class TestActiveSegmentIndex:
    @pytest.mark.parametrize("t", [-5.0, 0.0, 1.99])
    def test_before_or_inside_first_segment(self, display_segments, t):
        assert active_segment_index(display_segments, t) == 0

    @pytest.mark.parametrize("t,expected", [(2.0, 1), (3.5, 1), (5.0, 2), (9.99, 3)])
    def test_inside_segment(self, display_segments, t, expected):
        assert active_segment_index(display_segments, t) == expected

    @pytest.mark.parametrize("t", [10.0, 42.0])
    def test_at_or_after_last_end(self, display_segments, t):
        assert active_segment_index(display_segments, t) == len(display_segments) - 1

    def test_gap_between_segments_falls_back_to_zero(self, display_segments):
        assert active_segment_index(display_segments, 4.5) == 0

    def test_before_first_start_is_zero(self, segment_factory):
        segments = [segment_factory("late", 10.0, 12.0), segment_factory("later", 12.0, 14.0)]
        assert active_segment_index(segments, 3.0) == 0

    def test_empty(self):
        assert active_segment_index([], 3.0) == 0


class TestVisibleWindow:
    def test_clamped_at_start(self):
        assert visible_window(0, 10) == (0, 3)

    def test_middle(self):
        assert visible_window(5, 10) == (4, 8)

    def test_clamped_at_end(self):
        assert visible_window(9, 10) == (8, 10)

    def test_empty(self):
        assert visible_window(0, 0) == (0, 0)


class TestFillPercent:
    def test_boundaries(self):
        assert fill_percent(2.0, 4.0, 2.0) == 0.0
        assert fill_percent(2.0, 4.0, 4.0) == 100.0

    def test_monotonic_between_bounds(self):
        samples = [fill_percent(2.0, 4.0, 2.0 + i * 0.1) for i in range(21)]
        assert samples == sorted(samples)
        assert samples[10] == pytest.approx(50.0)

    def test_clamped_outside_bounds(self):
        assert fill_percent(2.0, 4.0, 0.0) == 0.0
        assert fill_percent(2.0, 4.0, 9.0) == 100.0

    def test_zero_length_segment(self):
        assert fill_percent(3.0, 3.0, 2.9) == 0.0
        assert fill_percent(3.0, 3.0, 3.0) == 100.0


class TestWordStates:
    def test_states_follow_clock(self, display_segments):
        states = word_states(display_segments[1], 2.7)
        assert states == (WordState.SUNG, WordState.SINGING, WordState.UPCOMING)

    def test_word_end_is_exclusive(self, display_segments):
        states = word_states(display_segments[1], 2.5)
        assert states[0] == WordState.SUNG
        assert states[1] == WordState.SINGING

    def test_none_without_word_timing(self, display_segments):
        assert word_states(display_segments[0], 1.0) is None


class TestResolveHighlight:
    def test_frame_for_middle_line(self, display_segments):
        frame = resolve_highlight(display_segments, 3.0)

        assert frame.active_index == 1
        assert frame.window == (0, 4)
        assert [line.index for line in frame.lines] == [0, 1, 2, 3]

        past, active, upcoming = frame.lines[0], frame.lines[1], frame.lines[2]
        assert past.is_past and not past.is_active
        assert past.fill_percent == 100.0
        assert active.is_active and active.fill_percent == pytest.approx(50.0)
        assert active.word_states is not None
        assert not upcoming.is_past and upcoming.fill_percent == 0.0
        assert upcoming.is_instrumental

    def test_window_slides_with_active_line(self, display_segments):
        frame = resolve_highlight(display_segments, 9.0)
        assert frame.active_index == 3
        assert frame.window == (2, 4)

    def test_seek_backwards_is_stateless(self, display_segments):
        resolve_highlight(display_segments, 9.0)
        assert resolve_highlight(display_segments, 0.5).active_index == 0

    def test_empty_segments(self):
        frame = resolve_highlight([], 12.0)
        assert frame.active_index == 0
        assert frame.window == (0, 0)
        assert frame.lines == ()


class TestDisplayHelpers:
    @pytest.mark.parametrize(
        "text,expected",
        [("♪ ♫ ♪", True), ("(Instrumental)", True), ("INSTRUMENTAL break", True), ("Sing", False)],
    )
    def test_is_instrumental_line(self, text, expected):
        assert is_instrumental_line(text) is expected

    @pytest.mark.parametrize(
        "seconds,expected",
        [(0, "0:00"), (5.9, "0:05"), (65, "1:05"), (600, "10:00"), (float("nan"), "0:00"), (-3, "0:00")],
    )
    def test_format_time(self, seconds, expected):
        assert format_time(seconds) == expected
