"""Tests for marker to segment projection."""

import pytest

from word_loop.model.entities import Level, Marker, WindowConfig
from word_loop.model.segments import build_segments, sort_markers


def test_three_marker_projection(sample_markers, window):
    segments = build_segments(sample_markers, window)
    assert [(s.start, s.label) for s in segments] == [(0.0, "a"), (5.0, "b"), (12.0, "c")]
    assert segments[0].end == pytest.approx(4.95)
    assert segments[1].end == pytest.approx(11.95)
    assert segments[2].end == pytest.approx(14.0)
    assert segments[2].level is Level.KNOWN


def test_empty_markers_give_no_segments(window):
    assert build_segments([], window) == []


def test_single_marker_gets_tail(window):
    [segment] = build_segments([Marker(t=7.0, label="x")], window)
    assert segment.start == 7.0
    assert segment.end == pytest.approx(9.0)


def test_unsorted_input_is_ordered(sample_markers, window):
    segments = build_segments(list(reversed(sample_markers)), window)
    assert [s.label for s in segments] == ["a", "b", "c"]


def test_close_markers_never_end_before_start():
    config = WindowConfig(window_sec=2.0, gap_epsilon=0.05)
    segments = build_segments([Marker(t=1.0, label="a"), Marker(t=1.02, label="b")], config)
    assert segments[0].end == segments[0].start == 1.0


def test_duplicate_timestamps_keep_input_order():
    config = WindowConfig(window_sec=1.0, gap_epsilon=0.05)
    markers = [Marker(t=2.0, label="first"), Marker(t=2.0, label="second")]
    segments = build_segments(markers, config)
    assert [s.label for s in segments] == ["first", "second"]
    assert segments[0].end == 2.0


def test_segments_tile_without_overlap(window):
    markers = [Marker(t=t) for t in (0.0, 0.5, 3.0, 3.01, 9.0)]
    segments = build_segments(markers, window)
    for current, following in zip(segments, segments[1:]):
        assert current.start <= current.end <= following.start


def test_projection_is_pure(sample_markers, window):
    assert build_segments(sample_markers, window) == build_segments(sample_markers, window)
    assert [m.t for m in sample_markers] == [0.0, 5.0, 12.0]


def test_sort_markers_returns_new_list(sample_markers):
    shuffled = [sample_markers[2], sample_markers[0], sample_markers[1]]
    ordered = sort_markers(shuffled)
    assert [m.t for m in ordered] == [0.0, 5.0, 12.0]
    assert shuffled[0].t == 12.0
