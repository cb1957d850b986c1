from __future__ import annotations

# This module turns a sparse list of timestamp markers into playable windows.
# Each marker owns the span up to the next marker (minus a small gap), and the
# last marker gets a fixed-length tail sized by the window configuration.

from typing import Iterable, List

from .entities import Marker, Segment, WindowConfig


def sort_markers(markers: Iterable[Marker]) -> List[Marker]:
    """
    Order markers by timestamp.

    The sort is stable, so markers sharing a timestamp keep the relative order
    in which they were given.

    Args:
        markers (Iterable[Marker]): Markers in any order.

    Returns:
        List[Marker]: A new list sorted by ``t`` ascending.
    """
    return sorted(markers, key=lambda marker: marker.t)


def build_segments(markers: Iterable[Marker], config: WindowConfig) -> List[Segment]:
    """
    Project markers onto non-overlapping playable segments.

    Every marker yields exactly one segment starting at its timestamp. A
    segment ends ``gap_epsilon`` before the following marker, clamped so it
    never ends before it starts; the final segment lasts
    ``max(min_segment_sec, window_sec)``.

    The projection is pure: the same markers and configuration always give the
    same segments, which is what allows callers to rebuild the list at any
    moment, including while one of the segments is playing.

    Args:
        markers (Iterable[Marker]): Markers, not necessarily sorted.
        config (WindowConfig): Window sizing parameters.

    Returns:
        List[Segment]: One segment per marker, ordered by start time.
    """
    ordered = sort_markers(markers)
    segments: List[Segment] = []
    for index, marker in enumerate(ordered):
        start = float(marker.t)
        if index + 1 < len(ordered):
            end = max(start, float(ordered[index + 1].t) - config.gap_epsilon)
        else:
            end = start + config.tail_length
        segments.append(Segment(start=start, end=end, label=marker.label, level=marker.level))
    return segments
