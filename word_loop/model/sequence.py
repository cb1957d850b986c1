from __future__ import annotations

from bisect import bisect_left, bisect_right
from typing import Callable, Iterable, List, Optional

from .entities import Level, Segment

SegmentSource = Callable[[], List[Segment]]
SegmentPredicate = Callable[[Segment], bool]


def is_unknown(segment: Segment) -> bool:
    return segment.level is Level.UNKNOWN


def show_all(segment: Segment) -> bool:
    return True


class SequenceState:
    """Filtered, start-time keyed view over the live segment list.

    The filtered list is never cached: every lookup re-reads the source, so a
    marker toggled while its segment is playing changes what ``next_after``
    returns at the next advance decision.
    """

    def __init__(self, source: SegmentSource, predicate: SegmentPredicate = is_unknown) -> None:
        self._source = source
        self._predicate = predicate
        self.active_key: Optional[float] = None

    @staticmethod
    def filter(segments: Iterable[Segment], predicate: SegmentPredicate) -> List[Segment]:
        return [segment for segment in segments if predicate(segment)]

    def set_predicate(self, predicate: SegmentPredicate) -> None:
        self._predicate = predicate

    @property
    def filtered_segments(self) -> List[Segment]:
        return self.filter(self._source(), self._predicate)

    def find(self, key: Optional[float]) -> Optional[Segment]:
        if key is None:
            return None
        for segment in self.filtered_segments:
            if segment.start == key:
                return segment
        return None

    def first(self) -> Optional[Segment]:
        segments = self.filtered_segments
        return segments[0] if segments else None

    def next_after(self, key: float) -> Optional[Segment]:
        segments = self.filtered_segments
        starts = [segment.start for segment in segments]
        index = bisect_right(starts, key)
        if index >= len(segments):
            return None
        return segments[index]

    def previous_before(self, key: float) -> Optional[Segment]:
        segments = self.filtered_segments
        starts = [segment.start for segment in segments]
        index = bisect_left(starts, key)
        if index <= 0:
            return None
        return segments[index - 1]

    def active_segment(self) -> Optional[Segment]:
        return self.find(self.active_key)
