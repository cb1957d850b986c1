from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum


class Level(IntEnum):
    UNKNOWN = 0
    KNOWN = 1

    def flipped(self) -> "Level":
        return Level.UNKNOWN if self is Level.KNOWN else Level.KNOWN


@dataclass
class Marker:
    t: float
    label: str = ""
    level: Level = Level.UNKNOWN

    @property
    def key(self) -> float:
        return self.t

    @property
    def display_label(self) -> str:
        return self.label or f"t={self.t:g}"

    @property
    def known(self) -> bool:
        return self.level is Level.KNOWN


@dataclass(frozen=True)
class Segment:
    """A playable time window derived from one marker."""

    start: float
    end: float
    label: str = ""
    level: Level = Level.UNKNOWN

    @property
    def key(self) -> float:
        return self.start

    @property
    def duration(self) -> float:
        return self.end - self.start

    @property
    def display_label(self) -> str:
        return self.label or f"t={self.start:g}"


@dataclass(frozen=True)
class WindowConfig:
    """Segment sizing and polling parameters, persisted with each dataset."""

    window_sec: float = 1.8
    min_segment_sec: float = 0.3
    gap_epsilon: float = 0.05
    end_tolerance: float = 0.01
    poll_interval_ms: int = 120

    def __post_init__(self) -> None:
        if not self.window_sec > 0:
            raise ValueError(f"window_sec must be positive, got {self.window_sec!r}")
        if self.min_segment_sec < 0 or self.gap_epsilon < 0 or self.end_tolerance < 0:
            raise ValueError("min_segment_sec, gap_epsilon and end_tolerance must not be negative")
        if int(self.poll_interval_ms) < 1:
            raise ValueError(f"poll_interval_ms must be at least 1, got {self.poll_interval_ms!r}")

    @property
    def tail_length(self) -> float:
        return max(self.min_segment_sec, self.window_sec)
