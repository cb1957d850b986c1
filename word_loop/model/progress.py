from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional
import logging

from .entities import Level, Marker

if TYPE_CHECKING:  # pragma: no cover - for static analysis only
    from .datasets import Dataset, DatasetStore


class ProgressGate:
    """Records mastery changes on the active dataset.

    The gate never talks to the playback controller. A level change reaches
    playback only through the segment list, which is rebuilt from the live
    markers whenever the controller decides what to play next.
    """

    def __init__(self, store: "DatasetStore") -> None:
        self._store = store
        self._dataset: Optional["Dataset"] = None
        self._log = logging.getLogger(__name__)

    @property
    def dataset(self) -> Optional["Dataset"]:
        return self._dataset

    def bind(self, dataset: Optional["Dataset"]) -> None:
        self._dataset = dataset

    @property
    def markers(self) -> List[Marker]:
        return self._dataset.markers if self._dataset is not None else []

    def find(self, key: float) -> Optional[Marker]:
        for marker in self.markers:
            if marker.t == key:
                return marker
        return None

    def toggle_level(self, key: float) -> Optional[Marker]:
        marker = self.find(key)
        if marker is None:
            self._log.debug("ProgressGate: no marker at %s", key)
            return None
        return self.set_level(key, marker.level.flipped())

    def set_level(self, key: float, level: Level) -> Optional[Marker]:
        marker = self.find(key)
        if marker is None or self._dataset is None:
            return None
        if marker.level != level:
            marker.level = Level(level)
            self._store.save(self._dataset)
            self._log.debug("ProgressGate: %r -> %s", marker.display_label, marker.level.name)
        return marker

    def known_count(self) -> int:
        return sum(1 for marker in self.markers if marker.known)

    def total_count(self) -> int:
        return len(self.markers)
