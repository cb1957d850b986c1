from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Callable, Optional
import logging

from .player import VideoMetadata, VideoPlayer

if TYPE_CHECKING:  # pragma: no cover - for static analysis only
    from ..datasets import Dataset


class PlayerHost:
    """Owns the lifecycle of the single video player.

    The host opens and releases media; the playback controller only ever
    receives the ready handle.
    """

    def __init__(self, player_factory: Callable[[], VideoPlayer] = VideoPlayer) -> None:
        self._player_factory = player_factory
        self._player: Optional[VideoPlayer] = None
        self._media_path: Optional[Path] = None
        self._log = logging.getLogger(__name__)

    @property
    def player(self) -> Optional[VideoPlayer]:
        return self._player

    @property
    def media_path(self) -> Optional[Path]:
        return self._media_path

    @property
    def metadata(self) -> Optional[VideoMetadata]:
        return self._player.metadata if self._player is not None else None

    @staticmethod
    def resolve_media(dataset: "Dataset") -> Optional[Path]:
        candidates = [dataset.video_path, dataset.video_id]
        for candidate in candidates:
            if not candidate:
                continue
            path = Path(candidate).expanduser()
            if path.is_file():
                return path
        return None

    def open(self, path: Path) -> VideoPlayer:
        self.release()
        player = self._player_factory()
        player.load(str(path))
        self._player = player
        self._media_path = Path(path)
        self._log.debug("PlayerHost: opened %s (%.2fs)", path, player.metadata.duration)
        return player

    def open_dataset(self, dataset: "Dataset") -> Optional[VideoPlayer]:
        path = self.resolve_media(dataset)
        if path is None:
            self._log.info("PlayerHost: no local media for dataset %s (video=%s)", dataset.id, dataset.video_id)
            self.release()
            return None
        return self.open(path)

    def release(self) -> None:
        if self._player is not None:
            self._log.debug("PlayerHost: releasing %s", self._media_path)
            self._player.release()
        self._player = None
        self._media_path = None
