from __future__ import annotations

from dataclasses import replace
from pathlib import Path
from typing import List, Optional
import logging

from .datasets import Dataset, DatasetStore
from .entities import Segment, WindowConfig
from .playback import PlaybackController, TimerFactory
from .progress import ProgressGate
from .segments import build_segments
from .sequence import SequenceState
from .settings import AppSettings, SettingsManager, get_settings_path
from .video import PlayerHost, VideoPlayer


class WordLoopModel:
    """Encapsulates the non-UI state of the Word Loop application."""

    def __init__(
        self,
        root_path: Path,
        *,
        player_host: Optional[PlayerHost] = None,
        timer_factory: Optional[TimerFactory] = None,
    ) -> None:
        self.settings_manager = SettingsManager(get_settings_path(root_path))
        self.settings: AppSettings = self.settings_manager.settings
        self._log = logging.getLogger(__name__)

        self.store = DatasetStore(self.settings_manager.data_dir(), self.settings.window.to_config())
        self.progress = ProgressGate(self.store)
        self.sequence = SequenceState(self.segments)
        self.player_host = player_host or PlayerHost()

        playback = self.settings.playback
        self.playback = PlaybackController(
            self.sequence,
            self.window_config,
            loops_per_segment=playback.loops_per_segment,
            auto_advance=playback.auto_advance,
            rate=playback.default_rate,
            max_poll_failures=playback.max_poll_failures,
            timer_factory=timer_factory,
        )
        self.active_dataset: Optional[Dataset] = None

    # ------------------------------------------------------------------
    # Live views
    # ------------------------------------------------------------------
    def window_config(self) -> WindowConfig:
        if self.active_dataset is not None:
            return self.active_dataset.window
        return self.settings.window.to_config()

    def segments(self) -> List[Segment]:
        if self.active_dataset is None:
            return []
        return build_segments(self.active_dataset.markers, self.active_dataset.window)

    # ------------------------------------------------------------------
    # Dataset lifecycle
    # ------------------------------------------------------------------
    def open_dataset(self, dataset_id: str) -> Optional[Dataset]:
        dataset = self.store.load(dataset_id)
        if dataset is None:
            self._log.warning("WordLoopModel: dataset %s could not be loaded", dataset_id)
            return None
        self.close_dataset()
        self.active_dataset = dataset
        self.progress.bind(dataset)
        return dataset

    def open_media(self) -> Optional[VideoPlayer]:
        """Open the active dataset's video and hand it to the playback controller."""
        self.playback.stop()
        self.playback.detach_player()
        if self.active_dataset is None:
            return None
        player = self.player_host.open_dataset(self.active_dataset)
        if player is not None:
            self.playback.attach_player(player)
        return player

    def attach_video(self, path: Path) -> Optional[VideoPlayer]:
        if self.active_dataset is None:
            return None
        self.active_dataset.video_path = str(path)
        self.store.save(self.active_dataset)
        return self.open_media()

    def close_dataset(self) -> None:
        self.playback.stop()
        self.playback.detach_player()
        self.player_host.release()
        self.progress.bind(None)
        self.active_dataset = None

    def delete_dataset(self, dataset_id: str) -> bool:
        if self.active_dataset is not None and self.active_dataset.id == dataset_id:
            self.close_dataset()
        return self.store.delete(dataset_id)

    def set_window_sec(self, window_sec: float) -> WindowConfig:
        if self.active_dataset is None:
            config = replace(self.settings.window.to_config(), window_sec=window_sec)
            self.settings.window.window_sec = config.window_sec
            self.settings_manager.save()
            return config
        config = replace(self.active_dataset.window, window_sec=window_sec)
        self.active_dataset.window = config
        self.store.save(self.active_dataset)
        return config
