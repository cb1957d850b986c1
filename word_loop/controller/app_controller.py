from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, List, Optional

from ..model.app_model import WordLoopModel
from ..model.datasets import Dataset, DatasetMeta, DatasetStore
from ..model.entities import Marker, Segment, WindowConfig
from ..model.playback import PlaybackController, PlaybackState
from ..model.progress import ProgressGate
from ..model.sequence import is_unknown, show_all
from ..model.settings import AppSettings, SettingsManager
from ..model.video import PlayerHost, VideoPlayer

if TYPE_CHECKING:  # pragma: no cover - for static analysis only
    from ..view.main_window import WordLoopWindow


class WordLoopController:
    """Coordinates interactions between the view and the underlying model."""

    def __init__(self, root_path: Path, model: Optional[WordLoopModel] = None) -> None:
        self._model = model or WordLoopModel(root_path)
        self.view: Optional["WordLoopWindow"] = None

    def set_view(self, view: "WordLoopWindow") -> None:
        self.view = view

    # ------------------------------------------------------------------
    # Convenience accessors
    # ------------------------------------------------------------------
    @property
    def settings_manager(self) -> SettingsManager:
        return self._model.settings_manager

    @property
    def settings(self) -> AppSettings:
        return self._model.settings

    @settings.setter
    def settings(self, value: AppSettings) -> None:
        self._model.settings = value
        self._model.settings_manager.settings = value

    @property
    def store(self) -> DatasetStore:
        return self._model.store

    @property
    def playback(self) -> PlaybackController:
        return self._model.playback

    @property
    def progress(self) -> ProgressGate:
        return self._model.progress

    @property
    def player_host(self) -> PlayerHost:
        return self._model.player_host

    @property
    def video_player(self) -> Optional[VideoPlayer]:
        return self._model.player_host.player

    @property
    def active_dataset(self) -> Optional[Dataset]:
        return self._model.active_dataset

    @property
    def markers(self) -> List[Marker]:
        return self._model.progress.markers

    def segments(self) -> List[Segment]:
        return self._model.segments()

    def window_config(self) -> WindowConfig:
        return self._model.window_config()

    # ------------------------------------------------------------------
    # Dataset library
    # ------------------------------------------------------------------
    def list_datasets(self) -> List[DatasetMeta]:
        return self.store.list_index()

    def import_file(self, path: Path) -> Dataset:
        text = Path(path).read_text(encoding="utf-8-sig")
        return self.store.import_text(
            text,
            window=self.settings.window.to_config(),
            name=self.settings.general.default_dataset_name,
        )

    def export_file(self, dataset_id: str, path: Path) -> bool:
        text = self.store.export_text(dataset_id)
        if text is None:
            return False
        Path(path).write_text(text, encoding="utf-8")
        return True

    def rename_dataset(self, dataset_id: str, name: str) -> Optional[DatasetMeta]:
        meta = self.store.rename(dataset_id, name)
        active = self.active_dataset
        if meta is not None and active is not None and active.id == dataset_id:
            active.name = meta.name
        return meta

    def delete_dataset(self, dataset_id: str) -> bool:
        return self._model.delete_dataset(dataset_id)

    def start_learning(self, dataset_id: str) -> Optional[Dataset]:
        """Open a dataset; the video is opened separately by ``open_media``."""
        return self._model.open_dataset(dataset_id)

    def open_media(self) -> Optional[VideoPlayer]:
        return self._model.open_media()

    def attach_video(self, path: Path) -> Optional[VideoPlayer]:
        return self._model.attach_video(path)

    def stop_learning(self) -> None:
        self._model.close_dataset()

    # ------------------------------------------------------------------
    # Learning controls
    # ------------------------------------------------------------------
    def play_selected(self) -> bool:
        return self.playback.play_first()

    def play_marker(self, key: float) -> bool:
        return self.playback.play(key)

    def play_next(self) -> bool:
        return self.playback.play_next()

    def play_previous(self) -> bool:
        return self.playback.play_previous()

    def stop(self) -> None:
        self.playback.stop()

    def toggle_known(self, key: float) -> Optional[Marker]:
        return self.progress.toggle_level(key)

    def set_loops(self, loops: int) -> None:
        self.playback.loops_per_segment = loops
        self.settings.playback.loops_per_segment = self.playback.loops_per_segment
        self.settings_manager.save()

    def set_rate(self, rate: float) -> None:
        self.playback.set_rate(rate)
        self.settings.playback.default_rate = self.playback.rate
        self.settings_manager.save()

    def set_auto_advance(self, enabled: bool) -> None:
        self.playback.auto_advance = enabled
        self.settings.playback.auto_advance = self.playback.auto_advance
        self.settings_manager.save()

    def set_include_known(self, enabled: bool) -> None:
        """Loop every marker instead of only the unknown ones."""
        self._model.sequence.set_predicate(show_all if enabled else is_unknown)

    def set_window_sec(self, window_sec: float) -> WindowConfig:
        return self._model.set_window_sec(window_sec)

    @property
    def playback_state(self) -> PlaybackState:
        return self.playback.state

    def known_count(self) -> int:
        return self.progress.known_count()

    def total_count(self) -> int:
        return self.progress.total_count()

    def apply_settings(self, settings: AppSettings) -> None:
        self.settings = settings
        self.settings_manager.save()
        playback = settings.playback
        self.playback.loops_per_segment = playback.loops_per_segment
        self.playback.auto_advance = playback.auto_advance
        self.playback.max_poll_failures = playback.max_poll_failures
        self.playback.set_rate(playback.default_rate)

    def refresh_settings(self) -> None:
        """Reload settings from disk and update the model."""
        self.settings_manager.load()
        self.settings = self.settings_manager.settings
