import json
import logging
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Dict, List

from .entities import WindowConfig


SETTINGS_FILENAME = "settings.json"
RATE_PRESETS: List[float] = [0.75, 1.0, 1.25, 1.5, 1.75, 2.0]

_log = logging.getLogger(__name__)


@dataclass
class GeneralSettings:
    data_dir: str = "./datasets"
    default_dataset_name: str = "NoName"


@dataclass
class PlaybackSettings:
    loops_per_segment: int = 2
    auto_advance: bool = True
    default_rate: float = 1.0
    max_poll_failures: int = 25
    frame_refresh_ms: int = 33


@dataclass
class WindowSettings:
    window_sec: float = 1.8
    min_segment_sec: float = 0.3
    gap_epsilon: float = 0.05
    end_tolerance: float = 0.01
    poll_interval_ms: int = 120

    def to_config(self) -> WindowConfig:
        return WindowConfig(
            window_sec=self.window_sec,
            min_segment_sec=self.min_segment_sec,
            gap_epsilon=self.gap_epsilon,
            end_tolerance=self.end_tolerance,
            poll_interval_ms=self.poll_interval_ms,
        )


@dataclass
class NotifySettings:
    log_level: str = "Info"
    confirm_delete: bool = True


@dataclass
class AppSettings:
    general: GeneralSettings = field(default_factory=GeneralSettings)
    playback: PlaybackSettings = field(default_factory=PlaybackSettings)
    window: WindowSettings = field(default_factory=WindowSettings)
    notify: NotifySettings = field(default_factory=NotifySettings)


class SettingsManager:
    def __init__(self, path: Path) -> None:
        self.path = path
        self.settings = AppSettings()
        self.load()

    def load(self) -> None:
        if not self.path.exists():
            return
        try:
            data = json.loads(self.path.read_text())
        except (json.JSONDecodeError, OSError):
            return
        self.settings = self._from_dict(data)

    def save(self) -> None:
        self.path.write_text(json.dumps(self._to_dict(), indent=2))

    def reset(self) -> None:
        self.settings = AppSettings()
        self.save()

    def data_dir(self) -> Path:
        path = Path(self.settings.general.data_dir).expanduser()
        if not path.is_absolute():
            path = self.path.parent / path
        return path

    def _to_dict(self) -> Dict:
        return asdict(self.settings)

    def _from_dict(self, data: Dict) -> AppSettings:
        def merge(default_cls, section):
            instance = default_cls()
            if isinstance(section, dict):
                for key, value in section.items():
                    if hasattr(instance, key):
                        setattr(instance, key, value)
            return instance

        settings = AppSettings()
        if not isinstance(data, dict):
            return settings
        if "general" in data:
            settings.general = merge(GeneralSettings, data["general"])
        if "playback" in data:
            settings.playback = merge(PlaybackSettings, data["playback"])
        if "window" in data:
            settings.window = merge(WindowSettings, data["window"])
            try:
                settings.window.to_config()
            except (TypeError, ValueError) as exc:
                _log.warning("SettingsManager: invalid window settings (%s), using defaults", exc)
                settings.window = WindowSettings()
        if "notify" in data:
            settings.notify = merge(NotifySettings, data["notify"])
        return settings


def get_settings_path(root: Path) -> Path:
    return root / SETTINGS_FILENAME


def resolve_log_level(name: str) -> int:
    level = logging.getLevelName(str(name).upper())
    return level if isinstance(level, int) else logging.INFO
