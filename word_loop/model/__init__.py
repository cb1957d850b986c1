"""Model layer containing the application's core logic and data structures."""

from .app_model import WordLoopModel
from .csv_format import ImportFormatError, extract_video_id, format_markers, parse_markers, parse_time
from .datasets import Dataset, DatasetMeta, DatasetStore
from .entities import Level, Marker, Segment, WindowConfig
from .playback import PlaybackController, PlaybackState, QtPollTimer, Session
from .progress import ProgressGate
from .segments import build_segments, sort_markers
from .sequence import SequenceState, is_unknown, show_all
from .settings import (
    AppSettings,
    GeneralSettings,
    NotifySettings,
    PlaybackSettings,
    SettingsManager,
    WindowSettings,
    get_settings_path,
)
from .video import Player, PlayerHost, PlayerUnavailableError, VideoMetadata, VideoPlayer

__all__ = [
    "AppSettings",
    "Dataset",
    "DatasetMeta",
    "DatasetStore",
    "GeneralSettings",
    "ImportFormatError",
    "Level",
    "Marker",
    "NotifySettings",
    "PlaybackController",
    "PlaybackSettings",
    "PlaybackState",
    "Player",
    "PlayerHost",
    "PlayerUnavailableError",
    "ProgressGate",
    "QtPollTimer",
    "Segment",
    "SequenceState",
    "Session",
    "SettingsManager",
    "VideoMetadata",
    "VideoPlayer",
    "WindowConfig",
    "WindowSettings",
    "WordLoopModel",
    "build_segments",
    "extract_video_id",
    "format_markers",
    "get_settings_path",
    "is_unknown",
    "parse_markers",
    "parse_time",
    "show_all",
    "sort_markers",
]
