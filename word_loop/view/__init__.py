"""Qt widgets for the Word Loop application."""

from .main_window import WordLoopWindow
from .settings_dialog import SettingsDialog
from .video_widget import VideoCanvas, VideoContainer, VideoPlaceholder, frame_to_pixmap

__all__ = [
    "SettingsDialog",
    "VideoCanvas",
    "VideoContainer",
    "VideoPlaceholder",
    "WordLoopWindow",
    "frame_to_pixmap",
]
