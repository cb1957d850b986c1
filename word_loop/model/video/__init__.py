"""Video playback: the Player capability and its OpenCV implementation."""

from .host import PlayerHost
from .player import Player, PlayerUnavailableError, VideoMetadata, VideoPlayer

__all__ = ["Player", "PlayerHost", "PlayerUnavailableError", "VideoMetadata", "VideoPlayer"]
