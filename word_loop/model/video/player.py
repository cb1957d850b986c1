from dataclasses import dataclass
from typing import Callable, Optional, Protocol, Tuple

import cv2
import numpy as np
import threading
import time


class PlayerUnavailableError(RuntimeError):
    """Raised when a position is requested from a player with no media."""


class Player(Protocol):
    """The five commands the playback scheduler issues.

    Everything except ``current_time`` is fire-and-forget; ``current_time``
    is a synchronous read that may lag behind the last seek.
    """

    def seek(self, seconds: float, allow_ahead: bool) -> None: ...

    def play(self) -> None: ...

    def pause(self) -> None: ...

    def current_time(self) -> float: ...

    def set_rate(self, multiplier: float) -> None: ...


@dataclass
class VideoMetadata:
    frame_count: int
    fps: float
    frame_duration_ms: int
    frame_size: Tuple[int, int]

    @property
    def duration(self) -> float:
        return self.frame_count / self.fps if self.fps > 0 else 0.0


MIN_RATE = 0.05
MAX_RATE = 16.0
# Larger forward jumps are cheaper as a seek than as a run of grabs.
MAX_GRAB_RUN = 16


class VideoPlayer:
    """Local media player driven by a monotonic clock.

    The playback position is ``anchor + elapsed * rate`` while playing. It is
    not clamped to the media duration, so a window that runs past the last
    frame still completes; ``read_frame`` keeps showing the last frame.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._capture: Optional[cv2.VideoCapture] = None
        self._metadata = VideoMetadata(frame_count=0, fps=30.0, frame_duration_ms=33, frame_size=(0, 0))
        self.current_frame_index: int = 0
        self.current_frame: Optional[np.ndarray] = None
        self._io_lock = threading.RLock()
        self._clock = clock
        self._anchor_position: float = 0.0
        self._anchor_time: float = 0.0
        self._playing: bool = False
        self._rate: float = 1.0

    def load(self, path: str) -> VideoMetadata:
        with self._io_lock:
            self.release()
            capture = cv2.VideoCapture(path)
            if not capture.isOpened():
                raise ValueError("Failed to open video.")

            # Attempt to enable hardware acceleration when supported by the backend.
            try:
                if hasattr(cv2, "CAP_PROP_HW_ACCELERATION") and hasattr(cv2, "VIDEO_ACCELERATION_ANY"):
                    capture.set(cv2.CAP_PROP_HW_ACCELERATION, cv2.VIDEO_ACCELERATION_ANY)
            except cv2.error:
                pass

            frame_count = int(capture.get(cv2.CAP_PROP_FRAME_COUNT) or 0)
            fps = float(capture.get(cv2.CAP_PROP_FPS) or 30.0)
            fps = fps if fps > 0 else 30.0
            frame_duration_ms = int(round(1000 / fps))
            width = int(capture.get(cv2.CAP_PROP_FRAME_WIDTH))
            height = int(capture.get(cv2.CAP_PROP_FRAME_HEIGHT))

            self._capture = capture
            self._metadata = VideoMetadata(
                frame_count=frame_count,
                fps=fps,
                frame_duration_ms=frame_duration_ms,
                frame_size=(width, height),
            )
            self.current_frame_index = 0
            self.current_frame = None
            self._anchor_position = 0.0
            self._anchor_time = self._clock()
            self._playing = False
            return self._metadata

    @property
    def metadata(self) -> VideoMetadata:
        return self._metadata

    @property
    def rate(self) -> float:
        return self._rate

    def is_loaded(self) -> bool:
        return self._capture is not None

    def is_playing(self) -> bool:
        return self._playing

    # ------------------------------------------------------------------
    # Player commands
    # ------------------------------------------------------------------
    def seek(self, seconds: float, allow_ahead: bool = True) -> None:
        if not self.is_loaded():
            return
        self._anchor_position = max(0.0, float(seconds))
        self._anchor_time = self._clock()
        if allow_ahead:
            self.read_frame()

    def play(self) -> None:
        if not self.is_loaded() or self._playing:
            return
        self._anchor_time = self._clock()
        self._playing = True

    def pause(self) -> None:
        if not self._playing:
            return
        self._anchor_position = self._position()
        self._anchor_time = self._clock()
        self._playing = False

    def current_time(self) -> float:
        if not self.is_loaded():
            raise PlayerUnavailableError("No video loaded.")
        return self._position()

    def set_rate(self, multiplier: float) -> None:
        rate = max(MIN_RATE, min(MAX_RATE, float(multiplier)))
        self._anchor_position = self._position()
        self._anchor_time = self._clock()
        self._rate = rate

    def _position(self) -> float:
        if not self._playing:
            return self._anchor_position
        elapsed = max(0.0, self._clock() - self._anchor_time)
        return self._anchor_position + elapsed * self._rate

    # ------------------------------------------------------------------
    # Frame access
    # ------------------------------------------------------------------
    def read_frame(self) -> Optional[np.ndarray]:
        """Decode the frame shown at the current playback position."""
        with self._io_lock:
            if not self._capture:
                return None
            max_index = max(0, self._metadata.frame_count - 1)
            target = min(int(self._position() * self._metadata.fps), max_index)
            if self.current_frame is not None and target == self.current_frame_index:
                return self.current_frame
            if self.current_frame is not None and 0 < target - self.current_frame_index <= MAX_GRAB_RUN:
                frame = self.advance(target - self.current_frame_index)
                if frame is not None:
                    return frame
            return self.seek_frame(target)

    def seek_frame(self, frame_index: int) -> Optional[np.ndarray]:
        with self._io_lock:
            if not self._capture:
                return None
            max_index = max(0, self._metadata.frame_count - 1)
            frame_index = max(0, min(frame_index, max_index))
            self._capture.set(cv2.CAP_PROP_POS_FRAMES, frame_index)
            success, frame = self._capture.read()
            if not success:
                return None
            self.current_frame_index = frame_index
            self.current_frame = frame
            return frame

    def advance(self, frames_to_advance: int) -> Optional[np.ndarray]:
        with self._io_lock:
            if not self._capture:
                return None
            max_index = max(0, self._metadata.frame_count - 1)
            frames_remaining = max_index - self.current_frame_index
            if frames_remaining <= 0:
                return None

            steps = max(1, min(frames_to_advance, frames_remaining))
            # Skip intermediate frames using grab for better throughput.
            for _ in range(steps - 1):
                if not self._capture.grab():
                    self.current_frame = None
                    return None
                self.current_frame_index += 1

            success, frame = self._capture.read()
            if not success or frame is None:
                self.current_frame = None
                return None

            self.current_frame_index += 1
            self.current_frame = frame
            return frame

    def release(self) -> None:
        with self._io_lock:
            if self._capture:
                self._capture.release()
            self._capture = None
            self.current_frame = None
            self.current_frame_index = 0
            self._playing = False
            self._anchor_position = 0.0
            self._metadata = VideoMetadata(frame_count=0, fps=30.0, frame_duration_ms=33, frame_size=(0, 0))
