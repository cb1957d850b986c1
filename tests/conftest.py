"""Shared fixtures for Word Loop tests."""

import os

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest

from word_loop.model.entities import Level, Marker, WindowConfig


class FakePlayer:
    """Records every command and reports whatever ``position`` is set to."""

    def __init__(self):
        self.calls = []
        self.position = 0.0
        self.rate = 1.0
        self.broken = False

    def seek(self, seconds, allow_ahead=True):
        self.calls.append(("seek", seconds))
        self.position = seconds

    def play(self):
        self.calls.append(("play",))

    def pause(self):
        self.calls.append(("pause",))

    def current_time(self):
        if self.broken:
            raise RuntimeError("player handle is gone")
        return self.position

    def set_rate(self, multiplier):
        self.calls.append(("rate", multiplier))
        self.rate = multiplier

    def is_loaded(self):
        return True

    def read_frame(self):
        return None

    def seeks(self):
        return [call[1] for call in self.calls if call[0] == "seek"]


class FakeHost:
    """Stands in for PlayerHost; hands out the shared fake player."""

    def __init__(self, player):
        self._ready = player
        self.player = None
        self.opened = []
        self.released = 0

    def open_dataset(self, dataset):
        self.opened.append(dataset.id)
        self.player = self._ready
        return self.player

    def release(self):
        self.released += 1
        self.player = None


class ManualTimer:
    def __init__(self, callback):
        self.callback = callback
        self.interval_ms = None
        self.active = False
        self.cancelled = False

    def start(self, interval_ms):
        self.interval_ms = interval_ms
        self.active = True

    def cancel(self):
        self.active = False
        self.cancelled = True

    def is_active(self):
        return self.active

    def fire(self):
        self.callback()


class ManualTimerFactory:
    """Timer factory whose timers only tick when a test says so."""

    def __init__(self):
        self.timers = []

    def __call__(self, callback):
        timer = ManualTimer(callback)
        self.timers.append(timer)
        return timer

    @property
    def active(self):
        live = [timer for timer in self.timers if timer.active]
        return live[-1] if live else None

    def tick(self):
        timer = self.active
        if timer is not None:
            timer.fire()


@pytest.fixture
def fake_player():
    return FakePlayer()


@pytest.fixture
def host(fake_player):
    return FakeHost(fake_player)


@pytest.fixture
def timers():
    return ManualTimerFactory()


@pytest.fixture
def window():
    return WindowConfig(window_sec=2.0, gap_epsilon=0.05)


@pytest.fixture
def sample_markers():
    """Two unknown words and one known word."""
    return [
        Marker(t=0.0, label="a", level=Level.UNKNOWN),
        Marker(t=5.0, label="b", level=Level.UNKNOWN),
        Marker(t=12.0, label="c", level=Level.KNOWN),
    ]


@pytest.fixture
def sample_csv():
    return (
        "https://www.youtube.com/watch?v=dQw4w9WgXcQ\n"
        "time,word,level\n"
        "0:01,hello,0\n"
        "0:05.5,world,1\n"
        "12,again,\n"
    )


@pytest.fixture
def tiny_video(tmp_path):
    """Write a one second, ten frame MJPG clip."""
    import cv2
    import numpy as np

    path = tmp_path / "clip.avi"
    writer = cv2.VideoWriter(str(path), cv2.VideoWriter_fourcc(*"MJPG"), 10.0, (64, 48))
    if not writer.isOpened():
        pytest.skip("OpenCV build cannot write MJPG video")
    for index in range(10):
        frame = np.full((48, 64, 3), index * 20, dtype=np.uint8)
        writer.write(frame)
    writer.release()
    return path
