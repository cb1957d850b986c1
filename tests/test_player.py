"""Tests for the OpenCV backed player and its host."""

from unittest.mock import MagicMock

import pytest

from word_loop.model.datasets import Dataset
from word_loop.model.video import PlayerHost, PlayerUnavailableError, VideoPlayer


class FakeClock:
    def __init__(self):
        self.now = 100.0

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def loaded_player(tiny_video, clock):
    player = VideoPlayer(clock=clock)
    player.load(str(tiny_video))
    yield player
    player.release()


def test_unloaded_player(clock):
    player = VideoPlayer(clock=clock)
    assert not player.is_loaded()
    player.seek(3.0, True)
    player.play()
    assert not player.is_playing()
    assert player.read_frame() is None
    with pytest.raises(PlayerUnavailableError):
        player.current_time()


def test_load_missing_file_raises(tmp_path):
    with pytest.raises(ValueError):
        VideoPlayer().load(str(tmp_path / "missing.mp4"))


def test_metadata(loaded_player):
    metadata = loaded_player.metadata
    assert metadata.fps == pytest.approx(10.0)
    assert metadata.frame_size == (64, 48)
    assert metadata.duration == pytest.approx(1.0, abs=0.2)


def test_position_follows_clock(loaded_player, clock):
    loaded_player.seek(0.2, True)
    assert loaded_player.current_time() == pytest.approx(0.2)
    loaded_player.play()
    clock.now += 0.5
    assert loaded_player.current_time() == pytest.approx(0.7)
    loaded_player.pause()
    clock.now += 5.0
    assert loaded_player.current_time() == pytest.approx(0.7)


def test_rate_change_keeps_position_continuous(loaded_player, clock):
    loaded_player.seek(0.0, True)
    loaded_player.play()
    clock.now += 1.0
    loaded_player.set_rate(2.0)
    assert loaded_player.current_time() == pytest.approx(1.0)
    clock.now += 1.0
    assert loaded_player.current_time() == pytest.approx(3.0)


def test_rate_is_clamped(loaded_player):
    loaded_player.set_rate(100.0)
    assert loaded_player.rate == 16.0
    loaded_player.set_rate(0.0)
    assert loaded_player.rate == 0.05


def test_position_runs_past_media_end(loaded_player, clock):
    loaded_player.seek(0.9, True)
    loaded_player.play()
    clock.now += 10.0
    assert loaded_player.current_time() == pytest.approx(10.9)
    frame = loaded_player.read_frame()
    assert frame is not None
    assert loaded_player.current_frame_index == loaded_player.metadata.frame_count - 1


def test_read_frame_tracks_position(loaded_player, clock):
    loaded_player.seek(0.0, True)
    assert loaded_player.current_frame_index == 0
    loaded_player.play()
    clock.now += 0.35
    frame = loaded_player.read_frame()
    assert frame is not None
    assert loaded_player.current_frame_index == 3


def test_release_resets_player(loaded_player):
    loaded_player.play()
    loaded_player.release()
    assert not loaded_player.is_loaded()
    assert not loaded_player.is_playing()


# ----------------------------------------------------------------------
# PlayerHost
# ----------------------------------------------------------------------
def test_resolve_media_prefers_video_path(tmp_path):
    attached = tmp_path / "attached.mp4"
    attached.write_bytes(b"")
    named = tmp_path / "named.mp4"
    named.write_bytes(b"")
    dataset = Dataset(id="x", video_id=str(named), video_path=str(attached))
    assert PlayerHost.resolve_media(dataset) == attached


def test_resolve_media_falls_back_to_video_id(tmp_path):
    named = tmp_path / "named.mp4"
    named.write_bytes(b"")
    dataset = Dataset(id="x", video_id=str(named), video_path=str(tmp_path / "moved.mp4"))
    assert PlayerHost.resolve_media(dataset) == named


def test_resolve_media_without_local_file():
    assert PlayerHost.resolve_media(Dataset(id="x", video_id="dQw4w9WgXcQ")) is None


def test_open_releases_previous_player(tmp_path):
    players = []

    def factory():
        player = MagicMock()
        players.append(player)
        return player

    host = PlayerHost(player_factory=factory)
    host.open(tmp_path / "one.mp4")
    host.open(tmp_path / "two.mp4")
    players[0].release.assert_called_once()
    players[1].load.assert_called_once_with(str(tmp_path / "two.mp4"))
    assert host.player is players[1]
    assert host.media_path == tmp_path / "two.mp4"


def test_open_failure_propagates(tmp_path):
    host = PlayerHost()
    with pytest.raises(ValueError):
        host.open(tmp_path / "missing.mp4")
    assert host.player is None


def test_open_dataset_without_media_returns_none():
    host = PlayerHost(player_factory=MagicMock)
    assert host.open_dataset(Dataset(id="x", video_id="dQw4w9WgXcQ")) is None
    assert host.player is None


def test_open_dataset_with_real_clip(tiny_video):
    host = PlayerHost()
    player = host.open_dataset(Dataset(id="x", video_path=str(tiny_video)))
    assert player is host.player
    assert player.is_loaded()
    host.release()
    assert not player.is_loaded()
    assert host.metadata is None
