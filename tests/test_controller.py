"""Tests for the model and controller working together on disk."""

import json

import pytest

from word_loop.controller import WordLoopController
from word_loop.model import AppSettings, Level, PlaybackState, WordLoopModel


@pytest.fixture
def controller(qapp, tmp_path, host, timers):
    model = WordLoopModel(tmp_path, player_host=host, timer_factory=timers)
    return WordLoopController(tmp_path, model=model)


@pytest.fixture
def csv_file(tmp_path, sample_csv):
    path = tmp_path / "words.csv"
    path.write_text(sample_csv, encoding="utf-8")
    return path


@pytest.fixture
def started(controller, csv_file):
    dataset = controller.import_file(csv_file)
    controller.start_learning(dataset.id)
    controller.open_media()
    return dataset


def test_import_file_adds_to_library(controller, csv_file, tmp_path):
    dataset = controller.import_file(csv_file)
    assert dataset.name == "NoName"
    assert [meta.id for meta in controller.list_datasets()] == [dataset.id]
    assert (tmp_path / "datasets" / f"ds-{dataset.id}.json").exists()


def test_import_file_strips_bom(controller, tmp_path, sample_csv):
    path = tmp_path / "bom.csv"
    path.write_bytes(sample_csv.encode("utf-8-sig"))
    assert controller.import_file(path).video_id == "dQw4w9WgXcQ"


def test_start_learning_binds_progress(controller, started):
    assert controller.active_dataset.id == started.id
    assert controller.total_count() == 3
    assert controller.known_count() == 1
    assert [s.label for s in controller.segments()] == ["hello", "world", "again"]


def test_start_learning_unknown_dataset(controller):
    assert controller.start_learning("missing") is None
    assert controller.active_dataset is None


def test_play_selected_loops_first_unknown(controller, started, fake_player, host):
    assert host.opened == [started.id]
    assert controller.play_selected()
    assert controller.playback_state is PlaybackState.PLAYING
    assert fake_player.seeks() == [1.0]
    assert controller.play_next()
    assert fake_player.seeks() == [1.0, 12.0]


def test_toggle_known_persists(controller, started):
    controller.toggle_known(12.0)
    reloaded = controller.store.load(started.id)
    assert reloaded.markers[2].level is Level.KNOWN
    assert controller.known_count() == 2


def test_toggle_known_mid_loop_skips_word(controller, started, fake_player, timers):
    controller.set_loops(1)
    controller.play_selected()
    controller.toggle_known(12.0)
    fake_player.position = 10.0
    timers.tick()
    assert controller.playback_state is PlaybackState.IDLE


def test_controls_persist_to_settings(controller, tmp_path):
    controller.set_loops(3)
    controller.set_rate(1.5)
    controller.set_auto_advance(False)
    saved = json.loads((tmp_path / "settings.json").read_text())
    assert saved["playback"]["loops_per_segment"] == 3
    assert saved["playback"]["default_rate"] == 1.5
    assert saved["playback"]["auto_advance"] is False
    assert controller.playback.loops_per_segment == 3


def test_window_change_targets_active_dataset(controller, started):
    config = controller.set_window_sec(3.0)
    assert config.window_sec == 3.0
    assert controller.store.load(started.id).window.window_sec == 3.0
    assert controller.segments()[-1].end == pytest.approx(15.0)
    assert controller.settings.window.window_sec == 1.8


def test_window_change_without_dataset_updates_settings(controller):
    controller.set_window_sec(2.5)
    assert controller.settings.window.window_sec == 2.5
    assert controller.window_config().window_sec == 2.5


def test_invalid_window_is_rejected(controller, started):
    with pytest.raises(ValueError):
        controller.set_window_sec(0)
    assert controller.window_config().window_sec == 1.8


def test_rename_active_dataset(controller, started):
    controller.rename_dataset(started.id, "Spanish 1")
    assert controller.active_dataset.name == "Spanish 1"
    assert controller.list_datasets()[0].name == "Spanish 1"


def test_export_file(controller, started, tmp_path):
    target = tmp_path / "out.csv"
    assert controller.export_file(started.id, target)
    assert target.read_text(encoding="utf-8").splitlines()[1] == "seconds,label,level"
    assert not controller.export_file("missing", tmp_path / "none.csv")


def test_delete_active_dataset_stops_playback(controller, started, host):
    controller.play_selected()
    assert controller.delete_dataset(started.id)
    assert controller.active_dataset is None
    assert controller.playback_state is PlaybackState.IDLE
    assert controller.playback.player is None
    assert host.released >= 1
    assert controller.list_datasets() == []


def test_attach_video_records_path(controller, started, tmp_path, host):
    clip = tmp_path / "clip.mp4"
    controller.attach_video(clip)
    assert controller.store.load(started.id).video_path == str(clip)
    assert host.opened == [started.id, started.id]
    assert controller.playback.player is host.player


def test_play_without_media_is_an_error(controller, csv_file, host):
    dataset = controller.import_file(csv_file)
    controller.start_learning(dataset.id)
    assert not controller.play_selected()
    assert controller.playback_state is PlaybackState.ERROR


def test_stop_learning_releases_player(controller, started, host):
    controller.play_selected()
    controller.stop_learning()
    assert controller.playback_state is PlaybackState.IDLE
    assert controller.markers == []
    assert host.player is None


def test_apply_settings(controller, tmp_path):
    settings = AppSettings()
    settings.playback.loops_per_segment = 5
    settings.playback.max_poll_failures = 7
    settings.playback.auto_advance = False
    controller.apply_settings(settings)
    assert controller.playback.loops_per_segment == 5
    assert controller.playback.max_poll_failures == 7
    assert not controller.playback.auto_advance
    assert json.loads((tmp_path / "settings.json").read_text())["playback"]["loops_per_segment"] == 5


def test_refresh_settings_reads_disk(controller, tmp_path):
    (tmp_path / "settings.json").write_text(json.dumps({"general": {"default_dataset_name": "Deck"}}))
    controller.refresh_settings()
    assert controller.settings.general.default_dataset_name == "Deck"


def test_include_known_widens_the_loop(controller, started, fake_player):
    controller.set_include_known(True)
    assert controller.play_marker(5.5)
    assert fake_player.seeks() == [5.5]
    controller.set_include_known(False)
    assert not controller.play_marker(5.5)
