"""Tests for JSON dataset persistence."""

import json

import pytest

from word_loop.model.csv_format import ImportFormatError
from word_loop.model.datasets import SCHEMA_VERSION, Dataset, DatasetStore
from word_loop.model.entities import Level, Marker, WindowConfig


@pytest.fixture
def store(tmp_path):
    return DatasetStore(tmp_path / "datasets")


def test_empty_store(store):
    assert store.list_index() == []
    assert store.load("missing") is None


def test_create_and_load(store, sample_markers):
    dataset = store.create("Lesson 1", "dQw4w9WgXcQ", list(reversed(sample_markers)))
    loaded = store.load(dataset.id)
    assert loaded.name == "Lesson 1"
    assert loaded.video_id == "dQw4w9WgXcQ"
    assert [m.t for m in loaded.markers] == [0.0, 5.0, 12.0]
    assert loaded.markers[2].level is Level.KNOWN
    assert loaded.window == WindowConfig()
    assert loaded.created_at > 0
    assert store.dataset_path(dataset.id).name == f"ds-{dataset.id}.json"


def test_newest_dataset_listed_first(store):
    first = store.create("one", "", [])
    second = store.create("two", "", [])
    assert [meta.id for meta in store.list_index()] == [second.id, first.id]


def test_blank_name_gets_default(store):
    dataset = store.create("   ", "", [])
    assert dataset.name == "NoName"


def test_window_is_persisted_per_dataset(store):
    window = WindowConfig(window_sec=3.0, poll_interval_ms=50)
    dataset = store.create("w", "", [], window=window)
    assert store.load(dataset.id).window == window


def test_save_records_progress(store, sample_markers):
    dataset = store.create("p", "", sample_markers)
    dataset.markers[0].level = Level.KNOWN
    store.save(dataset)
    data = json.loads(store.dataset_path(dataset.id).read_text(encoding="utf-8"))
    assert data["schema"] == SCHEMA_VERSION
    assert data["markers"][0] == {"t": 0.0, "label": "a", "level": 1}


def test_rename(store):
    dataset = store.create("old", "", [])
    meta = store.rename(dataset.id, "new")
    assert meta.name == "new"
    assert store.list_index()[0].name == "new"
    assert store.load(dataset.id).name == "new"
    assert store.rename("missing", "x") is None


def test_delete(store):
    dataset = store.create("gone", "", [])
    assert store.delete(dataset.id)
    assert store.list_index() == []
    assert not store.dataset_path(dataset.id).exists()
    assert not store.delete(dataset.id)


def test_import_and_export(store, sample_csv):
    dataset = store.import_text(sample_csv, name="Imported")
    assert dataset.name == "Imported"
    assert dataset.video_id == "dQw4w9WgXcQ"
    assert [m.label for m in dataset.markers] == ["hello", "world", "again"]

    exported = store.export_text(dataset.id)
    assert exported.splitlines()[2:] == ["1,hello,0", "5.5,world,1", "12,again,0"]
    assert store.export_text("missing") is None


def test_import_rejects_short_text(store):
    with pytest.raises(ImportFormatError):
        store.import_text("only one line")
    assert store.list_index() == []


def test_corrupt_dataset_file_is_treated_as_missing(store):
    dataset = store.create("bad", "", [])
    store.dataset_path(dataset.id).write_text("{not json", encoding="utf-8")
    assert store.load(dataset.id) is None
    assert [meta.id for meta in store.list_index()] == [dataset.id]


def test_corrupt_index_reads_as_empty(store):
    store.root.mkdir(parents=True)
    store.index_path.write_text("[", encoding="utf-8")
    assert store.list_index() == []


def test_index_with_unreadable_dates_still_lists(store):
    store.root.mkdir(parents=True)
    store.index_path.write_text(
        json.dumps([{"id": "x", "name": "X", "created_at": "yesterday"}, {"id": "y", "created_at": None}]),
        encoding="utf-8",
    )
    listed = store.list_index()
    assert [(meta.id, meta.created_at) for meta in listed] == [("x", 0), ("y", 0)]


def test_dataset_with_unreadable_date_still_loads(store):
    dataset = store.create("d", "", [Marker(t=1.0)])
    path = store.dataset_path(dataset.id)
    data = json.loads(path.read_text(encoding="utf-8"))
    data["created_at"] = "last week"
    path.write_text(json.dumps(data), encoding="utf-8")
    loaded = store.load(dataset.id)
    assert loaded.created_at == 0
    assert [m.t for m in loaded.markers] == [1.0]


def test_invalid_window_falls_back_to_defaults(store):
    dataset = store.create("w", "", [Marker(t=1.0)])
    path = store.dataset_path(dataset.id)
    data = json.loads(path.read_text(encoding="utf-8"))
    data["window"]["window_sec"] = -4
    path.write_text(json.dumps(data), encoding="utf-8")
    assert store.load(dataset.id).window == WindowConfig()


def test_malformed_markers_are_dropped(store):
    loaded = store.from_dict(
        {
            "id": "x",
            "markers": [
                {"t": "3"},
                {"label": "no time"},
                {"t": "soon"},
                "junk",
                {"t": -3},
                {"t": float("nan")},
                {"t": float("inf")},
            ],
        }
    )
    assert [m.t for m in loaded.markers] == [3.0]


def test_first_release_records_are_upgraded(store):
    store.root.mkdir(parents=True)
    legacy = {
        "id": "legacy01",
        "name": "Old",
        "videoId": "dQw4w9WgXcQ",
        "createdAt": 1700000000000,
        "windowSec": 2.5,
        "segments": [
            {"word": "b", "start": 5, "end": 7},
            {"word": "a", "start": 0, "end": 2},
        ],
        "known": {"b": True},
    }
    store.dataset_path("legacy01").write_text(json.dumps(legacy), encoding="utf-8")
    store.index_path.write_text(
        json.dumps([{"id": "legacy01", "name": "Old", "createdAt": 1700000000000}]), encoding="utf-8"
    )

    [meta] = store.list_index()
    assert meta.created_at == 1700000000000
    loaded = store.load("legacy01")
    assert loaded.video_id == "dQw4w9WgXcQ"
    assert loaded.window.window_sec == 2.5
    assert [(m.t, m.label, m.level) for m in loaded.markers] == [
        (0.0, "a", Level.UNKNOWN),
        (5.0, "b", Level.KNOWN),
    ]


def test_first_release_record_with_odd_known_map(store):
    loaded = store.from_dict(
        {"id": "legacy02", "segments": [{"word": "a", "start": 1}], "known": ["a"], "createdAt": "soon"}
    )
    assert [(m.t, m.label, m.level) for m in loaded.markers] == [(1.0, "a", Level.UNKNOWN)]
    assert loaded.created_at == 0


def test_non_finite_marker_times_are_dropped_from_files(store):
    store.root.mkdir(parents=True)
    store.dataset_path("nan01").write_text(
        '{"id": "nan01", "markers": [{"t": -3}, {"t": NaN}, {"t": 1}]}', encoding="utf-8"
    )
    assert [m.t for m in store.load("nan01").markers] == [1.0]


def test_dataset_meta():
    dataset = Dataset(id="abc", name="n", created_at=5)
    meta = dataset.meta()
    assert (meta.id, meta.name, meta.created_at) == ("abc", "n", 5)
