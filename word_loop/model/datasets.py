from __future__ import annotations

import json
import logging
import math
import time
import uuid
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from .csv_format import format_markers, parse_markers
from .entities import Level, Marker, WindowConfig
from .segments import sort_markers

SCHEMA_VERSION = 2
INDEX_FILENAME = "index.json"
DEFAULT_NAME = "NoName"


@dataclass
class DatasetMeta:
    id: str
    name: str = DEFAULT_NAME
    created_at: int = 0


@dataclass
class Dataset:
    id: str
    name: str = DEFAULT_NAME
    video_id: str = ""
    markers: List[Marker] = field(default_factory=list)
    window: WindowConfig = field(default_factory=WindowConfig)
    created_at: int = 0
    video_path: Optional[str] = None

    def meta(self) -> DatasetMeta:
        return DatasetMeta(id=self.id, name=self.name, created_at=self.created_at)


def new_dataset_id() -> str:
    return uuid.uuid4().hex[:8]


def _now_ms() -> int:
    return int(time.time() * 1000)


def _clean_name(name: Optional[str]) -> str:
    return (name or "").strip() or DEFAULT_NAME


def _as_int(value: Any, default: int = 0) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError, OverflowError):
        return default


class DatasetStore:
    """Stores datasets as JSON files plus an index of their metadata.

    Unreadable files are treated as missing so a damaged dataset never stops
    the rest of the library from loading. Records written by the first
    release (segments with a separate ``known`` map) are upgraded on load.
    """

    def __init__(self, root: Path, default_window: Optional[WindowConfig] = None) -> None:
        self.root = Path(root)
        self.default_window = default_window or WindowConfig()
        self._log = logging.getLogger(__name__)

    @property
    def index_path(self) -> Path:
        return self.root / INDEX_FILENAME

    def dataset_path(self, dataset_id: str) -> Path:
        return self.root / f"ds-{dataset_id}.json"

    # ------------------------------------------------------------------
    # Index
    # ------------------------------------------------------------------
    def list_index(self) -> List[DatasetMeta]:
        data = self._read_json(self.index_path)
        if not isinstance(data, list):
            return []
        entries: List[DatasetMeta] = []
        for item in data:
            if not isinstance(item, dict) or not item.get("id"):
                continue
            entries.append(
                DatasetMeta(
                    id=str(item["id"]),
                    name=_clean_name(item.get("name")),
                    created_at=_as_int(item.get("created_at", item.get("createdAt"))),
                )
            )
        return entries

    def _save_index(self, entries: Sequence[DatasetMeta]) -> None:
        self._write_json(self.index_path, [asdict(entry) for entry in entries])

    # ------------------------------------------------------------------
    # Datasets
    # ------------------------------------------------------------------
    def create(
        self,
        name: Optional[str],
        video_id: str,
        markers: Sequence[Marker],
        window: Optional[WindowConfig] = None,
        video_path: Optional[str] = None,
    ) -> Dataset:
        dataset = Dataset(
            id=new_dataset_id(),
            name=_clean_name(name),
            video_id=video_id,
            markers=sort_markers(markers),
            window=window or self.default_window,
            created_at=_now_ms(),
            video_path=video_path,
        )
        self.save(dataset)
        self._save_index([dataset.meta()] + [meta for meta in self.list_index() if meta.id != dataset.id])
        self._log.debug("DatasetStore: created %s with %s markers", dataset.id, len(dataset.markers))
        return dataset

    def load(self, dataset_id: str) -> Optional[Dataset]:
        data = self._read_json(self.dataset_path(dataset_id))
        if not isinstance(data, dict):
            return None
        return self.from_dict(data, fallback_id=dataset_id)

    def save(self, dataset: Dataset) -> None:
        self._write_json(self.dataset_path(dataset.id), self.to_dict(dataset))

    def rename(self, dataset_id: str, name: Optional[str]) -> Optional[DatasetMeta]:
        cleaned = _clean_name(name)
        entries = self.list_index()
        renamed: Optional[DatasetMeta] = None
        for entry in entries:
            if entry.id == dataset_id:
                entry.name = cleaned
                renamed = entry
        if renamed is None:
            return None
        self._save_index(entries)
        dataset = self.load(dataset_id)
        if dataset is not None:
            dataset.name = cleaned
            self.save(dataset)
        return renamed

    def delete(self, dataset_id: str) -> bool:
        entries = self.list_index()
        remaining = [entry for entry in entries if entry.id != dataset_id]
        path = self.dataset_path(dataset_id)
        existed = len(remaining) != len(entries) or path.exists()
        if len(remaining) != len(entries):
            self._save_index(remaining)
        try:
            path.unlink()
        except FileNotFoundError:
            pass
        return existed

    def import_text(
        self, text: str, window: Optional[WindowConfig] = None, name: Optional[str] = None
    ) -> Dataset:
        parsed = parse_markers(text)
        if parsed.skipped_lines:
            self._log.info("DatasetStore: import skipped %s line(s)", parsed.skipped_lines)
        return self.create(name, parsed.video_id, parsed.markers, window)

    def export_text(self, dataset_id: str) -> Optional[str]:
        dataset = self.load(dataset_id)
        if dataset is None:
            return None
        return format_markers(dataset.video_id, dataset.markers)

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------
    @staticmethod
    def to_dict(dataset: Dataset) -> Dict[str, Any]:
        return {
            "schema": SCHEMA_VERSION,
            "id": dataset.id,
            "name": dataset.name,
            "video_id": dataset.video_id,
            "video_path": dataset.video_path,
            "created_at": dataset.created_at,
            "window": asdict(dataset.window),
            "markers": [
                {"t": marker.t, "label": marker.label, "level": int(marker.level)}
                for marker in dataset.markers
            ],
        }

    def from_dict(self, data: Dict[str, Any], fallback_id: str = "") -> Dataset:
        if "markers" not in data and "segments" in data:
            data = self._migrate_v1(data)

        markers: List[Marker] = []
        raw_markers = data.get("markers")
        for item in raw_markers if isinstance(raw_markers, list) else []:
            if not isinstance(item, dict) or "t" not in item:
                continue
            try:
                t = float(item["t"])
                level = Level.KNOWN if int(item.get("level", 0) or 0) else Level.UNKNOWN
            except (TypeError, ValueError):
                continue
            if not math.isfinite(t) or t < 0:
                continue
            markers.append(Marker(t=t, label=str(item.get("label") or ""), level=level))

        return Dataset(
            id=str(data.get("id") or fallback_id),
            name=_clean_name(data.get("name")),
            video_id=str(data.get("video_id") or ""),
            markers=sort_markers(markers),
            window=self._window_from_dict(data.get("window")),
            created_at=_as_int(data.get("created_at")),
            video_path=data.get("video_path") or None,
        )

    def _window_from_dict(self, section: Any) -> WindowConfig:
        if not isinstance(section, dict):
            return self.default_window
        values = asdict(self.default_window)
        names = {item.name for item in fields(WindowConfig)}
        values.update({key: value for key, value in section.items() if key in names})
        try:
            return WindowConfig(**values)
        except (TypeError, ValueError) as exc:
            self._log.warning("DatasetStore: invalid window settings %s (%s), using defaults", section, exc)
            return self.default_window

    def _migrate_v1(self, data: Dict[str, Any]) -> Dict[str, Any]:
        known = data.get("known")
        if not isinstance(known, dict):
            known = {}
        segments = data.get("segments")
        markers = []
        for segment in segments if isinstance(segments, list) else []:
            if not isinstance(segment, dict) or "start" not in segment:
                continue
            word = str(segment.get("word") or "")
            markers.append({"t": segment["start"], "label": word, "level": 1 if known.get(word) else 0})
        window = asdict(self.default_window)
        if data.get("windowSec"):
            window["window_sec"] = data["windowSec"]
        self._log.info("DatasetStore: upgrading dataset %s from schema 1", data.get("id"))
        return {
            "schema": SCHEMA_VERSION,
            "id": data.get("id"),
            "name": data.get("name"),
            "video_id": data.get("videoId", ""),
            "created_at": data.get("createdAt", 0),
            "window": window,
            "markers": markers,
        }

    # ------------------------------------------------------------------
    # File helpers
    # ------------------------------------------------------------------
    def _read_json(self, path: Path) -> Any:
        if not path.exists():
            return None
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError, UnicodeDecodeError) as exc:
            self._log.warning("DatasetStore: could not read %s: %s", path, exc)
            return None

    def _write_json(self, path: Path, payload: Any) -> None:
        self.root.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
