from __future__ import annotations

# Plain-text exchange format for marker lists:
#   line 1: video URL or id
#   line 2: header (ignored)
#   line 3+: time,label,level   (comma or tab separated)

import csv
import io
import logging
import math
import re
from dataclasses import dataclass, field
from typing import List, Optional, Sequence
from urllib.parse import parse_qs, urlparse

from .entities import Level, Marker
from .segments import sort_markers

EXPORT_HEADER = "seconds,label,level"
WATCH_URL = "https://www.youtube.com/watch?v={video_id}"

_VIDEO_ID_RE = re.compile(r"^[A-Za-z0-9_-]{11}$")
_SECONDS_RE = re.compile(r"^\d+(\.\d+)?$")
_LEADING_INT_RE = re.compile(r"^[+-]?\d+")

_log = logging.getLogger(__name__)


class ImportFormatError(ValueError):
    """Raised when marker text cannot be imported."""


@dataclass
class ParsedImport:
    video_id: str
    markers: List[Marker] = field(default_factory=list)
    skipped_lines: int = 0


def parse_time(raw: str) -> float:
    """Parse ``ss``, ``m:ss`` or ``h:mm:ss`` (fractional seconds allowed)."""
    text = raw.strip()
    if not text:
        return 0.0
    if _SECONDS_RE.match(text):
        return float(text)
    parts = text.split(":")
    try:
        if len(parts) == 2:
            minutes, seconds = parts
            return int(minutes) * 60 + float(seconds)
        if len(parts) == 3:
            hours, minutes, seconds = parts
            return int(hours) * 3600 + int(minutes) * 60 + float(seconds)
        return float(text)
    except ValueError:
        raise ValueError(f"Unrecognised time value: {raw!r}") from None


def format_time(seconds: float) -> str:
    value = float(seconds)
    if value.is_integer():
        return str(int(value))
    return repr(value)


def extract_video_id(url_or_id: str) -> str:
    text = url_or_id.strip()
    if _VIDEO_ID_RE.match(text):
        return text
    parsed = urlparse(text)
    if parsed.scheme and parsed.netloc:
        host = parsed.netloc.lower()
        if "youtu.be" in host:
            return parsed.path.lstrip("/").split("/")[0]
        values = parse_qs(parsed.query).get("v")
        if values and values[0]:
            return values[0]
    return text


def video_reference(video_id: str) -> str:
    if _VIDEO_ID_RE.match(video_id):
        return WATCH_URL.format(video_id=video_id)
    return video_id


def _parse_level(raw: str) -> Level:
    match = _LEADING_INT_RE.match(raw.strip())
    if match is None:
        return Level.UNKNOWN
    return Level.KNOWN if int(match.group(0)) != 0 else Level.UNKNOWN


def _split_row(line: str) -> List[str]:
    delimiter = "\t" if "\t" in line and "," not in line else ","
    row = next(csv.reader([line], delimiter=delimiter), [])
    return [cell.strip() for cell in row]


def parse_markers(text: str) -> ParsedImport:
    lines = [line.strip().lstrip("\ufeff") for line in text.splitlines()]
    cleaned = [line for line in lines if line]
    if len(cleaned) < 3:
        raise ImportFormatError("Expected at least three lines: video URL, header and one marker.")

    video_line = _split_row(cleaned[0])
    video_id = extract_video_id(video_line[0] if video_line else "")
    if not video_id:
        raise ImportFormatError("The first line must hold a video URL or id.")

    result = ParsedImport(video_id=video_id)
    for line_no, line in enumerate(cleaned[2:], start=3):
        parts = _split_row(line)
        if not parts or not parts[0]:
            result.skipped_lines += 1
            continue
        try:
            t = parse_time(parts[0])
        except ValueError:
            _log.debug("parse_markers: skipping line %s with bad time %r", line_no, parts[0])
            result.skipped_lines += 1
            continue
        if not math.isfinite(t) or t < 0:
            result.skipped_lines += 1
            continue
        label = parts[1] if len(parts) > 1 else ""
        level = _parse_level(parts[2]) if len(parts) > 2 else Level.UNKNOWN
        result.markers.append(Marker(t=t, label=label, level=level))

    result.markers = sort_markers(result.markers)
    return result


def format_markers(video_id: Optional[str], markers: Sequence[Marker]) -> str:
    buffer = io.StringIO()
    buffer.write(video_reference(video_id or ""))
    buffer.write("\n")
    buffer.write(EXPORT_HEADER)
    buffer.write("\n")
    writer = csv.writer(buffer, lineterminator="\n")
    for marker in sort_markers(markers):
        writer.writerow([format_time(marker.t), marker.label, int(marker.level)])
    return buffer.getvalue()
