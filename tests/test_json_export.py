from __future__ import annotations

import json
from datetime import datetime, timedelta
from pathlib import Path

import pytest
from dateutil import tz

from entreno_tool.model import ActivityKind
from entreno_tool.sources.json_export import JsonExportSource, parse_logged_at


def _write(path: Path, data: object) -> Path:
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


def test_load_events_from_export(tmp_path: Path) -> None:
    p = _write(
        tmp_path / "export.json",
        {
            "workout_logs": [
                {"logged_at": "2025-06-10T09:00:00+00:00", "reps_completed": 10},
                {"logged_at": "2025-06-10T09:05:00Z"},
            ],
            "cardio_logs": [{"logged_at": "2025-06-11T07:30:00-03:00"}],
        },
    )
    src = JsonExportSource(p)
    src.validate()
    events = src.load_events()

    assert [e.kind for e in events] == [
        ActivityKind.STRENGTH_SET,
        ActivityKind.STRENGTH_SET,
        ActivityKind.CARDIO_SESSION,
    ]
    assert events[2].occurred_at.utcoffset() == timedelta(hours=-3)


def test_missing_sections_are_empty(tmp_path: Path) -> None:
    p = _write(tmp_path / "export.json", {"cardio_logs": []})
    assert JsonExportSource(p).load_events() == []


def test_validate_raises_when_file_missing(tmp_path: Path) -> None:
    missing = tmp_path / "noexiste.json"
    with pytest.raises(FileNotFoundError, match="noexiste"):
        JsonExportSource(missing).validate()


@pytest.mark.parametrize(
    "payload, message",
    [
        ([], "must be an object"),
        ({"workout_logs": {}}, "workout_logs must be a list"),
        ({"workout_logs": ["x"]}, r"workout_logs\[0\] must be an object"),
        ({"cardio_logs": [{}]}, r"cardio_logs\[0\]\.logged_at: missing timestamp"),
        ({"cardio_logs": [{"logged_at": "ayer"}]}, "invalid timestamp"),
    ],
)
def test_invalid_export_raises(tmp_path: Path, payload: object, message: str) -> None:
    p = _write(tmp_path / "export.json", payload)
    with pytest.raises(ValueError, match=message):
        JsonExportSource(p).load_events()


def test_parse_logged_at_naive_is_utc() -> None:
    assert parse_logged_at("2025-06-10T09:00:00") == datetime(
        2025, 6, 10, 9, 0, tzinfo=tz.UTC
    )
    assert parse_logged_at("2025-06-10T09:00:00+00:00").utcoffset() == timedelta(0)
