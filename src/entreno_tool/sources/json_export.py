"""Lectura de exportaciones JSON de registros de entrenamiento."""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any

from dateutil import parser as date_parser
from dateutil import tz

from entreno_tool.model import ActivityEvent, ActivityKind
from entreno_tool.sources.base import EventSource

logger = logging.getLogger(__name__)

_SECTIONS: dict[str, ActivityKind] = {
    "workout_logs": ActivityKind.STRENGTH_SET,
    "cardio_logs": ActivityKind.CARDIO_SESSION,
}


class JsonExportSource(EventSource):
    """Reads ``{"workout_logs": [...], "cardio_logs": [...]}`` exports.

    Each record needs a ``logged_at`` timestamp; other fields are ignored.
    """

    def __init__(self, path: Path) -> None:
        self._path = path

    def validate(self) -> None:
        """Validate that the export file exists."""
        if not self._path.is_file():
            raise FileNotFoundError(str(self._path))

    def load_events(self) -> list[ActivityEvent]:
        """Parse the export into activity events.

        Raises:
            ValueError: If the JSON shape or a timestamp is invalid.
        """
        raw = json.loads(self._path.read_text(encoding="utf-8"))
        if not isinstance(raw, dict):
            raise ValueError("Export JSON must be an object")

        out: list[ActivityEvent] = []
        for section, kind in _SECTIONS.items():
            items = raw.get(section, [])
            if not isinstance(items, list):
                raise ValueError(f"{section} must be a list")
            for index, item in enumerate(items):
                out.append(ActivityEvent(kind, _item_timestamp(item, section, index)))
        logger.debug("Loaded %d events from %s", len(out), self._path)
        return out


def _item_timestamp(item: Any, section: str, index: int) -> datetime:
    if not isinstance(item, dict):
        raise ValueError(f"{section}[{index}] must be an object")
    return parse_logged_at(item.get("logged_at"), f"{section}[{index}].logged_at")


def parse_logged_at(value: Any, where: str = "logged_at") -> datetime:
    """Parse an ISO-8601 timestamp; values without offset are UTC."""
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{where}: missing timestamp")
    try:
        parsed = date_parser.isoparse(value.strip())
    except ValueError as exc:
        raise ValueError(f"{where}: invalid timestamp {value!r}") from exc
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=tz.UTC)
    return parsed
