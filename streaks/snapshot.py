"""
Wire format of the widget snapshot.

The snapshot is a JSON array with one row per habit::

    [{"id": "...", "name": "Read", "icon": "book.fill", "colorHex": "#FF5A5F",
      "currentStreak": 2, "completedDates": ["2025-12-07", "2025-12-08"]}]

Days travel as ISO calendar dates, never as instants, so reading a snapshot
in another time zone yields the same days.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import List, Tuple

from streaks.colors import normalize_color_hex

logger = logging.getLogger(__name__)


class SnapshotDecodeError(ValueError):
    pass


@dataclass(frozen=True)
class WidgetSnapshot:
    id: str
    name: str
    icon: str
    color_hex: str
    current_streak: int
    completed_dates: Tuple[date, ...] = field(default_factory=tuple)

    def is_completed(self, day: date) -> bool:
        return day in self.completed_set

    @property
    def completed_set(self) -> frozenset:
        return frozenset(self.completed_dates)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "icon": self.icon,
            "colorHex": self.color_hex,
            "currentStreak": self.current_streak,
            "completedDates": [d.isoformat() for d in sorted(set(self.completed_dates))],
        }

    @classmethod
    def from_dict(cls, row: dict) -> "WidgetSnapshot":
        try:
            return cls(
                id=str(row["id"]),
                name=str(row["name"]),
                icon=str(row.get("icon") or ""),
                color_hex=normalize_color_hex(row.get("colorHex")),
                current_streak=int(row.get("currentStreak") or 0),
                completed_dates=tuple(
                    sorted({date.fromisoformat(d) for d in row.get("completedDates") or []})
                ),
            )
        except (KeyError, TypeError, ValueError, OverflowError) as exc:
            raise SnapshotDecodeError(f"Invalid snapshot row: {exc}") from exc


def encode_snapshot(rows: List[WidgetSnapshot]) -> bytes:
    return json.dumps([r.to_dict() for r in rows], ensure_ascii=False).encode("utf-8")


def decode_snapshot(data: bytes) -> List[WidgetSnapshot]:
    """
    Parse a published snapshot. A payload that is not a JSON array raises
    SnapshotDecodeError; individual malformed rows are skipped.
    """
    try:
        payload = json.loads(data.decode("utf-8") if isinstance(data, bytes) else data)
    except (UnicodeDecodeError, json.JSONDecodeError, RecursionError) as exc:
        raise SnapshotDecodeError(f"Snapshot is not valid JSON: {exc}") from exc

    if not isinstance(payload, list):
        raise SnapshotDecodeError("Snapshot payload must be a list")

    rows = []
    for raw in payload:
        if not isinstance(raw, dict):
            logger.warning("Skipping non-object snapshot row: %r", raw)
            continue
        try:
            rows.append(WidgetSnapshot.from_dict(raw))
        except SnapshotDecodeError as exc:
            logger.warning("Skipping snapshot row: %s", exc)
    return rows
