"""
Shared key-value slot store readable by both the app and the widget.

Each key is one file inside an app-group directory. Values are always
replaced whole: the new bytes go to a temp file in the same directory which
is then renamed over the old one, so a reader sees either the previous value
or the new one, never a mix.
"""
from __future__ import annotations

import logging
import os
import tempfile
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Union

logger = logging.getLogger(__name__)

DEFAULT_KEY = "widgetHabits"


class SnapshotWriteError(OSError):
    pass


@dataclass(frozen=True)
class StoredValue:
    data: bytes
    updated_at: datetime


class SharedSnapshotStore:
    def __init__(self, directory: Union[str, Path]):
        self.directory = Path(directory)

    @classmethod
    def for_group(cls, root: Union[str, Path], group: str) -> "SharedSnapshotStore":
        return cls(Path(root) / f"group-{group}")

    def path_for(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def get(self, key: str = DEFAULT_KEY) -> Optional[StoredValue]:
        path = self.path_for(key)
        try:
            data = path.read_bytes()
            mtime = path.stat().st_mtime
        except FileNotFoundError:
            return None
        return StoredValue(data=data, updated_at=datetime.fromtimestamp(mtime, tz=timezone.utc))

    def set(self, data: bytes, key: str = DEFAULT_KEY) -> None:
        tmp_name = None
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "wb", dir=self.directory, prefix=f".{key}.", suffix=".tmp", delete=False
            ) as fh:
                tmp_name = fh.name
                fh.write(data)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_name, self.path_for(key))
            tmp_name = None
        except OSError as exc:
            raise SnapshotWriteError(f"Could not write {key}: {exc}") from exc
        finally:
            if tmp_name is not None:
                try:
                    os.unlink(tmp_name)
                except OSError:
                    logger.debug("Leftover temp file %s", tmp_name)


class FileTimelineReloader:
    """Signals the widget host by touching a marker next to the snapshot."""

    def __init__(self, store: SharedSnapshotStore, key: str = DEFAULT_KEY):
        self.marker = store.directory / f"{key}.reload"

    def reload_all_timelines(self) -> None:
        self.marker.parent.mkdir(parents=True, exist_ok=True)
        self.marker.touch()

    def last_reload(self) -> Optional[datetime]:
        try:
            mtime = self.marker.stat().st_mtime
        except FileNotFoundError:
            return None
        return datetime.fromtimestamp(mtime, tz=timezone.utc)
