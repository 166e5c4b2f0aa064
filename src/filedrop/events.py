"""Normalized filesystem events consumed by the processing loop."""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum

from watchdog.events import (
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
)
from watchdog.events import FileSystemEvent as WatchdogEvent


class OperationKind(Enum):
    """Operations reported by the watch layer."""

    CREATE = "CREATE"
    WRITE = "WRITE"
    REMOVE = "REMOVE"
    RENAME = "RENAME"
    CHMOD = "CHMOD"
    OTHER = "OTHER"


_WATCHDOG_KINDS = {
    EVENT_TYPE_CREATED: OperationKind.CREATE,
    EVENT_TYPE_MODIFIED: OperationKind.WRITE,
    EVENT_TYPE_DELETED: OperationKind.REMOVE,
    EVENT_TYPE_MOVED: OperationKind.RENAME,
}


@dataclass(frozen=True)
class FileSystemEvent:
    path: str
    kind: OperationKind

    @property
    def file_name(self) -> str:
        return os.path.basename(self.path)

    @classmethod
    def from_watchdog(cls, event: WatchdogEvent) -> "FileSystemEvent":
        """Convert a watchdog event; moves are reported on their source path."""
        kind = _WATCHDOG_KINDS.get(event.event_type, OperationKind.OTHER)
        return cls(path=os.fsdecode(event.src_path), kind=kind)
