"""Append-only task history.

Every mutating command appends exactly one :class:`HistoryEntry`. Entries
are frozen once built and the :class:`History` log itself is immutable:
``append`` returns a new log that shares the existing entries.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, Field


def history_timestamp() -> str:
    """Current UTC time as RFC 3339 with second precision."""
    return datetime.now(UTC).strftime("%Y-%m-%dT%H:%M:%SZ")


class HistoryEntry(BaseModel):
    """One recorded change to a task."""

    model_config = {"frozen": True}

    timestamp: str = Field(default_factory=history_timestamp)
    action: str
    actor: str = "cli"
    actor_detail: str = ""
    changes: dict[str, Any] | None = None


class History(BaseModel):
    """Ordered, append-only log of :class:`HistoryEntry` records."""

    model_config = {"frozen": True}

    entries: tuple[HistoryEntry, ...] = ()

    def __len__(self) -> int:
        return len(self.entries)

    @property
    def last(self) -> HistoryEntry | None:
        return self.entries[-1] if self.entries else None

    def append(self, entry: HistoryEntry) -> History:
        """Return a new log with *entry* at the end."""
        return History(entries=(*self.entries, entry))

    def to_list(self) -> list[dict[str, Any]]:
        """Serialize for JSON storage and API payloads."""
        return [entry.model_dump() for entry in self.entries]

    @classmethod
    def from_list(cls, raw: list[dict[str, Any]] | None) -> History:
        """Rebuild a log from stored JSON. Non-dict items are dropped."""
        if not raw:
            return cls()
        return cls(
            entries=tuple(HistoryEntry.model_validate(item) for item in raw if isinstance(item, dict))
        )


def change(before: Any, after: Any) -> dict[str, Any]:
    """Shape a single field change for a history entry."""
    return {"from": before, "to": after}
