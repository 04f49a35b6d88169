"""Registry data models — profiles, status values, and emitted events."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

MAX_TAGS = 5


class Status(str, Enum):
    """Attendance-like flag carried by every profile."""

    present = "Present"
    absent = "Absent"

    @classmethod
    def parse(cls, value: str | Status) -> Status:
        """Accept ``Present``/``present``/``Status.present`` alike."""
        if isinstance(value, Status):
            return value
        for member in cls:
            if member.value.lower() == str(value).strip().lower():
                return member
        raise ValueError(f"Unknown status '{value}' (expected Present or Absent)")


class EventKind(str, Enum):
    """Notifications emitted by successful registry operations."""

    profile_created = "ProfileCreated"
    status_changed = "StatusChanged"
    tag_added = "TagAdded"
    tag_removed = "TagRemoved"
    ownership_transferred = "OwnershipTransferred"

    @classmethod
    def parse(cls, value: str | EventKind) -> EventKind:
        """Accept the event name (``TagAdded``) or member name (``tag_added``)."""
        if isinstance(value, EventKind):
            return value
        try:
            return cls(value)
        except ValueError:
            try:
                return cls[value]
            except KeyError:
                raise ValueError(f"Unknown event kind '{value}'") from None


@dataclass
class Profile:
    """A single identity's record.

    There is no existence flag: a profile exists once its name is non-empty.
    """

    name: str = ""
    status: Status = Status.absent
    tags: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        if isinstance(self.status, str):
            self.status = Status.parse(self.status)

    @property
    def exists(self) -> bool:
        return self.name != ""

    def copy(self) -> Profile:
        return Profile(name=self.name, status=self.status, tags=list(self.tags))

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "status": self.status.value,
            "tags": list(self.tags),
        }

    @classmethod
    def from_dict(cls, data: dict) -> Profile:
        name = data.get("name", "")
        tags = data.get("tags", [])
        if not isinstance(name, str):
            raise TypeError(f"name must be a string, got {type(name).__name__}")
        if not isinstance(tags, list) or not all(isinstance(t, str) for t in tags):
            raise TypeError("tags must be a list of strings")
        return cls(
            name=name,
            status=Status.parse(data.get("status", Status.absent.value)),
            tags=list(tags),
        )


@dataclass
class RegistryEvent:
    """A notification produced by a registry operation."""

    kind: EventKind
    identity: str
    data: dict[str, Any] = field(default_factory=dict)
    timestamp: str = ""

    def __post_init__(self) -> None:
        if not self.timestamp:
            self.timestamp = datetime.now(timezone.utc).isoformat()
        if isinstance(self.kind, str):
            self.kind = EventKind(self.kind)
