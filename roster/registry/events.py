"""Event log for registry notifications.

Every event emitted by the service is appended as one JSON line to
``<registry_dir>/events.jsonl``.
"""

from __future__ import annotations

import csv
import io
import json
import logging
import uuid
from pathlib import Path
from typing import Optional

from roster.registry.models import EventKind, RegistryEvent

logger = logging.getLogger(__name__)


class EventLog:
    """Append-only JSONL log of :class:`RegistryEvent` records."""

    EVENTS_FILE = "events.jsonl"

    def __init__(self, registry_dir: str | Path) -> None:
        self._base_dir = Path(registry_dir)
        self._base_dir.mkdir(parents=True, exist_ok=True)
        self.path = self._base_dir / self.EVENTS_FILE

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _read_all(self) -> list[dict]:
        if not self.path.exists():
            return []
        records = []
        for lineno, line in enumerate(
            self.path.read_text(encoding="utf-8").splitlines(), start=1
        ):
            if not line.strip():
                continue
            try:
                records.append(json.loads(line))
            except json.JSONDecodeError:
                logger.warning("Skipping malformed line %d in %s", lineno, self.path)
        return records

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def append(self, event: RegistryEvent) -> dict:
        """Record an event and return the stored entry."""
        entry = {
            "id": uuid.uuid4().hex[:16],
            "timestamp": event.timestamp,
            "kind": event.kind.value,
            "identity": event.identity,
            "data": event.data,
        }
        with self.path.open("a", encoding="utf-8") as fh:
            fh.write(json.dumps(entry) + "\n")
        return entry

    def get_events(
        self,
        *,
        identity: Optional[str] = None,
        kind: Optional[str] = None,
        limit: int = 200,
    ) -> list[dict]:
        """Return filtered events, newest first."""
        entries = self._read_all()

        if identity:
            entries = [e for e in entries if e.get("identity") == identity]
        if kind:
            kind_value = EventKind.parse(kind).value
            entries = [e for e in entries if e.get("kind") == kind_value]

        # Newest first
        entries.reverse()
        return entries[:limit]

    def export_events(
        self,
        fmt: str = "json",
        *,
        identity: Optional[str] = None,
        kind: Optional[str] = None,
        limit: int = 10000,
    ) -> str:
        """Export events as ``json`` or ``csv``."""
        entries = self.get_events(identity=identity, kind=kind, limit=limit)

        if fmt == "csv":
            output = io.StringIO()
            writer = csv.writer(output, lineterminator="\n")
            writer.writerow(["id", "timestamp", "kind", "identity", "data"])
            for e in entries:
                writer.writerow(
                    [
                        e["id"],
                        e["timestamp"],
                        e["kind"],
                        e["identity"],
                        json.dumps(e.get("data", {})),
                    ]
                )
            return output.getvalue()

        return json.dumps(entries, indent=2)
