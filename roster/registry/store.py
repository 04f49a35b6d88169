"""File-based state storage for the registry.

Stores the administrator and the identity -> profile mapping as a single
JSON document inside the registry directory.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from roster.registry.errors import StoreError
from roster.registry.models import Profile

logger = logging.getLogger(__name__)


@dataclass
class RegistryState:
    """Everything the registry persists."""

    administrator: str
    profiles: dict[str, Profile] = field(default_factory=dict)


class RegistryStore:
    """JSON-file persistence for :class:`RegistryState`.

    Storage path: ``<registry_dir>/registry.json`` with::

        {"administrator": "...", "profiles": {"<identity>": {...}}}
    """

    STATE_FILE = "registry.json"

    def __init__(self, registry_dir: str | Path):
        self.registry_dir = Path(registry_dir)
        self.registry_dir.mkdir(parents=True, exist_ok=True)
        self.state_path = self.registry_dir / self.STATE_FILE

    def exists(self) -> bool:
        return self.state_path.exists()

    def load(self) -> RegistryState | None:
        """Read persisted state, or ``None`` for a registry never initialized."""
        if not self.state_path.exists():
            return None
        try:
            data = json.loads(self.state_path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as exc:
            raise StoreError(f"Cannot read {self.state_path}: {exc}") from exc

        if not isinstance(data, dict) or "administrator" not in data:
            raise StoreError(f"{self.state_path} has no administrator")
        if not isinstance(data["administrator"], str):
            raise StoreError(f"{self.state_path} administrator must be a string")
        if not isinstance(data.get("profiles", {}), dict):
            raise StoreError(f"{self.state_path} profiles must be a mapping")

        try:
            profiles = {
                identity: Profile.from_dict(record)
                for identity, record in data.get("profiles", {}).items()
            }
        except (AttributeError, TypeError, ValueError) as exc:
            raise StoreError(f"Malformed profile in {self.state_path}: {exc}") from exc
        logger.debug("Loaded %d profiles from %s", len(profiles), self.state_path)
        return RegistryState(administrator=data["administrator"], profiles=profiles)

    def save(self, state: RegistryState) -> None:
        """Write state atomically (temp file + rename)."""
        payload = {
            "administrator": state.administrator,
            "profiles": {
                identity: profile.to_dict()
                for identity, profile in state.profiles.items()
            },
        }
        tmp_path = self.state_path.with_suffix(".json.tmp")
        try:
            tmp_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
            os.replace(tmp_path, self.state_path)
        except OSError as exc:
            raise StoreError(f"Cannot write {self.state_path}: {exc}") from exc
