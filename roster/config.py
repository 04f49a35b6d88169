"""Runtime configuration read from ``ROSTER_*`` environment variables."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

DEFAULT_REGISTRY_DIR = Path.home() / ".roster"


@dataclass
class Settings:
    """Resolved configuration for the CLI and the HTTP API."""

    registry_dir: Path = DEFAULT_REGISTRY_DIR
    admin: str = ""  # Creator identity for a registry opened for the first time
    identity: str = ""  # Default CLI caller
    log_level: str = "WARNING"

    @property
    def log_level_number(self) -> int:
        level = logging.getLevelName(self.log_level.upper())
        return level if isinstance(level, int) else logging.WARNING


def load_settings() -> Settings:
    """Build :class:`Settings` from the current environment."""
    registry_dir = os.environ.get("ROSTER_REGISTRY_DIR")
    return Settings(
        registry_dir=Path(registry_dir).expanduser() if registry_dir else DEFAULT_REGISTRY_DIR,
        admin=os.environ.get("ROSTER_ADMIN", ""),
        identity=os.environ.get("ROSTER_IDENTITY", ""),
        log_level=os.environ.get("ROSTER_LOG_LEVEL", "WARNING"),
    )
