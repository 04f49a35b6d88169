"""Registry error kinds.

Every failure aborts the whole operation; callers correct their input and
resubmit. ``code`` is the stable name surfaced by the CLI and HTTP API.
"""

from __future__ import annotations


class RegistryError(Exception):
    """Base class for every precondition violation raised by the registry."""

    code = "RegistryError"

    def __init__(self, message: str, identity: str = "") -> None:
        super().__init__(message)
        self.message = message
        self.identity = identity


class Unauthorized(RegistryError):
    """Caller is not the administrator."""

    code = "Unauthorized"


class AlreadyExists(RegistryError):
    """Caller already holds a registered profile."""

    code = "AlreadyExists"


class InvalidInput(RegistryError):
    """Empty name or tag."""

    code = "InvalidInput"


class NotFound(RegistryError):
    """Target identity has no registered profile."""

    code = "NotFound"


class CapacityExceeded(RegistryError):
    """Tag list is full."""

    code = "CapacityExceeded"


class DuplicateTag(RegistryError):
    code = "DuplicateTag"


class TagNotFound(RegistryError):
    code = "TagNotFound"


class StoreError(Exception):
    """Persisted registry state could not be read or written."""
