"""Caller middleware -- FastAPI dependencies for the registry and the caller.

The caller's identity is taken from the ``X-Caller-Identity`` header and
compared against stored identities by the registry itself.
"""

from __future__ import annotations

from typing import Optional

from fastapi import Header, HTTPException, status

from roster.config import load_settings
from roster.registry.service import RegistryService

# Shared service instance
_service: Optional[RegistryService] = None


def get_service() -> RegistryService:
    """Return the singleton RegistryService for the configured directory."""
    global _service
    if _service is None:
        settings = load_settings()
        _service = RegistryService.open(settings.registry_dir, creator=settings.admin)
    return _service


async def get_caller(
    x_caller_identity: Optional[str] = Header(None, alias="X-Caller-Identity"),
) -> str:
    """FastAPI dependency returning the caller identity.

    The value is returned as sent. Raises ``401 Unauthorized`` when the
    header is missing or blank.
    """
    if not x_caller_identity or not x_caller_identity.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing X-Caller-Identity header",
        )
    return x_caller_identity
