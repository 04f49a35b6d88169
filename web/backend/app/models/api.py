"""Pydantic models for API request/response serialization.

These models mirror the roster dataclasses and provide proper JSON
serialization for the FastAPI endpoints.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from roster.registry.models import Status


# ---------------------------------------------------------------------------
# Profile models
# ---------------------------------------------------------------------------


class ProfileResponse(BaseModel):
    """Mirrors roster.registry.models.Profile."""

    identity: str
    name: str = ""
    status: Status = Status.absent
    tags: list[str] = Field(default_factory=list)
    registered: bool = False


class RegisterRequest(BaseModel):
    """Body for a bulk ``register`` of the caller's profile."""

    name: str
    status: Status = Status.absent
    tags: list[str] = Field(default_factory=list)


class RegisterNewRequest(BaseModel):
    name: str


class StatusRequest(BaseModel):
    status: Status


class TagRequest(BaseModel):
    tag: str


class NameResponse(BaseModel):
    identity: str
    name: str


class StatusResponse(BaseModel):
    identity: str
    status: Status


class TagsResponse(BaseModel):
    identity: str
    tags: list[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Administration models
# ---------------------------------------------------------------------------


class AdministratorResponse(BaseModel):
    administrator: str


class TransferRequest(BaseModel):
    """Body for ``transfer_ownership``; ``new_identity`` is not validated."""

    new_identity: str


# ---------------------------------------------------------------------------
# Event models
# ---------------------------------------------------------------------------


class EventResponse(BaseModel):
    """One line of the registry event log."""

    id: str
    timestamp: str
    kind: str
    identity: str
    data: dict[str, Any] = Field(default_factory=dict)


class ErrorResponse(BaseModel):
    error: str
    detail: str
