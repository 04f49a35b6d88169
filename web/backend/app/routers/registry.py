"""Registry router -- profile registration, status, tags and administration."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query

from roster.registry.errors import InvalidInput
from roster.registry.models import Profile
from roster.registry.service import RegistryService
from web.backend.app.middleware.identity import get_caller, get_service
from web.backend.app.models.api import (
    AdministratorResponse,
    ErrorResponse,
    EventResponse,
    NameResponse,
    ProfileResponse,
    RegisterNewRequest,
    RegisterRequest,
    StatusRequest,
    StatusResponse,
    TagRequest,
    TagsResponse,
    TransferRequest,
)

router = APIRouter(
    prefix="/api/registry",
    tags=["registry"],
    responses={
        400: {"model": ErrorResponse, "description": "InvalidInput"},
        403: {"model": ErrorResponse, "description": "Unauthorized"},
        404: {"model": ErrorResponse, "description": "NotFound or TagNotFound"},
        409: {"model": ErrorResponse, "description": "AlreadyExists, CapacityExceeded or DuplicateTag"},
    },
)


def _profile_to_response(identity: str, profile: Profile) -> ProfileResponse:
    """Convert a Profile dataclass to a Pydantic response model."""
    return ProfileResponse(
        identity=identity,
        name=profile.name,
        status=profile.status,
        tags=list(profile.tags),
        registered=profile.exists,
    )


# ---------------------------------------------------------------------------
# Administration
# ---------------------------------------------------------------------------


@router.get(
    "/administrator",
    response_model=AdministratorResponse,
    summary="Current administrator",
)
async def get_administrator(service: RegistryService = Depends(get_service)):
    return AdministratorResponse(administrator=service.administrator)


@router.post(
    "/transfer",
    response_model=AdministratorResponse,
    summary="Transfer ownership",
)
async def transfer_ownership(
    body: TransferRequest,
    caller: str = Depends(get_caller),
    service: RegistryService = Depends(get_service),
):
    """Hand administration to ``new_identity``. Only the administrator may call."""
    service.transfer_ownership(caller, body.new_identity)
    return AdministratorResponse(administrator=service.administrator)


# ---------------------------------------------------------------------------
# Profiles
# ---------------------------------------------------------------------------


@router.get(
    "/profiles",
    response_model=list[ProfileResponse],
    summary="Raw profile mapping",
)
async def list_profiles(service: RegistryService = Depends(get_service)):
    """Every stored record, including unnamed ones written by ``register``."""
    return [
        _profile_to_response(identity, profile)
        for identity, profile in service.profiles().items()
    ]


@router.post(
    "/profiles",
    response_model=ProfileResponse,
    status_code=201,
    summary="Register (bulk overwrite) the caller's profile",
)
async def register_profile(
    body: RegisterRequest,
    caller: str = Depends(get_caller),
    service: RegistryService = Depends(get_service),
):
    service.register(caller, body.name, body.status, body.tags)
    return _profile_to_response(caller, service.profile(caller))


@router.post(
    "/profiles/new",
    response_model=ProfileResponse,
    status_code=201,
    summary="Register the caller for the first time",
)
async def register_new_profile(
    body: RegisterNewRequest,
    caller: str = Depends(get_caller),
    service: RegistryService = Depends(get_service),
):
    service.register_new(caller, body.name)
    return _profile_to_response(caller, service.profile(caller))


@router.get(
    "/profiles/{identity}",
    response_model=ProfileResponse,
    summary="Get a registered profile",
)
async def get_profile(identity: str, service: RegistryService = Depends(get_service)):
    service.get_name(identity)
    return _profile_to_response(identity, service.profile(identity))


@router.get("/profiles/{identity}/name", response_model=NameResponse)
async def get_name(identity: str, service: RegistryService = Depends(get_service)):
    return NameResponse(identity=identity, name=service.get_name(identity))


@router.get("/profiles/{identity}/status", response_model=StatusResponse)
async def get_status(identity: str, service: RegistryService = Depends(get_service)):
    return StatusResponse(identity=identity, status=service.get_status(identity))


@router.put("/profiles/{identity}/status", response_model=StatusResponse)
async def mark_status(
    identity: str,
    body: StatusRequest,
    service: RegistryService = Depends(get_service),
):
    service.mark_status(identity, body.status)
    return StatusResponse(identity=identity, status=service.get_status(identity))


@router.get("/profiles/{identity}/tags", response_model=TagsResponse)
async def get_tags(identity: str, service: RegistryService = Depends(get_service)):
    return TagsResponse(identity=identity, tags=list(service.get_tags(identity)))


@router.post("/profiles/{identity}/tags", response_model=TagsResponse, status_code=201)
async def add_tag(
    identity: str,
    body: TagRequest,
    service: RegistryService = Depends(get_service),
):
    service.add_tag(identity, body.tag)
    return TagsResponse(identity=identity, tags=list(service.get_tags(identity)))


@router.delete("/profiles/{identity}/tags/{tag}", response_model=TagsResponse)
async def remove_tag(
    identity: str,
    tag: str,
    service: RegistryService = Depends(get_service),
):
    service.remove_tag(identity, tag)
    return TagsResponse(identity=identity, tags=list(service.get_tags(identity)))


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------


@router.get(
    "/events",
    response_model=list[EventResponse],
    summary="Registry event log",
)
async def list_events(
    identity: Optional[str] = Query(None, description="Filter by identity"),
    kind: Optional[str] = Query(None, description="Filter by event kind"),
    limit: int = Query(200, ge=1, le=10000),
    service: RegistryService = Depends(get_service),
):
    """Return logged events, newest first."""
    if service.event_log is None:
        return []
    try:
        entries = service.event_log.get_events(identity=identity, kind=kind, limit=limit)
    except ValueError as exc:
        raise InvalidInput(str(exc)) from None
    return [EventResponse(**e) for e in entries]
