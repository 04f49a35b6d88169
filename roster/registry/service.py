"""Registry service — the identity -> profile mapping and its administrator.

All operations run under one lock, so each check-then-act is a single
indivisible step. A failed precondition raises a :class:`RegistryError`
before anything is written; a successful mutation is persisted (when a
store is attached), committed in memory, then announced as an event.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Callable, Iterable, Optional

from roster.registry.errors import (
    AlreadyExists,
    CapacityExceeded,
    DuplicateTag,
    InvalidInput,
    NotFound,
    RegistryError,
    TagNotFound,
    Unauthorized,
)
from roster.registry.events import EventLog
from roster.registry.models import (
    MAX_TAGS,
    EventKind,
    Profile,
    RegistryEvent,
    Status,
)
from roster.registry.store import RegistryState, RegistryStore

logger = logging.getLogger(__name__)

Listener = Callable[[RegistryEvent], None]


class RegistryService:
    """Single-administrator registry of participant profiles."""

    def __init__(
        self,
        administrator: str,
        profiles: Optional[dict[str, Profile]] = None,
        store: Optional[RegistryStore] = None,
        event_log: Optional[EventLog] = None,
        *,
        restored: bool = False,
    ) -> None:
        """Create a registry administered by ``administrator``.

        ``restored`` marks state loaded from disk, whose administrator may be
        any value an earlier transfer produced, including empty.
        """
        if not administrator and not restored:
            raise InvalidInput("Administrator identity must not be empty")
        self._administrator = administrator
        self._profiles: dict[str, Profile] = dict(profiles or {})
        self._store = store
        self._event_log = event_log
        self._listeners: list[Listener] = []
        self._lock = threading.RLock()

    @classmethod
    def open(cls, registry_dir: str | Path, creator: str = "") -> RegistryService:
        """Load the registry in ``registry_dir``, initializing it if new.

        ``creator`` becomes the administrator of a fresh registry and is
        ignored when state already exists.
        """
        store = RegistryStore(registry_dir)
        event_log = EventLog(registry_dir)
        state = store.load()
        if state is None:
            if not creator:
                raise InvalidInput(
                    f"Registry at {store.registry_dir} is not initialized; "
                    "a creator identity is required"
                )
            service = cls(creator, store=store, event_log=event_log)
            store.save(service._snapshot())
            logger.info("Initialized registry at %s (administrator=%s)", store.registry_dir, creator)
            return service
        return cls(
            state.administrator,
            profiles=state.profiles,
            store=store,
            event_log=event_log,
            restored=True,
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _snapshot(
        self,
        administrator: Optional[str] = None,
        profiles: Optional[dict[str, Profile]] = None,
    ) -> RegistryState:
        return RegistryState(
            administrator=self._administrator if administrator is None else administrator,
            profiles=self._profiles if profiles is None else profiles,
        )

    def _require(self, identity: str) -> Profile:
        profile = self._profiles.get(identity)
        if profile is None or not profile.exists:
            raise self._reject(NotFound(f"No profile registered for '{identity}'", identity))
        return profile

    def _put(self, identity: str, profile: Profile, *events: RegistryEvent) -> None:
        profiles = dict(self._profiles)
        profiles[identity] = profile
        self._commit(self._snapshot(profiles=profiles), events)

    def _commit(self, state: RegistryState, events: Iterable[RegistryEvent]) -> None:
        if self._store is not None:
            self._store.save(state)
        self._administrator = state.administrator
        self._profiles = state.profiles
        for event in events:
            self._emit(event)

    def _emit(self, event: RegistryEvent) -> None:
        # Runs after the commit; a failure here must not report the operation as failed
        if self._event_log is not None:
            try:
                self._event_log.append(event)
            except OSError:
                logger.exception("Could not log %s for '%s'", event.kind.value, event.identity)
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("Listener %r failed on %s", listener, event.kind.value)

    def _reject(self, exc: RegistryError) -> RegistryError:
        logger.debug("Rejected: [%s] %s", exc.code, exc.message)
        return exc

    def _parse_status(self, status: Status | str) -> Status:
        try:
            return Status.parse(status)
        except ValueError as exc:
            raise self._reject(InvalidInput(str(exc))) from None

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call ``listener`` with every emitted event. Returns an unsubscribe."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(
        self,
        caller: str,
        name: str,
        status: Status | str = Status.absent,
        tags: Optional[list[str]] = None,
    ) -> None:
        """Overwrite the caller's profile wholesale.

        This is a direct bulk write: the tag cap, tag uniqueness and the
        non-empty name rule are not applied here.
        """
        tags = list(tags or [])
        profile = Profile(name=name, status=self._parse_status(status), tags=tags)

        if not name:
            logger.warning("register: '%s' written with an empty name", caller)
        if len(tags) > MAX_TAGS:
            logger.warning("register: '%s' written with %d tags (cap is %d)", caller, len(tags), MAX_TAGS)
        if len(set(tags)) != len(tags):
            logger.warning("register: '%s' written with duplicate tags", caller)

        with self._lock:
            self._put(
                caller,
                profile,
                RegistryEvent(EventKind.profile_created, caller, {"name": name}),
            )
        logger.info("Registered '%s' as '%s'", caller, name)

    def register_new(self, caller: str, name: str) -> None:
        """First-time sign-up: name set, status Absent.

        Only name emptiness is checked, so tags already stored under an
        unnamed record are kept.
        """
        with self._lock:
            current = self._profiles.get(caller, Profile())
            if current.exists:
                raise self._reject(
                    AlreadyExists(f"'{caller}' is already registered as '{current.name}'", caller)
                )
            if not name:
                raise self._reject(InvalidInput("Name must not be empty", caller))

            profile = current.copy()
            profile.name = name
            profile.status = Status.absent
            self._put(
                caller,
                profile,
                RegistryEvent(EventKind.profile_created, caller, {"name": name}),
            )
        logger.info("Registered new profile '%s' as '%s'", caller, name)

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def mark_status(self, identity: str, status: Status | str) -> None:
        status = self._parse_status(status)
        with self._lock:
            profile = self._require(identity).copy()
            profile.status = status
            self._put(
                identity,
                profile,
                RegistryEvent(EventKind.status_changed, identity, {"status": status.value}),
            )
        logger.info("Marked '%s' %s", identity, status.value)

    def add_tag(self, identity: str, tag: str) -> None:
        with self._lock:
            profile = self._require(identity).copy()
            if not tag:
                raise self._reject(InvalidInput("Tag must not be empty", identity))
            if len(profile.tags) >= MAX_TAGS:
                raise self._reject(
                    CapacityExceeded(f"'{identity}' already has {MAX_TAGS} tags", identity)
                )
            if tag in profile.tags:
                raise self._reject(DuplicateTag(f"'{identity}' already has tag '{tag}'", identity))

            profile.tags.append(tag)
            self._put(
                identity,
                profile,
                RegistryEvent(EventKind.tag_added, identity, {"tag": tag}),
            )
        logger.info("Tagged '%s' with '%s'", identity, tag)

    def remove_tag(self, identity: str, tag: str) -> None:
        """Remove ``tag`` by moving the last tag into its slot.

        The order of the remaining tags is not preserved.
        """
        with self._lock:
            profile = self._require(identity).copy()
            try:
                index = profile.tags.index(tag)
            except ValueError:
                raise self._reject(TagNotFound(f"'{identity}' has no tag '{tag}'", identity)) from None

            profile.tags[index] = profile.tags[-1]
            profile.tags.pop()
            self._put(
                identity,
                profile,
                RegistryEvent(EventKind.tag_removed, identity, {"tag": tag}),
            )
        logger.info("Removed tag '%s' from '%s'", tag, identity)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_name(self, identity: str) -> str:
        with self._lock:
            return self._require(identity).name

    def get_status(self, identity: str) -> Status:
        with self._lock:
            return self._require(identity).status

    def get_tags(self, identity: str) -> tuple[str, ...]:
        with self._lock:
            return tuple(self._require(identity).tags)

    def is_registered(self, identity: str) -> bool:
        with self._lock:
            profile = self._profiles.get(identity)
            return profile is not None and profile.exists

    def profile(self, identity: str) -> Profile:
        """Raw record for ``identity``; an empty record if nothing is stored."""
        with self._lock:
            profile = self._profiles.get(identity)
            return profile.copy() if profile is not None else Profile()

    def profiles(self) -> dict[str, Profile]:
        """Snapshot of every stored record, registered or not."""
        with self._lock:
            return {identity: p.copy() for identity, p in self._profiles.items()}

    # ------------------------------------------------------------------
    # Administration
    # ------------------------------------------------------------------

    @property
    def event_log(self) -> Optional[EventLog]:
        return self._event_log

    @property
    def administrator(self) -> str:
        with self._lock:
            return self._administrator

    def transfer_ownership(self, caller: str, new_identity: str) -> None:
        """Hand administration to ``new_identity``. Only the administrator may call."""
        with self._lock:
            previous = self._administrator
            if caller != previous:
                raise self._reject(
                    Unauthorized(f"'{caller}' is not the administrator", caller)
                )
            self._commit(
                self._snapshot(administrator=new_identity),
                [
                    RegistryEvent(
                        EventKind.ownership_transferred,
                        new_identity,
                        {"previous": previous, "new": new_identity},
                    )
                ],
            )
        logger.info("Ownership transferred from '%s' to '%s'", previous, new_identity)
