"""
Profile onboarding for Melodex.

The profile gate persists a one-time user profile and blocks access to the
search view until one exists.

Design decisions:
- A profile is either absent or completely filled. Completeness is checked
  at submit time only; whatever was persisted is trusted on load.
- There is no edit/reset flow: once Ready, the gate stays Ready.
- Storage holds the profile as a JSON string under a single key.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Callable, Mapping
from dataclasses import asdict, dataclass, fields
from enum import Enum
from typing import Any

from melodex.core import MalformedProfileError, ValidationError
from melodex.core.storage import LocalStorage

logger = logging.getLogger(__name__)

# Storage key for the profile record
PROFILE_KEY = "userDetails"

# Genre choices offered by the onboarding form
GENRES: tuple[str, ...] = ("Rock", "Pop", "Hip Hop", "Jazz", "Electronic", "Rap")

ReadyListener = Callable[["UserProfile"], None]


class Gender(Enum):
    """Gender choices offered by the onboarding form."""

    FEMALE = "F"
    MALE = "M"


class GateState(Enum):
    """Onboarding gate states."""

    ONBOARDING = "onboarding"
    READY = "ready"


@dataclass(frozen=True, slots=True)
class UserProfile:
    """The one-time onboarding record. Age is kept as the typed numeric string."""

    name: str
    lastname: str
    age: str
    gender: str
    genre: str

    @classmethod
    def field_names(cls) -> tuple[str, ...]:
        return tuple(f.name for f in fields(cls))

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> UserProfile:
        """
        Build a profile from a mapping of form fields.

        Missing fields become empty strings.

        Raises:
            MalformedProfileError: If a field holds something other than a string.
        """
        values: dict[str, str] = {}
        for name in cls.field_names():
            value = data.get(name, "")
            if value is None:
                value = ""
            if not isinstance(value, str):
                raise MalformedProfileError(f"field {name!r} is not a string")
            values[name] = value
        return cls(**values)

    def to_dict(self) -> dict[str, str]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class ProfileLoadResult:
    """Outcome of reading the persisted profile."""

    present: bool
    profile: UserProfile | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"present": self.present}
        if self.profile is not None:
            result["profile"] = self.profile.to_dict()
        return result


def empty_fields(profile: UserProfile | Mapping[str, Any]) -> list[str]:
    """Return the names of fields that are missing or blank after trimming."""
    if isinstance(profile, UserProfile):
        data: Mapping[str, Any] = profile.to_dict()
    else:
        data = profile

    missing = []
    for name in UserProfile.field_names():
        value = data.get(name)
        if not isinstance(value, str) or not value.strip():
            missing.append(name)
    return missing


def is_complete(profile: UserProfile | Mapping[str, Any]) -> bool:
    """True iff every profile field is a non-empty string after trimming."""
    return not empty_fields(profile)


def decode_profile(raw: str) -> UserProfile:
    """
    Decode a persisted profile record.

    Raises:
        MalformedProfileError: If the record is not a JSON object of string fields.
    """
    try:
        data = json.loads(raw)
    except ValueError as e:
        raise MalformedProfileError(f"invalid JSON: {e}") from e

    if not isinstance(data, dict):
        raise MalformedProfileError("profile record is not a JSON object")

    return UserProfile.from_mapping(data)


class ProfileGate:
    """
    Persists the user profile and gates the search view.

    The gate starts in ``ONBOARDING`` and moves to ``READY`` when a stored
    profile is loaded or a complete one is submitted. Ready listeners are
    called once, on that transition.
    """

    def __init__(self, storage: LocalStorage, key: str = PROFILE_KEY) -> None:
        self._storage = storage
        self._key = key
        self._state = GateState.ONBOARDING
        self._profile: UserProfile | None = None
        self._ready_listeners: list[ReadyListener] = []

    @property
    def state(self) -> GateState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return self._state is GateState.READY

    @property
    def profile(self) -> UserProfile | None:
        return self._profile

    def add_ready_listener(self, listener: ReadyListener) -> None:
        """Register a callback fired on the Onboarding -> Ready transition."""
        self._ready_listeners.append(listener)

    def load(self) -> ProfileLoadResult:
        """
        Read the persisted profile.

        Never raises: missing or malformed data reads as absent.
        """
        raw = self._storage.get_item(self._key)
        if raw is None:
            logger.debug("No stored profile under %s", self._key)
            return ProfileLoadResult(present=False)

        try:
            profile = decode_profile(raw)
        except MalformedProfileError as e:
            logger.warning("Ignoring malformed stored profile: %s", e)
            return ProfileLoadResult(present=False)

        self._enter_ready(profile)
        return ProfileLoadResult(present=True, profile=profile)

    def submit(self, candidate: UserProfile | Mapping[str, Any]) -> UserProfile:
        """
        Validate and persist a profile.

        Args:
            candidate: A UserProfile or a mapping of form fields.

        Returns:
            The persisted profile.

        Raises:
            ValidationError: If any field is empty after trimming. Nothing is
                persisted and the gate state is unchanged.
        """
        profile = self._validate(candidate)
        self._persist(profile)
        self._enter_ready(profile)
        return profile

    async def submit_async(self, candidate: UserProfile | Mapping[str, Any]) -> UserProfile:
        """
        Like submit(), but writes the storage file in a worker thread.

        Ready listeners still run on the calling event loop.
        """
        profile = self._validate(candidate)
        await asyncio.to_thread(self._persist, profile)
        self._enter_ready(profile)
        return profile

    def _validate(self, candidate: UserProfile | Mapping[str, Any]) -> UserProfile:
        missing = empty_fields(candidate)
        if missing:
            logger.info("Profile submission rejected, empty fields: %s", ", ".join(missing))
            raise ValidationError(missing)

        if isinstance(candidate, UserProfile):
            return candidate
        return UserProfile.from_mapping(candidate)

    def _persist(self, profile: UserProfile) -> None:
        self._storage.set_item(self._key, json.dumps(profile.to_dict()))
        logger.info("Profile saved for %s %s", profile.name, profile.lastname)

    def _enter_ready(self, profile: UserProfile) -> None:
        self._profile = profile
        if self._state is GateState.READY:
            return

        self._state = GateState.READY
        for listener in list(self._ready_listeners):
            try:
                listener(profile)
            except Exception as e:
                logger.exception("Error in profile ready listener: %s", e)
