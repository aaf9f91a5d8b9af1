"""
Core domain package.

This package contains the session logic which should be independent of any
UI layer (web, CLI, etc.): the onboarding gate, the search controller and the
durable storage backing the profile record.

We intentionally keep exports minimal; consumers should usually import from the
specific module they need (e.g. `melodex.core.search`).
"""

from __future__ import annotations

__all__: list[str] = [
    "CoreError",
    "ConfigError",
    "MalformedProfileError",
    "RemoteFetchError",
    "ValidationError",
]


class CoreError(Exception):
    """Base class for core-layer exceptions."""


class ValidationError(CoreError):
    """Raised when a profile submission has one or more empty fields."""

    def __init__(self, fields: list[str], message: str = "Please fill in all fields.") -> None:
        super().__init__(message)
        self.fields = fields
        self.message = message


class RemoteFetchError(CoreError):
    """Raised when the catalog service fails (network, status or payload)."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class MalformedProfileError(CoreError):
    """Raised when a persisted profile record cannot be decoded."""


class ConfigError(CoreError):
    """Raised when the configuration file is unreadable or invalid."""
