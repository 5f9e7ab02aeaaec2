"""Custom exception hierarchy for pyridepool."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any


class RidePoolError(Exception):
    """Base exception for all pyridepool errors."""


class RidePoolConfigError(RidePoolError):
    """Invalid or missing configuration."""


class RidePoolTransportError(RidePoolError):
    """HTTP-level failure (network, timeout, invalid JSON)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class RidePoolApiError(RidePoolError):
    """The profile API answered with a non-2xx status or a malformed body."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class IdentityError(RidePoolError):
    """Identity provider interaction failed."""


class NoActiveSessionError(IdentityError):
    """There is no signed-in user.

    This is expected control flow: the application simply shows the
    anonymous landing view.
    """


class IncompleteSessionError(IdentityError):
    """A session exists but lacks a claim the profile API is keyed by."""

    def __init__(self, message: str, *, missing_claim: str = "") -> None:
        self.missing_claim = missing_claim
        super().__init__(message)


class TokenVerificationError(IdentityError):
    """An id token failed signature or claim verification."""


class DraftValidationError(RidePoolError):
    """Form input failed client-side validation.

    ``errors`` maps field name to a human-readable message.
    """

    def __init__(self, errors: Mapping[str, str]) -> None:
        self.errors: dict[str, str] = dict(errors)
        summary = "; ".join(f"{name}: {msg}" for name, msg in self.errors.items())
        super().__init__(f"Invalid profile fields ({summary})")


class InvalidTransitionError(RidePoolError):
    """An operation was attempted from a view state that does not allow it."""

    def __init__(self, state: Any, event: Any) -> None:
        self.state = state
        self.event = event
        super().__init__(f"Transition {event!s} is not allowed from state {state!s}")


class OperationPendingError(RidePoolError):
    """A profile mutation is already in flight for this session."""
