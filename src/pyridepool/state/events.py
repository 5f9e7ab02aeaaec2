"""View states and the events that move between them."""

from __future__ import annotations

from enum import StrEnum


class ViewState(StrEnum):
    """The application's current mode. Exactly one holds at any time."""

    LOADING = "loading"
    ANONYMOUS = "anonymous"
    AUTHENTICATED_UNREGISTERED = "authenticated_unregistered"
    AUTHENTICATED_REGISTERED = "authenticated_registered"


class StateEvent(StrEnum):
    """Outcomes that drive a view-state transition.

    Failed network calls have no event: they leave the state alone.
    """

    RELOAD = "reload"
    SESSION_ABSENT = "session_absent"
    PROFILE_FOUND = "profile_found"
    PROFILE_NOT_FOUND = "profile_not_found"
    PROFILE_CREATED = "profile_created"
    PROFILE_UPDATED = "profile_updated"
    PROFILE_DELETED = "profile_deleted"
    SIGNED_OUT = "signed_out"
