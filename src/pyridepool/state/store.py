"""In-memory session/profile state.

This is the only component allowed to change the view state.
"""

from __future__ import annotations

import logging

from pydantic import BaseModel, ConfigDict, model_validator

from pyridepool.models.profile import Profile
from pyridepool.session import Session
from pyridepool.state.events import StateEvent, ViewState
from pyridepool.state.policy import next_state

_logger = logging.getLogger(__name__)

# Events after which the cached profile is whatever the caller supplies.
_PROFILE_EVENTS = frozenset({StateEvent.PROFILE_FOUND, StateEvent.PROFILE_CREATED, StateEvent.PROFILE_UPDATED})
# Events after which nothing about the previous user may remain.
_RESET_EVENTS = frozenset({StateEvent.RELOAD, StateEvent.SESSION_ABSENT, StateEvent.SIGNED_OUT})


class AppState(BaseModel):
    """Snapshot of the application state.

    ``view`` decides which of ``session``/``profile`` may be set; the
    validator rejects every other combination.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    view: ViewState = ViewState.LOADING
    session: Session | None = None
    profile: Profile | None = None
    error: str | None = None
    pending: bool = False
    epoch: int = 0

    @model_validator(mode="after")
    def _check_consistency(self) -> AppState:
        if self.view in (ViewState.LOADING, ViewState.ANONYMOUS):
            if self.profile is not None:
                raise ValueError(f"{self.view} cannot hold a profile")
            if self.view is ViewState.ANONYMOUS and self.session is not None:
                raise ValueError("anonymous state cannot hold a session")
        elif self.session is None:
            raise ValueError(f"{self.view} requires a session")
        elif self.view is ViewState.AUTHENTICATED_UNREGISTERED and self.profile is not None:
            raise ValueError("unregistered state cannot hold a profile")
        elif self.view is ViewState.AUTHENTICATED_REGISTERED and self.profile is None:
            raise ValueError("registered state requires a profile")
        return self


class AppStateStore:
    """Holds the current :class:`AppState` and applies transitions.

    ``epoch`` increases whenever the user context is reset (reload or
    sign-out) so that late results of requests issued under an older
    context can be recognised and dropped.
    """

    def __init__(self) -> None:
        self._state = AppState()

    @property
    def state(self) -> AppState:
        return self._state

    @property
    def view(self) -> ViewState:
        return self._state.view

    def apply(
        self,
        event: StateEvent,
        *,
        session: Session | None = None,
        profile: Profile | None = None,
    ) -> AppState:
        """Move to the state *event* leads to and return the new snapshot.

        Raises
        ------
        InvalidTransitionError
            If *event* is not accepted in the current view state.
        """
        current = self._state
        target = next_state(current.view, event)

        if event in _RESET_EVENTS:
            new_session = None
            new_profile = None
        else:
            new_session = session if session is not None else current.session
            new_profile = profile if event in _PROFILE_EVENTS else None

        epoch = current.epoch + 1 if event in (StateEvent.RELOAD, StateEvent.SIGNED_OUT) else current.epoch
        self._state = AppState(
            view=target,
            session=new_session,
            profile=new_profile,
            error=None,
            pending=False,
            epoch=epoch,
        )
        _logger.debug("State %s --%s--> %s", current.view, event, target)
        return self._state

    def fail(self, message: str) -> AppState:
        """Record a user-facing error without leaving the current state."""
        self._state = self._state.model_copy(update={"error": message, "pending": False})
        return self._state

    def clear_error(self) -> None:
        if self._state.error is not None:
            self._state = self._state.model_copy(update={"error": None})

    def set_pending(self, pending: bool) -> None:
        self._state = self._state.model_copy(update={"pending": pending})
