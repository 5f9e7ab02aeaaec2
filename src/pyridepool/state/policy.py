"""Transition table of the session/profile state machine.

This module holds no state; :func:`next_state` is a pure function of the
current view state and the incoming event.
"""

from __future__ import annotations

from types import MappingProxyType

from pyridepool.exceptions import InvalidTransitionError
from pyridepool.state.events import StateEvent, ViewState

_L = ViewState.LOADING
_A = ViewState.ANONYMOUS
_U = ViewState.AUTHENTICATED_UNREGISTERED
_R = ViewState.AUTHENTICATED_REGISTERED

_TRANSITIONS = MappingProxyType(
    {
        _L: {
            StateEvent.SESSION_ABSENT: _A,
            StateEvent.PROFILE_NOT_FOUND: _U,
            StateEvent.PROFILE_FOUND: _R,
            StateEvent.SIGNED_OUT: _A,
            StateEvent.RELOAD: _L,
        },
        _A: {
            StateEvent.SIGNED_OUT: _A,
            StateEvent.RELOAD: _L,
        },
        _U: {
            StateEvent.PROFILE_CREATED: _R,
            StateEvent.SIGNED_OUT: _A,
            StateEvent.RELOAD: _L,
        },
        _R: {
            StateEvent.PROFILE_UPDATED: _R,
            StateEvent.PROFILE_DELETED: _U,
            StateEvent.SIGNED_OUT: _A,
            StateEvent.RELOAD: _L,
        },
    }
)


def allowed_events(state: ViewState) -> frozenset[StateEvent]:
    return frozenset(_TRANSITIONS[state])


def next_state(state: ViewState, event: StateEvent) -> ViewState:
    """Return the view state *event* leads to from *state*.

    Raises
    ------
    InvalidTransitionError
        If *event* is not accepted in *state*.
    """
    target = _TRANSITIONS[state].get(event)
    if target is None:
        raise InvalidTransitionError(state, event)
    return target
