"""Session/profile state layer.

This package is the single source of truth for which view the
application is in. Only :class:`~pyridepool.state.store.AppStateStore`
moves between view states, and only along the transitions declared in
:mod:`pyridepool.state.policy`.
"""

from pyridepool.state.events import StateEvent, ViewState
from pyridepool.state.policy import allowed_events, next_state
from pyridepool.state.store import AppState, AppStateStore

__all__ = [
    "AppState",
    "AppStateStore",
    "StateEvent",
    "ViewState",
    "allowed_events",
    "next_state",
]
