"""High-level async client for the Ride Pool carpool service."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

import aiohttp

from pyridepool._api.profiles import ProfileService
from pyridepool._constants import (
    DEFAULT_PROVIDER,
    MSG_INCOMPLETE_SESSION,
    MSG_PROFILE_DELETE_FAILED,
    MSG_PROFILE_LOAD_FAILED,
    MSG_PROFILE_SAVE_FAILED,
    MSG_SIGN_IN_FAILED,
    MSG_SIGN_OUT_FAILED,
)
from pyridepool._transport import HttpTransport, Transport
from pyridepool.config import RidePoolConfig
from pyridepool.exceptions import (
    DraftValidationError,
    IncompleteSessionError,
    InvalidTransitionError,
    NoActiveSessionError,
    OperationPendingError,
    RidePoolError,
)
from pyridepool.forms import FormDraft, FormMode
from pyridepool.identity import HostedUIIdentityClient, IdentityClient, TokenStore
from pyridepool.models.profile import Profile, ProfileFields
from pyridepool.session import Session
from pyridepool.state.events import StateEvent, ViewState
from pyridepool.state.policy import allowed_events
from pyridepool.state.store import AppState, AppStateStore

_logger = logging.getLogger(__name__)


class RidePoolClient:
    """Session/profile state machine wired to the identity provider and the profile API.

    Usage::

        async with RidePoolClient(config, token_store=FileTokenStore(path)) as client:
            view = await client.evaluate_session()
            if view is ViewState.ANONYMOUS:
                await client.begin_sign_in()

    Network failures never escape the public operations: they are logged
    and turned into :attr:`error`, and the view state stays where it was.
    Calling an operation the current view state does not allow raises
    :class:`~pyridepool.exceptions.InvalidTransitionError`.
    """

    def __init__(
        self,
        config: RidePoolConfig,
        *,
        identity: IdentityClient | None = None,
        session: aiohttp.ClientSession | None = None,
        transport: Transport | None = None,
        token_store: TokenStore | None = None,
        opener: Callable[[str], Any] | None = None,
    ) -> None:
        self._config = config
        self._external_session = session is not None
        self._http_session = session
        self._transport = transport
        self._identity = identity
        self._token_store = token_store
        self._opener = opener
        self._profiles: ProfileService | None = None
        self._store = AppStateStore()
        self._draft: FormDraft | None = None
        self._confirming_deletion = False

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> RidePoolClient:
        if self._transport is None:
            if self._http_session is None:
                self._http_session = aiohttp.ClientSession()
            self._transport = HttpTransport(self._http_session, timeout=self._config.request_timeout)
        if self._identity is None:
            self._identity = HostedUIIdentityClient(
                self._config,
                self._transport,
                store=self._token_store,
                opener=self._opener,
            )
        self._profiles = ProfileService(self._config, self._transport)
        return self

    async def __aexit__(self, *exc: Any) -> None:
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        self._profiles = None

    # ------------------------------------------------------------------
    # Read-only view
    # ------------------------------------------------------------------

    @property
    def state(self) -> AppState:
        return self._store.state

    @property
    def view(self) -> ViewState:
        return self._store.view

    @property
    def session(self) -> Session | None:
        return self._store.state.session

    @property
    def profile(self) -> Profile | None:
        return self._store.state.profile

    @property
    def error(self) -> str | None:
        return self._store.state.error

    @property
    def pending(self) -> bool:
        """Whether a profile mutation is in flight (submit controls disabled)."""
        return self._store.state.pending

    @property
    def draft(self) -> FormDraft | None:
        return self._draft

    @property
    def identity(self) -> IdentityClient:
        if self._identity is None:
            raise RidePoolError("Client not initialized. Use 'async with RidePoolClient(...) as client:'")
        return self._identity

    @property
    def deletion_requested(self) -> bool:
        return self._confirming_deletion

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require_profiles(self) -> ProfileService:
        if self._profiles is None:
            raise RidePoolError("Client not initialized. Use 'async with RidePoolClient(...) as client:'")
        return self._profiles

    def _require_event(self, event: StateEvent) -> None:
        view = self._store.view
        if event not in allowed_events(view):
            raise InvalidTransitionError(view, event)

    def _require_idle(self) -> None:
        if self._store.state.pending:
            raise OperationPendingError("Another profile change is still in progress")

    def _reset_forms(self) -> None:
        self._draft = None
        self._confirming_deletion = False

    def _draft_for(self, mode: FormMode, fields: Mapping[str, Any] | None) -> FormDraft:
        """Current draft for *mode*, opening one if needed and applying *fields*."""
        draft = self._draft
        if draft is None or draft.mode is not mode:
            if mode is FormMode.EDIT:
                profile = self._store.state.profile
                draft = FormDraft.for_profile(profile) if profile is not None else FormDraft(mode)
            else:
                draft = FormDraft.for_registration()
            self._draft = draft
        if fields:
            draft.update(fields)
        return draft

    async def _mutate(
        self,
        event: StateEvent,
        call: Callable[[Session], Awaitable[Profile | None]],
        *,
        failure_message: str,
    ) -> ViewState:
        """Run one profile mutation with the pending flag held.

        The result is dropped if the user context was reset while the
        request was in flight.
        """
        state = self._store.state
        session = state.session
        if session is None:
            raise InvalidTransitionError(state.view, event)
        epoch = state.epoch
        self._store.set_pending(True)
        try:
            profile = await call(session)
        except RidePoolError as exc:
            if self._store.state.epoch != epoch:
                _logger.debug("Dropping failed %s issued before a context reset", event)
                return self._store.view
            _logger.warning("%s failed: %s", event, exc)
            self._store.fail(failure_message)
            return self._store.view
        finally:
            if self._store.state.epoch == epoch and self._store.state.pending:
                self._store.set_pending(False)

        if self._store.state.epoch != epoch:
            _logger.debug("Dropping %s result issued before a context reset", event)
            return self._store.view
        self._store.apply(event, profile=profile)
        _logger.info("Profile change applied: %s", event)
        return self._store.view

    # ------------------------------------------------------------------
    # Session evaluation
    # ------------------------------------------------------------------

    async def evaluate_session(self) -> ViewState:
        """(Re)load: look up the identity session, then the profile.

        Ends in ``ANONYMOUS`` (no session), ``AUTHENTICATED_UNREGISTERED``
        (no stored profile) or ``AUTHENTICATED_REGISTERED``. A failed profile
        lookup leaves the client in ``LOADING`` with a retryable error.
        """
        profiles = self._require_profiles()
        identity = self.identity
        self._reset_forms()
        epoch = self._store.apply(StateEvent.RELOAD).epoch

        try:
            identity_session = await identity.get_current_session()
        except NoActiveSessionError:
            if self._store.state.epoch != epoch:
                return self._store.view
            _logger.debug("No active session")
            self._store.apply(StateEvent.SESSION_ABSENT)
            return self._store.view
        except RidePoolError as exc:
            if self._store.state.epoch != epoch:
                _logger.debug("Dropping session lookup failure issued before a context reset")
                return self._store.view
            _logger.warning("Session lookup failed: %s", exc)
            self._store.apply(StateEvent.SESSION_ABSENT)
            self._store.fail(MSG_SIGN_IN_FAILED)
            return self._store.view

        if self._store.state.epoch != epoch:
            _logger.debug("Dropping session lookup issued before a context reset")
            return self._store.view
        try:
            session = Session.from_claims(identity_session.user_id, identity_session.claims)
        except IncompleteSessionError as exc:
            _logger.warning("Signed-in session is unusable: %s", exc)
            self._store.apply(StateEvent.SESSION_ABSENT)
            self._store.fail(MSG_INCOMPLETE_SESSION)
            return self._store.view

        try:
            profile = await profiles.fetch(session)
        except RidePoolError as exc:
            if self._store.state.epoch == epoch:
                _logger.warning("Profile lookup failed: %s", exc)
                self._store.fail(MSG_PROFILE_LOAD_FAILED)
            return self._store.view

        if self._store.state.epoch != epoch:
            return self._store.view
        if profile is None:
            self._store.apply(StateEvent.PROFILE_NOT_FOUND, session=session)
        else:
            self._store.apply(StateEvent.PROFILE_FOUND, session=session, profile=profile)
        return self._store.view

    async def begin_sign_in(self, provider: str = DEFAULT_PROVIDER) -> str | None:
        """Hand off to the identity provider; the view state does not change.

        Returns the authorize URL, or ``None`` if the hand-off failed.
        The outcome is only visible to a later :meth:`evaluate_session`.
        """
        self._store.clear_error()
        try:
            return await self.identity.begin_federated_sign_in(provider)
        except RidePoolError as exc:
            _logger.warning("Sign-in hand-off failed: %s", exc)
            self._store.fail(MSG_SIGN_IN_FAILED)
            return None

    async def sign_out(self) -> ViewState:
        """Sign out; always ends in ``ANONYMOUS``.

        The remote sign-out is best effort. If it fails the local session
        is cleared anyway and the failure is reported through :attr:`error`.
        """
        failed = False
        try:
            await self.identity.sign_out()
        except RidePoolError as exc:
            _logger.warning("Remote sign-out failed: %s", exc)
            failed = True
        self._reset_forms()
        self._store.apply(StateEvent.SIGNED_OUT)
        if failed:
            self._store.fail(MSG_SIGN_OUT_FAILED)
        return self._store.view

    # ------------------------------------------------------------------
    # Forms
    # ------------------------------------------------------------------

    def open_registration_form(self) -> FormDraft:
        self._require_event(StateEvent.PROFILE_CREATED)
        return self._draft_for(FormMode.REGISTER, None)

    def open_edit_form(self) -> FormDraft:
        """Open an edit draft seeded from the cached profile."""
        self._require_event(StateEvent.PROFILE_UPDATED)
        self._draft = None
        return self._draft_for(FormMode.EDIT, None)

    def cancel_form(self) -> None:
        """Discard the open draft. The cached profile is untouched."""
        self._draft = None
        self._store.clear_error()

    def request_deletion(self) -> None:
        """Open the delete confirmation step."""
        self._require_event(StateEvent.PROFILE_DELETED)
        self._confirming_deletion = True

    def cancel_deletion(self) -> None:
        self._confirming_deletion = False

    async def confirm_deletion(self) -> ViewState:
        if not self._confirming_deletion:
            raise RidePoolError("No deletion confirmation is open")
        return await self.submit_deletion()

    # ------------------------------------------------------------------
    # Profile mutations
    # ------------------------------------------------------------------

    async def _submit(
        self,
        event: StateEvent,
        mode: FormMode,
        fields: Mapping[str, Any] | None,
        send: Callable[[Session, ProfileFields], Awaitable[Profile]],
    ) -> ViewState:
        self._require_event(event)
        self._require_idle()
        draft = self._draft_for(mode, fields)
        try:
            validated = draft.validate()
        except DraftValidationError as exc:
            _logger.debug("%s blocked by validation: %s", event, exc.errors)
            return self._store.view

        self._store.clear_error()
        view = await self._mutate(
            event,
            lambda session: send(session, validated),
            failure_message=MSG_PROFILE_SAVE_FAILED,
        )
        # a failed commit leaves the draft open with its data for resubmission
        if self._store.state.error is None and self._draft is draft:
            self._draft = None
        return view

    async def submit_registration(self, fields: Mapping[str, Any] | None = None) -> ViewState:
        """Create the profile from *fields* or the open registration draft.

        Only allowed in ``AUTHENTICATED_UNREGISTERED``. Validation errors
        block the request and are left on :attr:`draft`.
        """
        profiles = self._require_profiles()
        return await self._submit(StateEvent.PROFILE_CREATED, FormMode.REGISTER, fields, profiles.create)

    async def submit_update(self, fields: Mapping[str, Any] | None = None) -> ViewState:
        """Update the profile from *fields* or the open edit draft.

        Only allowed in ``AUTHENTICATED_REGISTERED``. Fields not supplied
        keep their cached values.
        """
        profiles = self._require_profiles()
        return await self._submit(StateEvent.PROFILE_UPDATED, FormMode.EDIT, fields, profiles.update)

    async def submit_deletion(self) -> ViewState:
        """Delete the profile. Only allowed in ``AUTHENTICATED_REGISTERED``."""
        profiles = self._require_profiles()
        self._require_event(StateEvent.PROFILE_DELETED)
        self._require_idle()
        self._store.clear_error()

        async def _delete(session: Session) -> None:
            await profiles.delete(session)

        view = await self._mutate(StateEvent.PROFILE_DELETED, _delete, failure_message=MSG_PROFILE_DELETE_FAILED)
        if view is ViewState.AUTHENTICATED_UNREGISTERED:
            self._reset_forms()
        return view
