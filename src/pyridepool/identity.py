"""Identity provider boundary.

The application only needs three things from its identity provider:
start a federated sign-in, end the session, and tell who is signed in.
:class:`IdentityClient` captures that contract. :class:`HostedUIIdentityClient`
implements it against a Cognito Hosted UI using the authorization-code
flow with PKCE.

Sign-in is a one-way hand-off: :meth:`begin_federated_sign_in` records the
PKCE state in the token store and hands the authorize URL to an opener
(usually a browser). Nothing in the process waits for the outcome. The
callback URL is later passed to :meth:`HostedUIIdentityClient.complete_sign_in`,
possibly by another process sharing the same :class:`FileTokenStore`.
"""

from __future__ import annotations

import json
import logging
import os
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol
from urllib.parse import parse_qs, urlsplit

from pydantic import ValidationError

from pyridepool._api import oauth as _oauth_api
from pyridepool._constants import DEFAULT_PROVIDER, TOKEN_LEEWAY_S
from pyridepool._crypto.jwt import decode_unverified, verify_id_token
from pyridepool._crypto.pkce import new_code_verifier, new_state
from pyridepool._transport import Transport
from pyridepool.config import RidePoolConfig
from pyridepool.exceptions import IdentityError, NoActiveSessionError, TokenVerificationError
from pyridepool.models.token import PendingAuthorization, TokenSet

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IdentitySession:
    """Who is signed in, as reported by the identity provider."""

    user_id: str
    claims: Mapping[str, Any] = field(default_factory=dict)


class IdentityClient(Protocol):
    """What the application consumes from its identity provider."""

    async def begin_federated_sign_in(self, provider: str = DEFAULT_PROVIDER) -> str:
        ...

    async def sign_out(self) -> None:
        ...

    async def get_current_session(self) -> IdentitySession:
        ...


# ------------------------------------------------------------------
# Token storage
# ------------------------------------------------------------------


class TokenStore(Protocol):
    def load_tokens(self) -> TokenSet | None: ...

    def save_tokens(self, tokens: TokenSet) -> None: ...

    def load_pending(self) -> PendingAuthorization | None: ...

    def save_pending(self, pending: PendingAuthorization) -> None: ...

    def clear(self, *, tokens: bool = True, pending: bool = True) -> None: ...


class MemoryTokenStore:
    """Keeps tokens for the lifetime of the process only."""

    def __init__(self) -> None:
        self._tokens: TokenSet | None = None
        self._pending: PendingAuthorization | None = None

    def load_tokens(self) -> TokenSet | None:
        return self._tokens

    def save_tokens(self, tokens: TokenSet) -> None:
        self._tokens = tokens

    def load_pending(self) -> PendingAuthorization | None:
        return self._pending

    def save_pending(self, pending: PendingAuthorization) -> None:
        self._pending = pending

    def clear(self, *, tokens: bool = True, pending: bool = True) -> None:
        if tokens:
            self._tokens = None
        if pending:
            self._pending = None


class FileTokenStore:
    """JSON file store so a sign-in survives a process restart.

    The file is created with ``0600`` permissions; it holds refresh tokens.
    A corrupt file is treated as empty.
    """

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self._path = Path(path)

    def _read(self) -> dict[str, Any]:
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except (OSError, json.JSONDecodeError):
            _logger.warning("Ignoring unreadable token store %s", self._path, exc_info=True)
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: dict[str, Any]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        fd = os.open(tmp, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            json.dump(data, fh)
        os.replace(tmp, self._path)

    def _load(self, key: str, model: type[Any]) -> Any:
        raw = self._read().get(key)
        if not isinstance(raw, dict):
            return None
        try:
            return model.model_validate(raw)
        except ValidationError:
            _logger.warning("Ignoring malformed %s entry in %s", key, self._path)
            return None

    def load_tokens(self) -> TokenSet | None:
        return self._load("tokens", TokenSet)

    def save_tokens(self, tokens: TokenSet) -> None:
        data = self._read()
        data["tokens"] = tokens.model_dump()
        self._write(data)

    def load_pending(self) -> PendingAuthorization | None:
        return self._load("pending", PendingAuthorization)

    def save_pending(self, pending: PendingAuthorization) -> None:
        data = self._read()
        data["pending"] = pending.model_dump()
        self._write(data)

    def clear(self, *, tokens: bool = True, pending: bool = True) -> None:
        data = self._read()
        if tokens:
            data.pop("tokens", None)
        if pending:
            data.pop("pending", None)
        if data:
            self._write(data)
        else:
            self._path.unlink(missing_ok=True)


# ------------------------------------------------------------------
# Hosted UI client
# ------------------------------------------------------------------


class HostedUIIdentityClient:
    """Cognito Hosted UI sign-in with PKCE.

    Parameters
    ----------
    config : RidePoolConfig
        Pool ids, Hosted UI domain and redirect URIs.
    transport : Transport
        HTTP transport for the token, revoke and JWKS endpoints.
    store : TokenStore, optional
        Where tokens and pending sign-ins live. Defaults to memory.
    opener : callable, optional
        Called with the authorize URL (e.g. :func:`webbrowser.open`).
    clock : callable
        Epoch-seconds clock for stored-token expiry and pending sign-ins.
        Id token ``exp`` is checked by PyJWT against the wall clock.
    """

    def __init__(
        self,
        config: RidePoolConfig,
        transport: Transport,
        *,
        store: TokenStore | None = None,
        opener: Callable[[str], Any] | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._config = config
        self._transport = transport
        self._store: TokenStore = store if store is not None else MemoryTokenStore()
        self._opener = opener
        self._clock = clock
        self._jwks: dict[str, Any] | None = None

    @property
    def logout_url(self) -> str:
        return _oauth_api.build_logout_url(self._config)

    async def begin_federated_sign_in(self, provider: str = DEFAULT_PROVIDER) -> str:
        """Record PKCE state and hand the authorize URL to the opener.

        Returns the URL. The sign-in completes out of process.
        """
        if provider not in self._config.oauth.providers:
            raise IdentityError(f"Provider {provider!r} is not enabled for this app client")
        pending = PendingAuthorization(
            state=new_state(),
            code_verifier=new_code_verifier(),
            provider=provider,
            redirect_uri=self._config.oauth.redirect_sign_in,
            created_at=self._clock(),
        )
        self._store.save_pending(pending)
        url = _oauth_api.build_authorize_url(self._config, pending)
        _logger.info("Redirecting to %s for sign-in", provider)
        if self._opener is not None:
            self._opener(url)
        return url

    async def complete_sign_in(self, callback_url: str) -> IdentitySession:
        """Finish a sign-in from the redirect URL the provider sent back to."""
        params = parse_qs(urlsplit(callback_url).query)
        error = params.get("error", [""])[0]
        if error:
            description = params.get("error_description", [""])[0]
            self._store.clear(tokens=False, pending=True)
            raise IdentityError(f"Sign-in was rejected: {error} {description}".strip())

        code = params.get("code", [""])[0]
        state = params.get("state", [""])[0]
        pending = self._store.load_pending()
        if pending is None:
            raise IdentityError("No sign-in is in progress")
        if not code or state != pending.state:
            raise IdentityError("Sign-in callback does not match the pending request")

        tokens = await _oauth_api.exchange_code(
            self._config,
            self._transport,
            code=code,
            pending=pending,
            now=self._clock(),
        )
        session = await self._session_from_tokens(tokens)
        self._store.save_tokens(tokens)
        self._store.clear(tokens=False, pending=True)
        return session

    async def get_current_session(self) -> IdentitySession:
        """Return the signed-in user, refreshing expired tokens if possible.

        Raises
        ------
        NoActiveSessionError
            Nobody is signed in, or the stored tokens can no longer be
            refreshed.
        """
        tokens = self._store.load_tokens()
        if tokens is None:
            raise NoActiveSessionError("No stored tokens")

        if tokens.is_expired(leeway=TOKEN_LEEWAY_S, now=self._clock()):
            if not tokens.refresh_token:
                self._store.clear(tokens=True, pending=False)
                raise NoActiveSessionError("Tokens expired and no refresh token is available")
            try:
                tokens = await _oauth_api.refresh_tokens(
                    self._config,
                    self._transport,
                    refresh_token=tokens.refresh_token,
                    now=self._clock(),
                )
            except IdentityError as exc:
                self._store.clear(tokens=True, pending=False)
                raise NoActiveSessionError(f"Token refresh failed: {exc}") from exc
            self._store.save_tokens(tokens)

        return await self._session_from_tokens(tokens)

    async def sign_out(self) -> None:
        """Forget the local tokens, then revoke the refresh token.

        Local state is cleared first so a failed revocation never leaves
        the user looking signed in.
        """
        tokens = self._store.load_tokens()
        self._store.clear()
        if tokens is not None and tokens.refresh_token:
            await _oauth_api.revoke_token(self._config, self._transport, refresh_token=tokens.refresh_token)

    async def _session_from_tokens(self, tokens: TokenSet) -> IdentitySession:
        claims = await self._verified_claims(tokens.id_token)
        sub = claims.get("sub")
        if not isinstance(sub, str) or not sub.strip():
            raise TokenVerificationError("id token has no subject")
        return IdentitySession(user_id=sub, claims=claims)

    async def _verified_claims(self, id_token: str) -> dict[str, Any]:
        if not self._config.verify_id_token:
            _header, claims = decode_unverified(id_token)
            return claims

        if self._jwks is None:
            self._jwks = await _oauth_api.fetch_jwks(self._config, self._transport)
        return verify_id_token(
            id_token,
            self._jwks,
            audience=self._config.user_pool_client_id,
            issuer=self._config.issuer,
            leeway=TOKEN_LEEWAY_S,
        )
