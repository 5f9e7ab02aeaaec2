"""Hosted UI (OAuth2) endpoints.

Endpoints:
  - /oauth2/authorize  (browser redirect, URL built here)
  - /oauth2/token      (code exchange, refresh)
  - /oauth2/revoke     (refresh token revocation)
  - /logout            (browser redirect, URL built here)
  - {issuer}/.well-known/jwks.json
"""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import urlencode

from pyridepool._crypto.pkce import code_challenge
from pyridepool._redact import redact_for_log
from pyridepool._transport import Transport
from pyridepool.config import RidePoolConfig
from pyridepool.exceptions import IdentityError
from pyridepool.models.token import PendingAuthorization, TokenSet

_logger = logging.getLogger(__name__)


def build_authorize_url(config: RidePoolConfig, pending: PendingAuthorization) -> str:
    """URL the browser is sent to for a federated sign-in."""
    oauth = config.oauth
    query = {
        "client_id": config.user_pool_client_id,
        "response_type": oauth.response_type,
        "redirect_uri": pending.redirect_uri,
        "scope": " ".join(oauth.scopes),
        "identity_provider": pending.provider,
        "state": pending.state,
        "code_challenge": code_challenge(pending.code_verifier),
        "code_challenge_method": "S256",
    }
    return f"{oauth.base_url}/oauth2/authorize?{urlencode(query)}"


def build_logout_url(config: RidePoolConfig) -> str:
    """URL that ends the Hosted UI browser session."""
    query = {
        "client_id": config.user_pool_client_id,
        "logout_uri": config.oauth.redirect_sign_out,
    }
    return f"{config.oauth.base_url}/logout?{urlencode(query)}"


async def _post_token_form(
    config: RidePoolConfig,
    transport: Transport,
    form: dict[str, str],
) -> dict[str, Any]:
    endpoint = "/oauth2/token"
    response = await transport.request("POST", f"{config.oauth.base_url}{endpoint}", form=form)
    if not response.ok or not isinstance(response.body, dict):
        raise IdentityError(
            f"{endpoint} failed: HTTP {response.status}: {response.error_message() or 'no details'}"
        )
    _logger.debug("Token endpoint returned %s", redact_for_log(response.body))
    if "id_token" not in response.body or "access_token" not in response.body:
        raise IdentityError(f"{endpoint} response is missing id_token/access_token")
    return response.body


async def exchange_code(
    config: RidePoolConfig,
    transport: Transport,
    *,
    code: str,
    pending: PendingAuthorization,
    now: float | None = None,
) -> TokenSet:
    """Trade an authorization code (plus PKCE verifier) for tokens."""
    body = await _post_token_form(
        config,
        transport,
        {
            "grant_type": "authorization_code",
            "client_id": config.user_pool_client_id,
            "code": code,
            "redirect_uri": pending.redirect_uri,
            "code_verifier": pending.code_verifier,
        },
    )
    return TokenSet.from_token_response(body, now=now)


async def refresh_tokens(
    config: RidePoolConfig,
    transport: Transport,
    *,
    refresh_token: str,
    now: float | None = None,
) -> TokenSet:
    """Mint fresh id/access tokens from a refresh token."""
    body = await _post_token_form(
        config,
        transport,
        {
            "grant_type": "refresh_token",
            "client_id": config.user_pool_client_id,
            "refresh_token": refresh_token,
        },
    )
    return TokenSet.from_token_response(body, previous_refresh_token=refresh_token, now=now)


async def revoke_token(
    config: RidePoolConfig,
    transport: Transport,
    *,
    refresh_token: str,
) -> None:
    """Revoke *refresh_token* (and the tokens minted from it)."""
    endpoint = "/oauth2/revoke"
    response = await transport.request(
        "POST",
        f"{config.oauth.base_url}{endpoint}",
        form={"token": refresh_token, "client_id": config.user_pool_client_id},
    )
    if not response.ok:
        raise IdentityError(
            f"{endpoint} failed: HTTP {response.status}: {response.error_message() or 'no details'}"
        )


async def fetch_jwks(config: RidePoolConfig, transport: Transport) -> dict[str, Any]:
    """Download the signing keys of the user pool."""
    response = await transport.request("GET", config.jwks_url)
    if not response.ok or not isinstance(response.body, dict):
        raise IdentityError(f"JWKS download failed: HTTP {response.status}")
    return response.body
