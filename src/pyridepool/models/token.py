"""OAuth token models."""

from __future__ import annotations

import time
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class TokenSet(BaseModel):
    """Tokens returned by the Hosted UI token endpoint.

    Parameters
    ----------
    id_token : str
        JWT carrying the identity claims (``sub``, ``email``).
    access_token : str
        Bearer token for resource servers.
    refresh_token : str or None
        Long-lived token used to mint new id/access tokens. Cognito does
        not return a new one on refresh, so it is carried over.
    expires_at : float
        Epoch seconds after which the id/access tokens are expired.
    token_type : str
        Usually ``"Bearer"``.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    id_token: str
    access_token: str
    refresh_token: str | None = None
    expires_at: float = 0.0
    token_type: str = "Bearer"

    def is_expired(self, *, leeway: float = 0.0, now: float | None = None) -> bool:
        current = time.time() if now is None else now
        return current >= self.expires_at - leeway

    @classmethod
    def from_token_response(
        cls,
        payload: dict[str, Any],
        *,
        previous_refresh_token: str | None = None,
        now: float | None = None,
    ) -> TokenSet:
        """Build a token set from an ``/oauth2/token`` JSON response."""
        issued_at = time.time() if now is None else now
        expires_in = float(payload.get("expires_in") or 3600)
        return cls(
            id_token=str(payload["id_token"]),
            access_token=str(payload["access_token"]),
            refresh_token=payload.get("refresh_token") or previous_refresh_token,
            expires_at=issued_at + expires_in,
            token_type=str(payload.get("token_type") or "Bearer"),
        )


class PendingAuthorization(BaseModel):
    """PKCE state written before the redirect to the identity provider.

    It outlives the process that started the sign-in so that whichever
    process receives the callback can finish the code exchange.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    state: str
    code_verifier: str
    provider: str
    redirect_uri: str
    created_at: float = Field(default_factory=time.time)
