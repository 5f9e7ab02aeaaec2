"""Authenticated session state."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any
from urllib.parse import quote

from pydantic import BaseModel, ConfigDict, field_validator

from pyridepool.exceptions import IncompleteSessionError


def encode_identifier(email: str) -> str:
    """Percent-encode *email* for use as the profile resource key.

    Nothing is treated as safe, so ``@`` and ``/`` are encoded as well.
    """
    return quote(email, safe="")


class Session(BaseModel):
    """Authenticated identity held for the lifetime of the client.

    Parameters
    ----------
    user_id : str
        Stable identifier of the user (the ``sub`` claim).
    email : str
        Email claim of the id token. The profile resource is keyed by it.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        str_strip_whitespace=True,
    )

    user_id: str
    email: str

    @field_validator("user_id", "email")
    @classmethod
    def _non_empty(cls, value: str) -> str:
        if not value:
            raise ValueError("must be non-empty")
        return value

    @property
    def identifier(self) -> str:
        """URL-safe key of this user's profile resource."""
        return encode_identifier(self.email)

    @classmethod
    def from_claims(cls, user_id: str, claims: Mapping[str, Any]) -> Session:
        """Build a session from identity claims.

        Raises
        ------
        IncompleteSessionError
            The claims carry no usable ``email`` (the profile resource is
            keyed by it, so there is nothing to fall back on), or the user
            id is blank.
        """
        if not isinstance(user_id, str) or not user_id.strip():
            raise IncompleteSessionError("Session has no user id", missing_claim="sub")
        email = claims.get("email")
        if not isinstance(email, str) or not email.strip():
            raise IncompleteSessionError("Session has no email claim", missing_claim="email")
        return cls(user_id=user_id, email=email)
