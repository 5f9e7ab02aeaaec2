"""Cognito id token decoding and verification (PyJWT)."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import jwt

from pyridepool.exceptions import TokenVerificationError


def decode_unverified(token: str) -> tuple[dict[str, Any], dict[str, Any]]:
    """Return ``(header, claims)`` without checking the signature."""
    try:
        header = jwt.get_unverified_header(token)
        claims = jwt.decode(token, options={"verify_signature": False})
    except jwt.InvalidTokenError as exc:
        raise TokenVerificationError(f"Token cannot be decoded: {exc}") from exc
    return dict(header), dict(claims)


def _signing_key(token: str, jwks: Mapping[str, Any]) -> Any:
    try:
        kid = jwt.get_unverified_header(token).get("kid")
    except jwt.InvalidTokenError as exc:
        raise TokenVerificationError(f"Token cannot be decoded: {exc}") from exc

    keys = jwks.get("keys") if isinstance(jwks, Mapping) else None
    jwk = next(
        (key for key in keys or [] if isinstance(key, Mapping) and key.get("kid") == kid),
        None,
    )
    if jwk is None:
        raise TokenVerificationError(f"No signing key with kid={kid!r}")
    try:
        return jwt.PyJWK(dict(jwk)).key
    except jwt.PyJWTError as exc:
        raise TokenVerificationError(f"Signing key kid={kid!r} is unusable: {exc}") from exc


def verify_id_token(
    token: str,
    jwks: Mapping[str, Any],
    *,
    audience: str,
    issuer: str,
    leeway: float = 0,
) -> dict[str, Any]:
    """Verify an RS256 id token against *jwks* and return its claims.

    Signature, ``aud``, ``iss`` and ``exp`` are checked by PyJWT; the
    Cognito-specific ``token_use`` claim is checked here.

    Raises
    ------
    TokenVerificationError
        Unknown ``kid``, bad signature, or a claim that does not match.
    """
    key = _signing_key(token, jwks)
    try:
        claims = jwt.decode(
            token,
            key,
            algorithms=["RS256"],
            audience=audience,
            issuer=issuer,
            leeway=leeway,
            options={"require": ["exp", "iss", "aud", "sub"]},
        )
    except jwt.InvalidTokenError as exc:
        raise TokenVerificationError(f"id token rejected: {exc}") from exc

    if claims.get("token_use") != "id":
        raise TokenVerificationError("Token is not an id token")
    return dict(claims)
