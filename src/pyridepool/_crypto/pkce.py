"""PKCE (RFC 7636) helpers for the authorization-code flow."""

from __future__ import annotations

import base64
import hashlib
import secrets


def _b64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def new_code_verifier() -> str:
    """Random high-entropy verifier, 64 URL-safe characters."""
    return _b64url(secrets.token_bytes(48))


def new_state() -> str:
    """Opaque value echoed back by the authorization server."""
    return secrets.token_urlsafe(24)


def code_challenge(verifier: str) -> str:
    """Derive the ``S256`` code challenge of *verifier*.

    ``BASE64URL(SHA256(ASCII(verifier)))`` without padding.
    """
    return _b64url(hashlib.sha256(verifier.encode("ascii")).digest())
