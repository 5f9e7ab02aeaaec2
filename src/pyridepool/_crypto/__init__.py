"""Cryptographic primitives for the Hosted UI sign-in flow."""

from __future__ import annotations

from pyridepool._crypto.jwt import decode_unverified, verify_id_token
from pyridepool._crypto.pkce import code_challenge, new_code_verifier, new_state

__all__ = [
    "code_challenge",
    "decode_unverified",
    "new_code_verifier",
    "new_state",
    "verify_id_token",
]
