"""Helpers for safe debug logging.

pyridepool handles OAuth tokens and personal contact details (phone,
home address). This module redacts those fields before they reach DEBUG
logs.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

_SENSITIVE_VALUE_KEYS: frozenset[str] = frozenset(
    {
        "access_token",
        "accesstoken",
        "id_token",
        "idtoken",
        "refresh_token",
        "refreshtoken",
        "token",
        "code",
        "code_verifier",
        "authorization",
        "cookie",
        "client_secret",
        # Personal details
        "phone",
        "address",
    }
)

_EMAIL_KEYS: frozenset[str] = frozenset({"email", "identifier"})


def mask_email(value: str) -> str:
    """Keep the first character of the local part and the domain.

    ``"parent@example.com"`` becomes ``"p***@example.com"``. Percent-encoded
    identifiers (``%40``) are handled the same way.
    """
    for sep in ("@", "%40"):
        local, found, domain = value.partition(sep)
        if found:
            return f"{local[:1]}***{sep}{domain}"
    return "<redacted>"


def redact_for_log(value: Any, *, max_string: int = 512, _depth: int = 0) -> Any:
    """Return a redacted copy of *value* suitable for debug logs."""
    if _depth > 20:
        return "<max-depth>"

    if value is None:
        return None

    if isinstance(value, str):
        if len(value) > max_string:
            return f"{value[:max_string]}…<truncated>"
        return value

    if isinstance(value, (int, float, bool)):
        return value

    if isinstance(value, bytes):
        return f"<bytes:{len(value)}b>"

    if isinstance(value, Mapping):
        redacted: dict[str, Any] = {}
        for k, v in value.items():
            key = str(k)
            if key.lower() in _SENSITIVE_VALUE_KEYS:
                redacted[key] = "<redacted>"
            elif key.lower() in _EMAIL_KEYS and isinstance(v, str):
                redacted[key] = mask_email(v)
            else:
                redacted[key] = redact_for_log(v, max_string=max_string, _depth=_depth + 1)
        return redacted

    if isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray)):
        return [redact_for_log(v, max_string=max_string, _depth=_depth + 1) for v in value]

    return repr(value)
