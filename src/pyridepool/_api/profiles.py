"""Profile endpoints.

Endpoints:
  - GET    /users/{identifier}
  - POST   /users
  - PUT    /users
  - DELETE /users/{identifier}

``{identifier}`` is the session email, percent-encoded. No retries and
no caching happen here; the caller owns both.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from pyridepool._constants import OK_STATUSES, USERS_PATH
from pyridepool._redact import redact_for_log
from pyridepool._transport import Transport, TransportResponse
from pyridepool.config import RidePoolConfig
from pyridepool.exceptions import RidePoolApiError
from pyridepool.models.profile import Profile, ProfileFields
from pyridepool.session import Session

_logger = logging.getLogger(__name__)


def _raise_for_status(method: str, endpoint: str, response: TransportResponse) -> None:
    if response.status in OK_STATUSES[method]:
        return
    detail = response.error_message() or "no details"
    raise RidePoolApiError(
        f"{method} {endpoint} failed: HTTP {response.status}: {detail}",
        status_code=response.status,
        endpoint=endpoint,
    )


def _parse_profile(endpoint: str, payload: Any, status: int) -> Profile:
    if not isinstance(payload, dict):
        raise RidePoolApiError(
            f"{endpoint} returned no profile object",
            status_code=status,
            endpoint=endpoint,
        )
    try:
        return Profile.model_validate(payload)
    except ValidationError as exc:
        raise RidePoolApiError(
            f"{endpoint} returned an invalid profile: {exc.error_count()} error(s)",
            status_code=status,
            endpoint=endpoint,
        ) from exc


def _profile_from_echo(
    endpoint: str,
    response: TransportResponse,
    *,
    config: RidePoolConfig,
    session: Session,
    fields: ProfileFields,
) -> Profile:
    """Extract the ``{"user": {...}}`` echo of a create/update call.

    Without the echo, strict mode rejects the response; lenient mode
    assembles the profile from the session and the submitted fields.
    """
    body = response.body
    echoed = body.get("user") if isinstance(body, dict) else None
    if isinstance(echoed, dict):
        return _parse_profile(endpoint, echoed, response.status)
    if config.strict_responses:
        raise RidePoolApiError(
            f"{endpoint} succeeded but did not echo the stored profile",
            status_code=response.status,
            endpoint=endpoint,
        )
    _logger.debug("%s returned no profile echo; assembling from submitted fields", endpoint)
    return Profile.assemble(session, fields)


async def fetch_profile(
    config: RidePoolConfig,
    session: Session,
    transport: Transport,
) -> Profile | None:
    """Fetch the signed-in user's profile.

    Returns
    -------
    Profile or None
        The stored profile, or ``None`` when the API answers 404 (the user
        has not registered yet).

    Raises
    ------
    RidePoolApiError
        Any other non-2xx answer or an unparseable body.
    """
    endpoint = f"{USERS_PATH}/{session.identifier}"
    response = await transport.request("GET", f"{config.api_base_url}{endpoint}")
    if response.status == 404:
        _logger.debug("No profile stored for %s", redact_for_log({"identifier": session.identifier}))
        return None
    _raise_for_status("GET", endpoint, response)
    _logger.debug("Fetched profile %s", redact_for_log(response.body))
    return _parse_profile(endpoint, response.body, response.status)


async def create_profile(
    config: RidePoolConfig,
    session: Session,
    transport: Transport,
    fields: ProfileFields,
) -> Profile:
    """Register a new profile for the signed-in user."""
    payload = fields.to_payload(session)
    _logger.debug("Creating profile %s", redact_for_log(payload))
    response = await transport.request("POST", f"{config.api_base_url}{USERS_PATH}", json_body=payload)
    _raise_for_status("POST", USERS_PATH, response)
    return _profile_from_echo(USERS_PATH, response, config=config, session=session, fields=fields)


async def update_profile(
    config: RidePoolConfig,
    session: Session,
    transport: Transport,
    fields: ProfileFields,
) -> Profile:
    """Replace the editable fields of the signed-in user's profile."""
    payload = fields.to_payload(session)
    _logger.debug("Updating profile %s", redact_for_log(payload))
    response = await transport.request("PUT", f"{config.api_base_url}{USERS_PATH}", json_body=payload)
    _raise_for_status("PUT", USERS_PATH, response)
    return _profile_from_echo(USERS_PATH, response, config=config, session=session, fields=fields)


async def delete_profile(
    config: RidePoolConfig,
    session: Session,
    transport: Transport,
) -> None:
    """Delete the signed-in user's profile."""
    endpoint = f"{USERS_PATH}/{session.identifier}"
    response = await transport.request("DELETE", f"{config.api_base_url}{endpoint}")
    _raise_for_status("DELETE", endpoint, response)


class ProfileService:
    """Profile endpoints bound to one configuration and transport."""

    def __init__(self, config: RidePoolConfig, transport: Transport) -> None:
        self._config = config
        self._transport = transport

    async def fetch(self, session: Session) -> Profile | None:
        return await fetch_profile(self._config, session, self._transport)

    async def create(self, session: Session, fields: ProfileFields) -> Profile:
        return await create_profile(self._config, session, self._transport, fields)

    async def update(self, session: Session, fields: ProfileFields) -> Profile:
        return await update_profile(self._config, session, self._transport, fields)

    async def delete(self, session: Session) -> None:
        await delete_profile(self._config, session, self._transport)
