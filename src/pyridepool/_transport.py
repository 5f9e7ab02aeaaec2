"""HTTP transport shared by the profile API and the identity client."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Protocol

import aiohttp

from pyridepool._constants import USER_AGENT
from pyridepool.exceptions import RidePoolTransportError

_logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class TransportResponse:
    """Status and decoded body of an HTTP exchange.

    ``body`` is the decoded JSON document, or ``None`` when the response
    had no body or the body was not JSON (``text`` keeps the raw string).
    """

    status: int
    body: Any = None
    text: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def error_message(self) -> str:
        """Best human-readable message the server supplied, if any."""
        if isinstance(self.body, Mapping):
            for key in ("error", "message", "error_description"):
                value = self.body.get(key)
                if isinstance(value, str) and value.strip():
                    return value.strip()
        return self.text[:200].strip()


class Transport(Protocol):
    """Structural transport interface used by endpoint modules.

    Having a protocol here makes it easy to pass test doubles/mocks while
    keeping the production implementation (`HttpTransport`) concrete.
    Implementations return non-2xx responses instead of raising; only
    network-level failures raise `RidePoolTransportError`.
    """

    async def request(
        self,
        method: str,
        url: str,
        *,
        json_body: Any = None,
        form: Mapping[str, str] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> TransportResponse:
        ...


class HttpTransport:
    """aiohttp-backed transport with JSON decoding and error wrapping."""

    def __init__(self, http_session: aiohttp.ClientSession, *, timeout: float = 15.0) -> None:
        self._http = http_session
        self._timeout = aiohttp.ClientTimeout(total=timeout)

    async def request(
        self,
        method: str,
        url: str,
        *,
        json_body: Any = None,
        form: Mapping[str, str] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> TransportResponse:
        request_headers: dict[str, str] = {
            "accept": "application/json",
            "user-agent": USER_AGENT,
        }
        data: Any = None
        if json_body is not None:
            request_headers["content-type"] = "application/json"
            data = json.dumps(json_body, separators=(",", ":"))
        elif form is not None:
            # aiohttp url-encodes a plain dict body
            data = dict(form)
        if headers:
            request_headers.update(headers)

        _logger.debug("%s %s", method, url)

        try:
            async with self._http.request(
                method,
                url,
                data=data,
                headers=request_headers,
                timeout=self._timeout,
            ) as resp:
                status = resp.status
                text = await resp.text()
        except TimeoutError as exc:
            raise RidePoolTransportError(f"Request to {url} timed out", endpoint=url) from exc
        except aiohttp.ClientError as exc:
            raise RidePoolTransportError(f"Request to {url} failed: {exc}", endpoint=url) from exc

        _logger.debug("%s %s -> HTTP %d", method, url, status)

        if not text.strip():
            return TransportResponse(status=status, body=None, text="")
        try:
            body = json.loads(text)
        except json.JSONDecodeError:
            return TransportResponse(status=status, body=None, text=text)
        return TransportResponse(status=status, body=body, text=text)
