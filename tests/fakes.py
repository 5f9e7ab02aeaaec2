"""Fakes shared by the test suite."""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import parse_qs, unquote, urlsplit

import jwt
from cryptography.hazmat.primitives.asymmetric import rsa
from jwt.algorithms import RSAAlgorithm

from pyridepool._transport import TransportResponse
from pyridepool.exceptions import IdentityError, NoActiveSessionError, RidePoolTransportError
from pyridepool.identity import IdentitySession

API = "https://api.example.test"
AUTH_DOMAIN = "ridepool.auth.us-east-2.amazoncognito.com"


@dataclass
class TokenSigner:
    """Mints RS256 id tokens and serves the matching JWKS."""

    kid: str = "test-key-1"
    private_key: rsa.RSAPrivateKey = field(
        default_factory=lambda: rsa.generate_private_key(public_exponent=65537, key_size=2048)
    )

    def jwks(self) -> dict[str, Any]:
        jwk = json.loads(RSAAlgorithm.to_jwk(self.private_key.public_key()))
        jwk.update({"kid": self.kid, "alg": "RS256", "use": "sig"})
        return {"keys": [jwk]}

    def sign(self, claims: Mapping[str, Any], *, kid: str | None = None) -> str:
        return jwt.encode(dict(claims), self.private_key, algorithm="RS256", headers={"kid": kid or self.kid})


@dataclass
class FakeIdentity:
    """In-process stand-in for the identity provider."""

    session: IdentitySession | None = None
    fail_sign_out: bool = False
    fail_lookup: bool = False
    sign_in_requests: list[str] = field(default_factory=list)
    lookups: int = 0

    async def begin_federated_sign_in(self, provider: str = "Google") -> str:
        self.sign_in_requests.append(provider)
        return f"https://{AUTH_DOMAIN}/oauth2/authorize?identity_provider={provider}"

    async def sign_out(self) -> None:
        self.session = None
        if self.fail_sign_out:
            raise IdentityError("revoke failed")

    async def get_current_session(self) -> IdentitySession:
        self.lookups += 1
        if self.fail_lookup:
            raise RidePoolTransportError("identity provider unreachable")
        if self.session is None:
            raise NoActiveSessionError("nobody signed in")
        return self.session

    def sign_in_as(self, email: str | None, user_id: str = "user-1") -> None:
        claims: dict[str, Any] = {"sub": user_id}
        if email is not None:
            claims["email"] = email
        self.session = IdentitySession(user_id=user_id, claims=claims)


@dataclass
class FakeBackend:
    """Profile REST API (and optionally Hosted UI) served from memory."""

    profiles: dict[str, dict[str, Any]] = field(default_factory=dict)
    calls: list[tuple[str, str]] = field(default_factory=list)
    bodies: list[Any] = field(default_factory=list)
    fail_status: dict[str, int] = field(default_factory=dict)
    network_down: set[str] = field(default_factory=set)
    omit_echo: bool = False
    signer: TokenSigner | None = None
    token_claims: dict[str, Any] = field(default_factory=dict)
    revoke_status: int = 200
    issued_codes: set[str] = field(default_factory=set)

    def count(self, method: str) -> int:
        return sum(1 for m, _url in self.calls if m == method)

    async def request(
        self,
        method: str,
        url: str,
        *,
        json_body: Any = None,
        form: Mapping[str, str] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> TransportResponse:
        self.calls.append((method, url))
        self.bodies.append(json_body if json_body is not None else form)
        if method in self.network_down:
            raise RidePoolTransportError(f"Request to {url} failed: connection refused", endpoint=url)
        if method in self.fail_status:
            status = self.fail_status[method]
            return TransportResponse(status=status, body={"error": "backend exploded"}, text="")

        parts = urlsplit(url)
        if url.startswith(API):
            return self._users(method, parts.path, json_body)
        if parts.path.endswith("/.well-known/jwks.json") and self.signer is not None:
            return TransportResponse(status=200, body=self.signer.jwks())
        if parts.path == "/oauth2/token":
            return self._token(dict(form or {}))
        if parts.path == "/oauth2/revoke":
            return TransportResponse(status=self.revoke_status, body=None)
        raise AssertionError(f"Unexpected request in fake backend: {method} {url}")

    def _users(self, method: str, path: str, body: Any) -> TransportResponse:
        if method == "GET":
            key = unquote(path.rsplit("/", 1)[-1])
            if key not in self.profiles:
                return TransportResponse(status=404, body={"error": "User not found"})
            return TransportResponse(status=200, body=dict(self.profiles[key]))
        if method in ("POST", "PUT"):
            stored = dict(body)
            self.profiles[stored["email"]] = stored
            status = 201 if method == "POST" else 200
            if self.omit_echo:
                return TransportResponse(status=status, body={"message": "ok"})
            return TransportResponse(status=status, body={"message": "ok", "user": stored})
        if method == "DELETE":
            key = unquote(path.rsplit("/", 1)[-1])
            self.profiles.pop(key, None)
            return TransportResponse(status=204, body=None)
        raise AssertionError(f"Unexpected method {method}")

    def _token(self, form: dict[str, str]) -> TransportResponse:
        assert self.signer is not None
        grant = form.get("grant_type")
        if grant == "authorization_code":
            if form.get("code") not in self.issued_codes or not form.get("code_verifier"):
                return TransportResponse(status=400, body={"error": "invalid_grant"})
            self.issued_codes.discard(form["code"])
        elif grant != "refresh_token":
            return TransportResponse(status=400, body={"error": "unsupported_grant_type"})
        body = {
            "id_token": self.signer.sign(self.token_claims),
            "access_token": "access-token",
            "expires_in": 3600,
            "token_type": "Bearer",
        }
        if grant == "authorization_code":
            body["refresh_token"] = "refresh-token"
        return TransportResponse(status=200, body=body)


def query_of(url: str) -> dict[str, str]:
    return {key: values[0] for key, values in parse_qs(urlsplit(url).query).items()}
