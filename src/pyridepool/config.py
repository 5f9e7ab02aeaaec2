"""Client configuration for pyridepool."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from pyridepool.exceptions import RidePoolConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _env_list(value: str) -> tuple[str, ...]:
    return tuple(item for item in (part.strip() for part in value.replace(",", " ").split()) if item)


@dataclasses.dataclass(frozen=True)
class OAuthSettings:
    """Hosted UI (OAuth2) settings of the identity provider.

    These mirror the ``oauth`` block the web front-end hands to its
    identity SDK.
    """

    domain: str = ""
    scopes: tuple[str, ...] = ("email", "profile", "openid", "phone")
    redirect_sign_in: str = "http://localhost:5173/"
    redirect_sign_out: str = "http://localhost:5173/"
    response_type: str = "code"
    providers: tuple[str, ...] = ("Google",)

    @property
    def base_url(self) -> str:
        domain = self.domain.strip().rstrip("/")
        if domain.startswith(("http://", "https://")):
            return domain
        return f"https://{domain}"


@dataclasses.dataclass(frozen=True)
class RidePoolConfig:
    """Client configuration.

    Parameters
    ----------
    region : str
        AWS region of the user pool (e.g. ``"us-east-2"``).
    user_pool_id : str
        Cognito user pool id. Used to locate the JWKS and the token issuer.
    user_pool_client_id : str
        App client id registered with the user pool.
    api_endpoint : str
        Base URL of the profile REST API (no trailing slash needed).
    oauth : OAuthSettings
        Hosted UI domain, scopes, redirect URIs and providers.
    request_timeout : float
        Total timeout in seconds for each HTTP request.
    strict_responses : bool
        When ``True`` (default) a successful create/update must echo the
        stored profile as ``{"user": {...}}``; anything else is treated as
        an API error. When ``False`` a missing echo is replaced by the
        submitted fields merged with the session identity.
    verify_id_token : bool
        Verify the id token signature against the pool's JWKS before
        trusting its claims.
    """

    region: str
    user_pool_id: str
    user_pool_client_id: str
    api_endpoint: str
    oauth: OAuthSettings = dataclasses.field(default_factory=OAuthSettings)
    request_timeout: float = 15.0
    strict_responses: bool = True
    verify_id_token: bool = True

    def __post_init__(self) -> None:
        missing = [
            name
            for name in ("region", "user_pool_id", "user_pool_client_id", "api_endpoint")
            if not str(getattr(self, name) or "").strip()
        ]
        if missing:
            raise RidePoolConfigError(f"Missing required configuration: {', '.join(missing)}")
        if self.request_timeout <= 0:
            raise RidePoolConfigError("request_timeout must be positive")

    @property
    def api_base_url(self) -> str:
        return self.api_endpoint.rstrip("/")

    @property
    def issuer(self) -> str:
        """Expected ``iss`` claim of tokens minted by the user pool."""
        return f"https://cognito-idp.{self.region}.amazonaws.com/{self.user_pool_id}"

    @property
    def jwks_url(self) -> str:
        return f"{self.issuer}/.well-known/jwks.json"

    @classmethod
    def from_env(cls, **overrides: Any) -> RidePoolConfig:
        """Create configuration from environment variables.

        Reads ``RIDEPOOL_REGION``, ``RIDEPOOL_USER_POOL_ID``,
        ``RIDEPOOL_USER_POOL_CLIENT_ID``, ``RIDEPOOL_API_ENDPOINT`` and the
        optional ``RIDEPOOL_OAUTH_*`` variables. Explicit keyword arguments
        override environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        RidePoolConfig
            Populated configuration.

        Raises
        ------
        RidePoolConfigError
            If a required value is missing from both the environment and
            the overrides.
        """
        env = os.environ

        oauth_kwargs: dict[str, Any] = {}
        _ENV_OAUTH_MAP = {
            "RIDEPOOL_OAUTH_DOMAIN": "domain",
            "RIDEPOOL_OAUTH_REDIRECT_SIGN_IN": "redirect_sign_in",
            "RIDEPOOL_OAUTH_REDIRECT_SIGN_OUT": "redirect_sign_out",
            "RIDEPOOL_OAUTH_RESPONSE_TYPE": "response_type",
        }
        for env_key, field_name in _ENV_OAUTH_MAP.items():
            val = env.get(env_key)
            if val is not None:
                oauth_kwargs[field_name] = val

        scopes_env = env.get("RIDEPOOL_OAUTH_SCOPES")
        if scopes_env is not None:
            oauth_kwargs["scopes"] = _env_list(scopes_env)
        providers_env = env.get("RIDEPOOL_OAUTH_PROVIDERS")
        if providers_env is not None:
            oauth_kwargs["providers"] = _env_list(providers_env)

        oauth_overrides = overrides.pop("oauth", None)
        if isinstance(oauth_overrides, dict):
            oauth_kwargs.update(oauth_overrides)
        elif isinstance(oauth_overrides, OAuthSettings):
            oauth_kwargs = dataclasses.asdict(oauth_overrides)

        oauth = OAuthSettings(**oauth_kwargs) if oauth_kwargs else OAuthSettings()

        _ENV_CONFIG_MAP = {
            "RIDEPOOL_REGION": "region",
            "RIDEPOOL_USER_POOL_ID": "user_pool_id",
            "RIDEPOOL_USER_POOL_CLIENT_ID": "user_pool_client_id",
            "RIDEPOOL_API_ENDPOINT": "api_endpoint",
        }
        config_kwargs: dict[str, Any] = {"oauth": oauth}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        timeout_env = env.get("RIDEPOOL_REQUEST_TIMEOUT")
        if timeout_env is not None and "request_timeout" not in overrides:
            try:
                config_kwargs["request_timeout"] = float(timeout_env)
            except ValueError as exc:
                raise RidePoolConfigError(f"RIDEPOOL_REQUEST_TIMEOUT is not a number: {timeout_env!r}") from exc

        if "strict_responses" not in overrides:
            config_kwargs["strict_responses"] = _env_bool(env.get("RIDEPOOL_STRICT_RESPONSES"), True)
        if "verify_id_token" not in overrides:
            config_kwargs["verify_id_token"] = _env_bool(env.get("RIDEPOOL_VERIFY_ID_TOKEN"), True)

        config_kwargs.update(overrides)

        missing = [
            name
            for name in ("region", "user_pool_id", "user_pool_client_id", "api_endpoint")
            if name not in config_kwargs
        ]
        if missing:
            raise RidePoolConfigError(f"Missing required configuration: {', '.join(missing)}")

        return cls(**config_kwargs)
