from __future__ import annotations

import pytest

from pyridepool.config import OAuthSettings, RidePoolConfig

from .fakes import API, AUTH_DOMAIN, FakeBackend, FakeIdentity, TokenSigner


@pytest.fixture
def config() -> RidePoolConfig:
    return RidePoolConfig(
        region="us-east-2",
        user_pool_id="us-east-2_TESTPOOL",
        user_pool_client_id="client-123",
        api_endpoint=API,
        oauth=OAuthSettings(domain=AUTH_DOMAIN),
    )


@pytest.fixture
def identity() -> FakeIdentity:
    return FakeIdentity()


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def signer() -> TokenSigner:
    return TokenSigner()
