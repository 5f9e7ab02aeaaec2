from __future__ import annotations

import time
from pathlib import Path
from typing import Any

import pytest

from pyridepool.client import RidePoolClient
from pyridepool.config import RidePoolConfig
from pyridepool.identity import FileTokenStore, HostedUIIdentityClient, MemoryTokenStore
from pyridepool.models.profile import CarpoolStatus
from pyridepool.state.events import ViewState

from .fakes import API, AUTH_DOMAIN, FakeBackend, TokenSigner, query_of

EMAIL = "parent@example.com"


def _hosted_backend(config: RidePoolConfig, signer: TokenSigner) -> FakeBackend:
    return FakeBackend(
        signer=signer,
        token_claims={
            "sub": "user-1",
            "email": EMAIL,
            "iss": config.issuer,
            "aud": config.user_pool_client_id,
            "token_use": "id",
            "exp": time.time() + 3600,
        },
    )


async def _sign_in(client: RidePoolClient, backend: FakeBackend, opened: list[str]) -> None:
    url = await client.begin_sign_in()
    assert url is not None
    assert opened == [url]
    backend.issued_codes.add("code-xyz")

    identity = client.identity
    assert isinstance(identity, HostedUIIdentityClient)
    await identity.complete_sign_in(f"http://localhost:5173/?code=code-xyz&state={query_of(url)['state']}")


@pytest.mark.e2e
@pytest.mark.asyncio
async def test_join_edit_leave_sign_out(config: RidePoolConfig, signer: TokenSigner) -> None:
    backend = _hosted_backend(config, signer)
    store = MemoryTokenStore()
    opened: list[str] = []

    async with RidePoolClient(config, transport=backend, token_store=store, opener=opened.append) as client:
        assert await client.evaluate_session() is ViewState.ANONYMOUS

        # "Join Now" hands off to the browser; nothing changes until the redirect comes back.
        await _sign_in(client, backend, opened)
        assert client.view is ViewState.ANONYMOUS

        assert await client.evaluate_session() is ViewState.AUTHENTICATED_UNREGISTERED
        assert client.session is not None
        assert client.session.email == EMAIL

        draft = client.open_registration_form()
        draft.update({"nickname": "Sam", "phone": "555-2222", "address": "2 Elm St", "numberOfSeats": "4"})
        assert await client.submit_registration() is ViewState.AUTHENTICATED_REGISTERED
        assert client.profile is not None
        assert client.profile.number_of_seats == 4
        assert backend.profiles[EMAIL]["userId"] == "user-1"

        client.open_edit_form().set("carpoolStatus", "offering")
        assert await client.submit_update() is ViewState.AUTHENTICATED_REGISTERED
        assert client.profile.carpool_status is CarpoolStatus.OFFERING
        assert client.profile.nickname == "Sam"

        client.request_deletion()
        assert await client.confirm_deletion() is ViewState.AUTHENTICATED_UNREGISTERED
        assert client.profile is None
        assert EMAIL not in backend.profiles

        assert await client.sign_out() is ViewState.ANONYMOUS
        assert client.error is None
        assert store.load_tokens() is None
        assert ("POST", f"https://{AUTH_DOMAIN}/oauth2/revoke") in backend.calls

        assert await client.evaluate_session() is ViewState.ANONYMOUS

    user_calls = [(method, url) for method, url in backend.calls if url.startswith(API)]
    assert user_calls == [
        ("GET", f"{API}/users/parent%40example.com"),
        ("POST", f"{API}/users"),
        ("PUT", f"{API}/users"),
        ("DELETE", f"{API}/users/parent%40example.com"),
    ]


@pytest.mark.e2e
@pytest.mark.asyncio
async def test_returning_user_resumes_from_token_file(
    config: RidePoolConfig, signer: TokenSigner, tmp_path: Path
) -> None:
    backend = _hosted_backend(config, signer)
    stored: dict[str, Any] = {
        "userId": "user-1",
        "email": EMAIL,
        "nickname": "Jo",
        "phone": "555-0000",
        "address": "9 Pine St",
        "numberOfKids": 2,
        "numberOfSeats": 3,
        "carpoolStatus": "matched",
    }
    backend.profiles[EMAIL] = stored
    path = tmp_path / "tokens.json"
    opened: list[str] = []

    async with RidePoolClient(config, transport=backend, token_store=FileTokenStore(path), opener=opened.append) as c:
        await _sign_in(c, backend, opened)

    # A second process picks the session up from the same file.
    async with RidePoolClient(config, transport=backend, token_store=FileTokenStore(path)) as client:
        assert await client.evaluate_session() is ViewState.AUTHENTICATED_REGISTERED
        assert client.profile is not None
        assert client.profile.carpool_status is CarpoolStatus.MATCHED
        assert client.profile.number_of_kids == 2
