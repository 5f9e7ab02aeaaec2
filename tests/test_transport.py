from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator

import aiohttp
import pytest
import pytest_asyncio
from aiohttp import test_utils, web

from pyridepool._transport import HttpTransport
from pyridepool.exceptions import RidePoolTransportError


async def _json(request: web.Request) -> web.Response:
    return web.json_response({"message": "ok", "user": {"email": "a@b.c"}}, status=201)


async def _echo(request: web.Request) -> web.Response:
    body = await request.text()
    return web.json_response(
        {
            "method": request.method,
            "contentType": request.content_type,
            "userAgent": request.headers.get("user-agent"),
            "body": body,
        }
    )


async def _form(request: web.Request) -> web.Response:
    data = await request.post()
    return web.json_response({key: str(value) for key, value in data.items()})


async def _bad_gateway(request: web.Request) -> web.Response:
    return web.Response(status=502, text="Bad Gateway")


async def _no_content(request: web.Request) -> web.Response:
    return web.Response(status=204)


async def _slow(request: web.Request) -> web.Response:
    await asyncio.sleep(0.5)
    return web.json_response({})


@pytest_asyncio.fixture
async def server() -> AsyncIterator[test_utils.TestServer]:
    app = web.Application()
    app.router.add_get("/json", _json)
    app.router.add_route("*", "/echo", _echo)
    app.router.add_post("/form", _form)
    app.router.add_get("/bad-gateway", _bad_gateway)
    app.router.add_delete("/no-content", _no_content)
    app.router.add_get("/slow", _slow)
    async with test_utils.TestServer(app) as test_server:
        yield test_server


@pytest.mark.asyncio
async def test_json_body_is_decoded(server: test_utils.TestServer) -> None:
    async with aiohttp.ClientSession() as http:
        response = await HttpTransport(http).request("GET", str(server.make_url("/json")))

    assert response.status == 201
    assert response.ok
    assert response.body == {"message": "ok", "user": {"email": "a@b.c"}}


@pytest.mark.asyncio
async def test_json_request_body_and_headers(server: test_utils.TestServer) -> None:
    async with aiohttp.ClientSession() as http:
        response = await HttpTransport(http).request(
            "PUT",
            str(server.make_url("/echo")),
            json_body={"nickname": "Sam", "numberOfSeats": 4},
        )

    assert response.body["method"] == "PUT"
    assert response.body["contentType"] == "application/json"
    assert response.body["userAgent"] == "pyridepool"
    assert response.body["body"] == '{"nickname":"Sam","numberOfSeats":4}'


@pytest.mark.asyncio
async def test_form_body_is_url_encoded(server: test_utils.TestServer) -> None:
    async with aiohttp.ClientSession() as http:
        response = await HttpTransport(http).request(
            "POST",
            str(server.make_url("/form")),
            form={"grant_type": "refresh_token", "client_id": "client-123"},
        )

    assert response.body == {"grant_type": "refresh_token", "client_id": "client-123"}


@pytest.mark.asyncio
async def test_non_json_body_keeps_text(server: test_utils.TestServer) -> None:
    async with aiohttp.ClientSession() as http:
        response = await HttpTransport(http).request("GET", str(server.make_url("/bad-gateway")))

    assert response.status == 502
    assert not response.ok
    assert response.body is None
    assert response.error_message() == "Bad Gateway"


@pytest.mark.asyncio
async def test_empty_body(server: test_utils.TestServer) -> None:
    async with aiohttp.ClientSession() as http:
        response = await HttpTransport(http).request("DELETE", str(server.make_url("/no-content")))

    assert response.status == 204
    assert response.body is None
    assert response.text == ""


@pytest.mark.asyncio
async def test_timeout_is_wrapped(server: test_utils.TestServer) -> None:
    url = str(server.make_url("/slow"))
    async with aiohttp.ClientSession() as http:
        with pytest.raises(RidePoolTransportError) as exc_info:
            await HttpTransport(http, timeout=0.05).request("GET", url)

    assert exc_info.value.endpoint == url


@pytest.mark.asyncio
async def test_connection_error_is_wrapped(unused_tcp_port: int) -> None:
    async with aiohttp.ClientSession() as http:
        with pytest.raises(RidePoolTransportError, match="failed"):
            await HttpTransport(http).request("GET", f"http://127.0.0.1:{unused_tcp_port}/users")
