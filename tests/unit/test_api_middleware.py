"""Tests for the analysis API middleware."""

from __future__ import annotations

import pytest
from aiohttp import web
from aiohttp.test_utils import TestClient, TestServer

from callguard.api.middleware import (
    CORS_HEADERS,
    create_cors_middleware,
    create_error_middleware,
)


def _make_app(allowed_origins: list[str] | None = None) -> web.Application:
    app = web.Application(
        middlewares=[create_cors_middleware(allowed_origins), create_error_middleware()]
    )

    async def hello(request: web.Request) -> web.Response:
        return web.json_response({"ok": True})

    async def explode(request: web.Request) -> web.Response:
        raise RuntimeError("kaboom")

    async def silent(request: web.Request) -> web.Response:
        raise RuntimeError()

    async def teapot(request: web.Request) -> web.Response:
        raise web.HTTPBadRequest(text="nope")

    app.router.add_get("/hello", hello)
    app.router.add_post("/hello", hello)
    app.router.add_get("/explode", explode)
    app.router.add_get("/silent", silent)
    app.router.add_get("/bad", teapot)
    return app


class TestCORSMiddleware:
    """Tests for CORS middleware using aiohttp TestClient."""

    @pytest.mark.asyncio
    async def test_preflight_returns_200_empty(self):
        """OPTIONS is answered directly with 200 and an empty body."""
        async with TestClient(TestServer(_make_app())) as client:
            resp = await client.options("/hello")
            assert resp.status == 200
            assert await resp.text() == ""
            for name, value in CORS_HEADERS.items():
                assert resp.headers[name] == value

    @pytest.mark.asyncio
    async def test_preflight_on_unrouted_method(self):
        """OPTIONS works even where no OPTIONS route exists."""
        async with TestClient(TestServer(_make_app())) as client:
            resp = await client.options("/explode")
            assert resp.status == 200

    @pytest.mark.asyncio
    async def test_headers_on_normal_response(self):
        async with TestClient(TestServer(_make_app())) as client:
            resp = await client.get("/hello")
            assert resp.status == 200
            assert resp.headers["Access-Control-Allow-Origin"] == "*"
            assert resp.headers["Access-Control-Allow-Methods"] == "POST, GET, OPTIONS"

    @pytest.mark.asyncio
    async def test_headers_on_http_exception(self):
        async with TestClient(TestServer(_make_app())) as client:
            resp = await client.get("/bad")
            assert resp.status == 400
            assert resp.headers["Access-Control-Allow-Origin"] == "*"

    @pytest.mark.asyncio
    async def test_headers_on_not_found(self):
        async with TestClient(TestServer(_make_app())) as client:
            resp = await client.get("/missing")
            assert resp.status == 404
            assert resp.headers["Access-Control-Allow-Origin"] == "*"

    @pytest.mark.asyncio
    async def test_allowed_origin_echoed(self):
        app = _make_app(["https://app.example.com"])
        async with TestClient(TestServer(app)) as client:
            resp = await client.get("/hello", headers={"Origin": "https://app.example.com"})
            assert resp.headers["Access-Control-Allow-Origin"] == "https://app.example.com"

    @pytest.mark.asyncio
    async def test_unknown_origin_gets_no_headers(self):
        app = _make_app(["https://app.example.com"])
        async with TestClient(TestServer(app)) as client:
            resp = await client.get("/hello", headers={"Origin": "https://evil.example.com"})
            assert resp.status == 200
            assert "Access-Control-Allow-Origin" not in resp.headers


class TestErrorMiddleware:
    @pytest.mark.asyncio
    async def test_unexpected_exception_becomes_500(self):
        async with TestClient(TestServer(_make_app())) as client:
            resp = await client.get("/explode")
            assert resp.status == 500
            assert await resp.json() == {"error": "kaboom"}
            assert resp.headers["Access-Control-Allow-Origin"] == "*"

    @pytest.mark.asyncio
    async def test_empty_message_uses_unknown_error(self):
        async with TestClient(TestServer(_make_app())) as client:
            resp = await client.get("/silent")
            assert resp.status == 500
            assert await resp.json() == {"error": "Unknown error"}
