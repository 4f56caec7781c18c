"""Pytest fixtures for CallGuard tests."""

import json
import os
from collections.abc import Callable
from typing import Any

import httpx
import pytest


@pytest.fixture(scope="session", autouse=True)
def setup_test_environment():
    """Keep tests independent of any local .env / AI key."""
    os.environ["AI_API_KEY"] = ""
    os.environ.setdefault("ENVIRONMENT", "test")
    os.environ.setdefault("LOG_TO_FILE", "false")

    from callguard.config import get_settings

    get_settings.cache_clear()

    yield

    get_settings.cache_clear()


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Clear settings cache before each test."""
    from callguard.config import get_settings

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def ai_settings():
    """Settings with an AI gateway key configured."""
    from callguard.config import Settings

    return Settings(
        ai_api_key="test-gateway-key",
        ai_gateway_url="https://gateway.test/v1/chat/completions",
        ai_model="test-model",
        environment="test",
    )


def _completion_body(content: Any) -> dict[str, Any]:
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


@pytest.fixture
def gateway_client() -> Callable[..., httpx.AsyncClient]:
    """Factory for an httpx client answering every request with a fixed response.

    ``content`` is wrapped in a chat-completion envelope; ``json_body``
    and ``text`` replace the whole body; ``exc`` is raised by the
    transport. Sent requests are appended to ``requests`` when given.
    """

    def _make(
        status: int = 200,
        content: Any = None,
        *,
        json_body: Any = None,
        text: str | None = None,
        exc: Exception | None = None,
        requests: list[httpx.Request] | None = None,
    ) -> httpx.AsyncClient:
        def handler(request: httpx.Request) -> httpx.Response:
            if requests is not None:
                requests.append(request)
            if exc is not None:
                raise exc
            if text is not None:
                return httpx.Response(status, text=text)
            body = json_body if json_body is not None else _completion_body(content)
            return httpx.Response(status, content=json.dumps(body).encode())

        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    return _make
