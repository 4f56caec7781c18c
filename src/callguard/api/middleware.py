"""Middleware for the analysis API server."""

from __future__ import annotations

from typing import Any

from aiohttp import web

from callguard.logging import get_logger

log = get_logger("callguard.api.middleware")

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
    "Access-Control-Allow-Methods": "POST, GET, OPTIONS",
}


def _cors_headers(request: web.Request, allowed_origins: list[str] | None) -> dict[str, str]:
    if not allowed_origins or "*" in allowed_origins:
        return dict(CORS_HEADERS)
    origin = request.headers.get("Origin", "")
    if origin not in allowed_origins:
        return {}
    return {**CORS_HEADERS, "Access-Control-Allow-Origin": origin}


def create_cors_middleware(allowed_origins: list[str] | None = None) -> Any:
    """Create permissive CORS middleware.

    Preflight ``OPTIONS`` requests are answered directly with ``200`` and
    an empty body. Every response carries the CORS headers.

    Args:
        allowed_origins: Origins to echo back, or None / ``["*"]`` for any.
    """

    @web.middleware
    async def cors_middleware(request: web.Request, handler: Any) -> web.StreamResponse:
        headers = _cors_headers(request, allowed_origins)

        if request.method == "OPTIONS":
            return web.Response(status=200, headers=headers)

        try:
            response: web.StreamResponse = await handler(request)
        except web.HTTPException as exc:
            exc.headers.update(headers)
            raise

        response.headers.update(headers)
        return response

    return cors_middleware


def create_error_middleware() -> Any:
    """Turn unexpected handler exceptions into ``500 {"error": message}``."""

    @web.middleware
    async def error_middleware(request: web.Request, handler: Any) -> web.StreamResponse:
        try:
            return await handler(request)  # type: ignore[no-any-return]
        except web.HTTPException:
            raise
        except Exception as e:
            log.exception("unhandled_request_error", path=request.path)
            return web.json_response({"error": str(e) or "Unknown error"}, status=500)

    return error_middleware
