"""Health check endpoint for the analysis API."""

from aiohttp import web

from callguard import __version__


async def handle_health(request: web.Request) -> web.Response:
    """GET /health: liveness check."""
    return web.json_response(
        {
            "status": "healthy",
            "version": __version__,
            "ai_enabled": request.app["analyzer"].ai_enabled,
        }
    )
