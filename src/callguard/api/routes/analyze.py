"""Transcript analysis endpoint.

The analyzer is stored on the app as ``app["analyzer"]``. Upstream rate
limit and quota failures are surfaced to the client; gateway outages
degrade to the rule engine result unless fallback is disabled.
"""

from __future__ import annotations

from typing import Any

from aiohttp import web

from callguard.analysis.classifier import ClassifierError, QuotaExceeded, RateLimited
from callguard.analysis.engine import TranscriptAnalyzer
from callguard.logging import get_logger

log = get_logger("callguard.api.routes.analyze")

NO_TRANSCRIPT = "No transcript provided"
RATE_LIMITED = "Rate limit exceeded. Please try again in a moment."
QUOTA_EXCEEDED = "Usage limit reached. Please check your account."


def _error(message: str, status: int) -> web.Response:
    return web.json_response({"error": message}, status=status)


async def handle_analyze(request: web.Request) -> web.Response:
    """POST /analyze: score a transcript.

    Body: ``{"transcript": str, "language": str (optional, default "en")}``.
    """
    analyzer: TranscriptAnalyzer = request.app["analyzer"]
    default_language: str = request.app.get("default_language", "en")

    try:
        data: Any = await request.json()
    except ValueError:
        return _error(NO_TRANSCRIPT, 400)
    if not isinstance(data, dict):
        return _error(NO_TRANSCRIPT, 400)

    transcript = data.get("transcript")
    if not isinstance(transcript, str) or not transcript.strip():
        return _error(NO_TRANSCRIPT, 400)

    language = data.get("language") or default_language
    if not isinstance(language, str):
        language = default_language

    log.info("analyze_request", length=len(transcript), language=language)

    try:
        result = await analyzer.analyze(transcript, language)
    except RateLimited:
        return _error(RATE_LIMITED, 429)
    except QuotaExceeded:
        return _error(QUOTA_EXCEEDED, 402)
    except ClassifierError as e:
        log.error("analyze_upstream_failed", error=str(e))
        return _error(str(e), 500)

    return web.json_response(result.to_dict())
