"""Unit tests for analysis API server wiring and lifecycle."""

from __future__ import annotations

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from aiohttp.test_utils import TestClient, TestServer

from callguard.analysis.classifier import QuotaExceeded, RateLimited, UpstreamUnavailable
from callguard.analysis.engine import TranscriptAnalyzer
from callguard.analysis.models import RiskLevel, normalize_result
from callguard.api.server import AnalysisAPIServer, main, run_server


def _analyzer(**kwargs) -> MagicMock:
    analyzer = MagicMock(spec=TranscriptAnalyzer)
    analyzer.ai_enabled = True
    analyzer.analyze = AsyncMock(**kwargs)
    analyzer.close = AsyncMock()
    return analyzer


def _result():
    return normalize_result(
        risk_level=RiskLevel.MEDIUM, risk_score=30, indicators=[], guidance=["careful"]
    )


class TestAnalysisAPIServerCreateApp:
    """Tests for AnalysisAPIServer.create_app wiring."""

    def test_create_app_stores_analyzer(self) -> None:
        analyzer = _analyzer()
        app = AnalysisAPIServer(analyzer, default_language="ta").create_app()

        assert app["analyzer"] is analyzer
        assert app["default_language"] == "ta"
        # CORS + error handler
        assert len(app.middlewares) == 2

    def test_routes_registered(self) -> None:
        app = AnalysisAPIServer(_analyzer()).create_app()
        routes = {(r.method, r.resource.canonical) for r in app.router.routes()}
        assert ("POST", "/analyze") in routes
        assert ("GET", "/health") in routes

    @pytest.mark.asyncio
    async def test_cleanup_closes_analyzer(self) -> None:
        analyzer = _analyzer()
        app = AnalysisAPIServer(analyzer).create_app()
        async with TestClient(TestServer(app)):
            pass
        analyzer.close.assert_awaited_once()


class TestAnalyzeRoute:
    """POST /analyze request handling with a mocked analyzer."""

    @pytest.mark.asyncio
    async def test_success(self) -> None:
        analyzer = _analyzer(return_value=_result())
        app = AnalysisAPIServer(analyzer).create_app()
        async with TestClient(TestServer(app)) as client:
            resp = await client.post("/analyze", json={"transcript": "hello", "language": "hi"})
            assert resp.status == 200
            data = await resp.json()
        analyzer.analyze.assert_awaited_once_with("hello", "hi")
        assert data["riskLevel"] == "medium"
        assert data["riskScore"] == 30
        assert len(data["indicators"]) == 7
        assert data["guidance"] == ["careful"]
        assert "timestamp" in data

    @pytest.mark.asyncio
    async def test_language_defaults_to_app_setting(self) -> None:
        analyzer = _analyzer(return_value=_result())
        app = AnalysisAPIServer(analyzer, default_language="ta").create_app()
        async with TestClient(TestServer(app)) as client:
            await client.post("/analyze", json={"transcript": "hello"})
        analyzer.analyze.assert_awaited_once_with("hello", "ta")

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body",
        [
            {},
            {"transcript": ""},
            {"transcript": "   "},
            {"transcript": 42},
            {"transcript": None},
            ["transcript"],
        ],
    )
    async def test_missing_transcript_400(self, body) -> None:
        analyzer = _analyzer(return_value=_result())
        app = AnalysisAPIServer(analyzer).create_app()
        async with TestClient(TestServer(app)) as client:
            resp = await client.post("/analyze", json=body)
            assert resp.status == 400
            assert await resp.json() == {"error": "No transcript provided"}
        analyzer.analyze.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_non_json_body_400(self) -> None:
        app = AnalysisAPIServer(_analyzer()).create_app()
        async with TestClient(TestServer(app)) as client:
            resp = await client.post("/analyze", data="transcript=hello")
            assert resp.status == 400

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("error", "status", "message"),
        [
            (RateLimited(), 429, "Rate limit exceeded. Please try again in a moment."),
            (QuotaExceeded(), 402, "Usage limit reached. Please check your account."),
            (
                UpstreamUnavailable("AI gateway error: 503", status_code=503),
                500,
                "AI gateway error: 503",
            ),
        ],
    )
    async def test_classifier_errors_mapped(self, error, status, message) -> None:
        app = AnalysisAPIServer(_analyzer(side_effect=error)).create_app()
        async with TestClient(TestServer(app)) as client:
            resp = await client.post("/analyze", json={"transcript": "hello"})
            assert resp.status == status
            assert await resp.json() == {"error": message}
            assert resp.headers["Access-Control-Allow-Origin"] == "*"

    @pytest.mark.asyncio
    async def test_unexpected_error_500(self) -> None:
        app = AnalysisAPIServer(_analyzer(side_effect=RuntimeError("broken"))).create_app()
        async with TestClient(TestServer(app)) as client:
            resp = await client.post("/analyze", json={"transcript": "hello"})
            assert resp.status == 500
            assert await resp.json() == {"error": "broken"}


class TestHealthRoute:
    @pytest.mark.asyncio
    async def test_health(self) -> None:
        app = AnalysisAPIServer(_analyzer()).create_app()
        async with TestClient(TestServer(app)) as client:
            resp = await client.get("/health")
            assert resp.status == 200
            data = await resp.json()
        assert data["status"] == "healthy"
        assert data["ai_enabled"] is True
        assert "version" in data


class TestAnalysisAPIServerLifecycle:
    """Tests for start/stop lifecycle methods."""

    @pytest.mark.asyncio
    async def test_start_creates_runner_and_site(self) -> None:
        runner = AsyncMock()
        site = AsyncMock()

        with (
            patch("callguard.api.server.web.AppRunner", return_value=runner) as mock_runner_cls,
            patch("callguard.api.server.web.TCPSite", return_value=site) as mock_site_cls,
        ):
            server = AnalysisAPIServer(_analyzer(), host="127.0.0.1", port=9090)
            await server.start()

        mock_runner_cls.assert_called_once()
        runner.setup.assert_awaited_once()
        mock_site_cls.assert_called_once_with(runner, "127.0.0.1", 9090)
        site.start.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_stop_cleans_runner(self) -> None:
        runner = AsyncMock()
        server = AnalysisAPIServer(_analyzer())
        server._runner = runner

        await server.stop()

        runner.cleanup.assert_awaited_once()
        assert server._runner is None

    @pytest.mark.asyncio
    async def test_stop_is_noop_when_not_started(self) -> None:
        server = AnalysisAPIServer(_analyzer())
        await server.stop()
        assert server._runner is None


class TestRunServer:
    @pytest.mark.asyncio
    @patch("callguard.api.server.AnalysisAPIServer")
    async def test_run_server_lifecycle(self, mock_server_cls) -> None:
        analyzer = _analyzer()
        mock_server = AsyncMock()
        mock_server_cls.return_value = mock_server

        with patch("callguard.api.server.asyncio.sleep", side_effect=asyncio.CancelledError):
            await run_server(analyzer, "127.0.0.1", 9000, default_language="hi")

        mock_server_cls.assert_called_once_with(
            analyzer, host="127.0.0.1", port=9000, default_language="hi"
        )
        mock_server.start.assert_awaited_once()
        mock_server.stop.assert_awaited_once()


class TestMain:
    def _settings(self) -> SimpleNamespace:
        return SimpleNamespace(
            api_host="0.0.0.0",  # nosec B104
            api_port=8080,
            default_language="en",
        )

    def test_main_uses_settings(self) -> None:
        analyzer = _analyzer()
        with (
            patch("callguard.config.get_settings", return_value=self._settings()),
            patch("callguard.logging.setup_logging"),
            patch("callguard.api.server.build_analyzer", return_value=analyzer),
            patch("callguard.api.server.run_server", new_callable=AsyncMock) as mock_run_server,
        ):
            main()

        mock_run_server.assert_awaited_once_with(
            analyzer, "0.0.0.0", 8080, default_language="en"  # nosec B104
        )

    def test_main_overrides_host_and_port(self) -> None:
        with (
            patch("callguard.config.get_settings", return_value=self._settings()),
            patch("callguard.logging.setup_logging"),
            patch("callguard.api.server.build_analyzer", return_value=_analyzer()),
            patch("callguard.api.server.run_server", new_callable=AsyncMock) as mock_run_server,
        ):
            main(host="127.0.0.1", port=9999)

        args = mock_run_server.call_args.args
        assert args[1:] == ("127.0.0.1", 9999)

    def test_main_handles_keyboard_interrupt(self) -> None:
        def _raise_keyboard_interrupt(coro):
            coro.close()
            raise KeyboardInterrupt

        with (
            patch("callguard.config.get_settings", return_value=self._settings()),
            patch("callguard.logging.setup_logging"),
            patch("callguard.api.server.build_analyzer", return_value=_analyzer()),
            patch(
                "callguard.api.server.asyncio.run", side_effect=_raise_keyboard_interrupt
            ) as mock_run,
        ):
            main()
        mock_run.assert_called_once()
