"""CLI for CallGuard."""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path

import click

from callguard.analysis.classifier import ClassifierError
from callguard.analysis.engine import build_analyzer
from callguard.analysis.models import AnalysisResult
from callguard.config import get_settings
from callguard.logging import setup_logging
from callguard.monitor.capture import ManualTranscriptCapture
from callguard.monitor.history import CallRecord
from callguard.monitor.orchestrator import AnalysisOrchestrator
from callguard.monitor.session import MonitorConfig


def _echo_result(result: AnalysisResult, as_json: bool) -> None:
    if as_json:
        click.echo(json.dumps(result.to_dict(), ensure_ascii=False))
        return
    click.echo(f"Risk: {result.risk_level.value.upper()} ({result.risk_score}%)")
    detected = [i.id.value for i in result.detected_indicators]
    click.echo(f"  Indicators: {', '.join(detected) if detected else 'none'}")
    for line in result.guidance:
        click.echo(f"  {line}")


class _CollectedHistory:
    def __init__(self) -> None:
        self.records: list[CallRecord] = []

    def record(self, call: CallRecord) -> None:
        self.records.append(call)


@click.group()
def main() -> None:
    """CallGuard: real-time voice-scam risk analysis."""


@main.command()
@click.argument("transcript", required=False)
@click.option(
    "--file",
    "path",
    type=click.Path(exists=True, dir_okay=False),
    help="Read transcript from a file",
)
@click.option("--language", "-l", default=None, help="Guidance language (en, hi, ta)")
@click.option("--json", "as_json", is_flag=True, help="Print the raw JSON result")
def analyze(transcript: str | None, path: str | None, language: str | None, as_json: bool) -> None:
    """Analyse a transcript once and print the risk assessment."""
    if path:
        transcript = Path(path).read_text(encoding="utf-8")
    if not transcript or not transcript.strip():
        click.echo("Error: No transcript provided", err=True)
        sys.exit(2)

    setup_logging(stream=sys.stderr)
    settings = get_settings()
    analyzer = build_analyzer(settings)

    async def _run() -> AnalysisResult:
        try:
            return await analyzer.analyze(transcript, language or settings.default_language)
        finally:
            await analyzer.close()

    try:
        result = asyncio.run(_run())
    except ClassifierError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    _echo_result(result, as_json)


@main.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.option("--delay", default=0.5, show_default=True, help="Seconds between transcript lines")
@click.option("--language", "-l", default=None, help="Guidance language (en, hi, ta)")
@click.option("--json", "as_json", is_flag=True, help="Print raw JSON results")
def replay(path: str, delay: float, language: str | None, as_json: bool) -> None:
    """Replay a transcript file line by line through the live monitor."""
    lines = [ln for ln in Path(path).read_text(encoding="utf-8").splitlines() if ln.strip()]

    setup_logging(stream=sys.stderr)
    settings = get_settings()
    analyzer = build_analyzer(settings)
    history = _CollectedHistory()
    orchestrator = AnalysisOrchestrator(
        analyzer,
        config=MonitorConfig.from_settings(settings),
        language=language or settings.default_language,
        history_sink=history,
    )
    capture = ManualTranscriptCapture()
    orchestrator.attach(capture)
    orchestrator.subscribe(lambda result: _echo_result(result, as_json))

    async def _run() -> None:
        await orchestrator.start()
        capture.start()
        for line in lines:
            capture.append(line)
            await asyncio.sleep(delay)
        capture.stop()
        await orchestrator.close()
        await analyzer.close()

    asyncio.run(_run())

    for record in history.records:
        click.echo(
            f"Call finished: {record.duration}s, {record.risk_level.value} "
            f"({record.risk_score}%), {len(record.indicators)} indicator(s) detected"
        )


@main.command()
@click.option("--host", default=None, help="Bind address (default from API_HOST)")
@click.option("--port", default=None, type=int, help="Port (default from API_PORT)")
def serve(host: str | None, port: int | None) -> None:
    """Run the analysis HTTP API."""
    from callguard.api.server import main as server_main

    server_main(host=host, port=port)


if __name__ == "__main__":
    main()
