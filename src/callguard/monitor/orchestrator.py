"""Live analysis orchestrator.

Decides *when* to analyse a growing transcript:

1. A single-shot warm-up check shortly after :meth:`start`
2. A recurring check every ``interval_seconds``
3. A debounced fast-path check after transcript updates

Each check dispatches only when the transcript is long enough and has
grown since the last pass, and never while another pass is in flight
(the trigger is dropped, not queued). Results are published in dispatch
start order; late results from a superseded dispatch or a stopped session
are discarded.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from datetime import UTC, datetime

from callguard.analysis.engine import TranscriptAnalyzer
from callguard.analysis.guidance import GuidanceProvider
from callguard.analysis.models import AnalysisResult, RiskLevel, normalize_result
from callguard.logging import get_logger
from callguard.monitor.capture import SpeechCapability
from callguard.monitor.history import HistorySink, build_call_record
from callguard.monitor.session import MonitorConfig, Session, TriggerPolicy
from callguard.monitor.timers import Debouncer, schedule_every, schedule_once

log = get_logger("callguard.monitor.orchestrator")

ResultListener = Callable[[AnalysisResult], None]


class AnalysisOrchestrator:
    """Own a monitoring session and publish the latest analysis result."""

    def __init__(
        self,
        analyzer: TranscriptAnalyzer,
        *,
        config: MonitorConfig | None = None,
        guidance: GuidanceProvider | None = None,
        language: str = "en",
        history_sink: HistorySink | None = None,
    ) -> None:
        self._analyzer = analyzer
        self._config = config or MonitorConfig()
        self._policy = TriggerPolicy(
            min_length=self._config.min_length,
            fast_path_min_length=self._config.fast_path_min_length,
        )
        self._guidance = guidance or analyzer.guidance
        self._language = language
        self._history_sink = history_sink
        self._session: Session | None = None
        self._result: AnalysisResult | None = None
        self._listeners: list[ResultListener] = []
        self._tasks: set[asyncio.Task[None]] = set()

        log.info(
            "orchestrator_initialized",
            ai_enabled=analyzer.ai_enabled,
            min_length=self._config.min_length,
            interval=self._config.interval_seconds,
        )

    # ------------------------------------------------------------------
    # Read-only state
    # ------------------------------------------------------------------

    @property
    def current_result(self) -> AnalysisResult | None:
        return self._result

    @property
    def session(self) -> Session | None:
        return self._session

    @property
    def is_monitoring(self) -> bool:
        return self._session is not None

    @property
    def is_analyzing(self) -> bool:
        return self._session is not None and self._session.in_flight

    @property
    def policy(self) -> TriggerPolicy:
        return self._policy

    def subscribe(self, listener: ResultListener) -> Callable[[], None]:
        """Register a listener for published results. Returns an unsubscribe."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def attach(self, capture: SpeechCapability) -> bool:
        """Feed a capture source's results into :meth:`update_transcript`.

        Returns:
            False if the capability is unsupported (nothing is wired).
        """
        if not capture.is_supported():
            log.warning("capture_unsupported", capture=type(capture).__name__)
            return False
        capture.on_result(self.update_transcript)
        capture.on_error(lambda e: log.warning("capture_error", error=str(e)))
        return True

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self, initial_transcript: str = "", language: str | None = None) -> None:
        """Begin monitoring: publish a neutral baseline and arm the timers."""
        if self._session is not None:
            log.warning("orchestrator_already_monitoring", epoch=self._session.epoch)
            return

        session = Session(language=language or self._language, transcript=initial_transcript)
        self._session = session
        self._publish(self._baseline(session.language))

        session.warmup = schedule_once(
            self._config.warmup_seconds, self._trigger_check, name="warmup"
        )
        session.recurring = schedule_every(
            self._config.interval_seconds, self._trigger_check, name="interval"
        )
        session.debouncer = Debouncer(self._config.debounce_seconds, self._trigger_check)
        log.info("monitoring_started", epoch=session.epoch, language=session.language)

    async def stop(self) -> AnalysisResult | None:
        """Stop monitoring.

        Cancels every timer, runs one final pass over the full transcript
        (if long enough), records the call and returns the final result.
        A pass still in flight is not aborted; its result is discarded.
        """
        session = self._session
        if session is None:
            return self._result

        session.cancel_timers()
        transcript = session.transcript

        if len(transcript) >= self._config.min_length:
            log.info("final_analysis_started", epoch=session.epoch, length=len(transcript))
            # Runs even with a pass in flight; the older pass becomes stale
            await self._dispatch(session, transcript, self._claim(session))

        session.active = False
        self._session = None

        if self._history_sink is not None and self._result is not None:
            record = build_call_record(
                self._result, started_at=session.started_at, transcript=transcript
            )
            try:
                self._history_sink.record(record)
            except Exception:
                log.exception("history_record_failed", epoch=session.epoch)

        session.transcript = ""
        session.last_analyzed_length = 0
        log.info("monitoring_stopped", epoch=session.epoch, dispatches=session.dispatch_seq)
        return self._result

    async def close(self) -> None:
        """Stop monitoring and wait for outstanding passes to settle."""
        await self.stop()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    # ------------------------------------------------------------------
    # Triggers
    # ------------------------------------------------------------------

    def update_transcript(self, transcript: str) -> None:
        """Record the capture's current full text; arm the fast path."""
        session = self._session
        if session is None:
            return
        session.transcript = transcript
        if self._policy.should_arm_debounce(transcript) and session.debouncer is not None:
            session.debouncer.trigger()

    def _trigger_check(self) -> None:
        session = self._session
        if session is None:
            return
        snapshot = session.transcript
        if not self._policy.should_dispatch(
            len(snapshot), session.last_analyzed_length, session.in_flight
        ):
            if session.in_flight:
                log.debug("trigger_dropped_in_flight", epoch=session.epoch)
            return

        task = asyncio.create_task(self._dispatch(session, snapshot, self._claim(session)))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def trigger_now(self) -> None:
        """Run a trigger check immediately and wait for its pass, if any."""
        before = set(self._tasks)
        self._trigger_check()
        started = self._tasks - before
        if started:
            await asyncio.gather(*started)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    @staticmethod
    def _claim(session: Session) -> int:
        """Mark a pass in flight and take its sequence number.

        Done synchronously, before any task is created, so a second trigger
        in the same loop tick already sees the pass in flight.
        """
        session.in_flight = True
        return session.next_dispatch()

    async def _dispatch(self, session: Session, snapshot: str, seq: int) -> None:
        log.debug("analysis_dispatched", epoch=session.epoch, seq=seq, length=len(snapshot))
        try:
            result = await self._analyzer.analyze(
                snapshot, session.language, fallback_on_error=True
            )
        except Exception:
            log.exception("analysis_failed", epoch=session.epoch, seq=seq)
            return
        finally:
            if session.is_latest(seq):
                session.in_flight = False

        if not session.is_latest(seq):
            log.info("stale_result_discarded", epoch=session.epoch, seq=seq)
            return

        session.last_analyzed_length = len(snapshot)
        self._publish(result)

    def _publish(self, result: AnalysisResult) -> None:
        self._result = result
        log.info(
            "analysis_published",
            risk_level=result.risk_level.value,
            risk_score=result.risk_score,
        )
        for listener in list(self._listeners):
            try:
                listener(result)
            except Exception as e:
                log.warning("result_listener_failed", error=str(e))

    def _baseline(self, language: str) -> AnalysisResult:
        lines = self._guidance.guidance_for(RiskLevel.LOW, language)
        return normalize_result(
            risk_level=RiskLevel.LOW,
            risk_score=0,
            indicators=[],
            guidance=lines,
            fallback_guidance=lines,
            timestamp=datetime.now(UTC),
        )
