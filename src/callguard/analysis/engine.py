"""One-shot transcript analysis: rule engine plus optional AI classifier.

The rule engine always runs (~0ms) and doubles as the fallback result.
When an :class:`AIClassifier` is configured its result is preferred;
typed gateway failures either propagate or degrade to the rule result,
depending on the caller's fallback policy.
"""

from __future__ import annotations

import time

from callguard.analysis.classifier import (
    AIClassifier,
    ClassifierError,
    QuotaExceeded,
    RateLimited,
    UpstreamUnavailable,
)
from callguard.analysis.guidance import GuidanceProvider, default_guidance
from callguard.analysis.models import AnalysisResult
from callguard.analysis.rules import analyze_rules
from callguard.config import Settings, get_settings
from callguard.logging import get_logger

log = get_logger("callguard.analysis.engine")


class TranscriptAnalyzer:
    """Run the analysis pipeline over a single transcript snapshot."""

    def __init__(
        self,
        *,
        classifier: AIClassifier | None = None,
        guidance: GuidanceProvider = default_guidance,
        fallback_on_unavailable: bool = True,
    ) -> None:
        self._classifier = classifier
        self._guidance = guidance
        self._fallback_on_unavailable = fallback_on_unavailable

    @property
    def ai_enabled(self) -> bool:
        return self._classifier is not None

    @property
    def guidance(self) -> GuidanceProvider:
        return self._guidance

    async def analyze(
        self,
        transcript: str,
        language: str = "en",
        *,
        fallback_on_error: bool = False,
    ) -> AnalysisResult:
        """Analyse a transcript.

        Args:
            transcript: Snapshot of the transcript text.
            language: Guidance language code.
            fallback_on_error: Degrade every typed gateway failure to the
                rule result instead of raising.

        Returns:
            A normalized :class:`AnalysisResult`.

        Raises:
            RateLimited: Gateway returned 429 and ``fallback_on_error`` is off.
            QuotaExceeded: Gateway returned 402 and ``fallback_on_error`` is off.
            UpstreamUnavailable: Gateway unreachable, and neither
                ``fallback_on_error`` nor the analyzer's
                ``fallback_on_unavailable`` is set.
        """
        start = time.perf_counter()
        rule_result = analyze_rules(transcript, language, self._guidance)

        if self._classifier is None:
            log.debug(
                "rule_analysis_complete",
                risk_level=rule_result.risk_level.value,
                risk_score=rule_result.risk_score,
            )
            return rule_result

        try:
            result = await self._classifier.classify(transcript, language)
        except (RateLimited, QuotaExceeded) as e:
            if not fallback_on_error:
                raise
            return self._fallback(rule_result, e)
        except UpstreamUnavailable as e:
            if not (fallback_on_error or self._fallback_on_unavailable):
                raise
            return self._fallback(rule_result, e)

        log.info(
            "ai_analysis_complete",
            risk_level=result.risk_level.value,
            risk_score=result.risk_score,
            processing_time_ms=round((time.perf_counter() - start) * 1000, 1),
        )
        return result

    @staticmethod
    def _fallback(rule_result: AnalysisResult, error: ClassifierError) -> AnalysisResult:
        log.warning(
            "ai_analysis_fallback_to_rules",
            error_kind=type(error).__name__,
            error=str(error),
            risk_level=rule_result.risk_level.value,
        )
        return rule_result

    async def close(self) -> None:
        """Release the classifier's HTTP client."""
        if self._classifier is not None:
            await self._classifier.close()


def build_analyzer(settings: Settings | None = None) -> TranscriptAnalyzer:
    """Create an analyzer from settings; AI is used only when a key is set."""
    resolved = settings or get_settings()
    classifier = AIClassifier(resolved) if resolved.ai_enabled else None
    log.info("analyzer_initialized", ai_enabled=classifier is not None)
    return TranscriptAnalyzer(
        classifier=classifier,
        fallback_on_unavailable=resolved.analysis_rule_fallback,
    )
