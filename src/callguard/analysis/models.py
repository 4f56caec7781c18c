"""Data models for the scam analysis pipeline.

Every producer (rule engine, AI classifier, neutral fallback) hands its
raw output to :func:`normalize_result`, which enforces the result
invariants:

- ``risk_score`` is an integer clamped to ``[0, 100]``
- ``indicators`` holds each canonical :class:`IndicatorType` exactly once,
  in canonical order, backfilling missing entries as undetected
- a ``high`` risk level always carries a score of at least 75
- ``guidance`` is never empty
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any


class RiskLevel(StrEnum):
    """Coarse risk bucket."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class IndicatorType(StrEnum):
    """The seven canonical scam-signal categories (in canonical order)."""

    IMPERSONATION = "impersonation"
    URGENCY = "urgency"
    EMOTIONAL = "emotional"
    AUTHORITY = "authority"
    OTP_REQUEST = "otp_request"
    MONEY_REQUEST = "money_request"
    VOICE_PATTERN = "voice_pattern"


CANONICAL_INDICATORS: tuple[IndicatorType, ...] = tuple(IndicatorType)

HIGH_RISK_THRESHOLD = 50
MEDIUM_RISK_THRESHOLD = 25
HIGH_RISK_SCORE_FLOOR = 75
MAX_RISK_SCORE = 100


@dataclass(frozen=True)
class ScamIndicator:
    """A single indicator evaluated during an analysis pass."""

    id: IndicatorType
    detected: bool = False
    confidence: float = 0.0  # 0.0 - 1.0
    evidence: str | None = None

    @property
    def type(self) -> IndicatorType:
        return self.id

    def to_dict(self) -> dict[str, Any]:
        """Convert to the wire representation."""
        data: dict[str, Any] = {
            "id": self.id.value,
            "type": self.id.value,
            "detected": self.detected,
            "confidence": self.confidence,
        }
        if self.evidence:
            data["evidence"] = self.evidence
        return data


@dataclass(frozen=True)
class AnalysisResult:
    """Immutable outcome of one analysis pass."""

    risk_level: RiskLevel
    risk_score: int
    indicators: tuple[ScamIndicator, ...]
    guidance: tuple[str, ...]
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))
    transcript: str | None = None

    @property
    def detected_indicators(self) -> list[ScamIndicator]:
        """Indicators flagged as detected."""
        return [i for i in self.indicators if i.detected]

    def to_dict(self) -> dict[str, Any]:
        """Convert to the camelCase JSON shape served over HTTP."""
        data: dict[str, Any] = {
            "riskLevel": self.risk_level.value,
            "riskScore": self.risk_score,
            "indicators": [i.to_dict() for i in self.indicators],
            "guidance": list(self.guidance),
            "timestamp": self.timestamp.isoformat(),
        }
        if self.transcript is not None:
            data["transcript"] = self.transcript
        return data


def risk_level_for_score(raw_score: int) -> RiskLevel:
    """Bucket a pre-floor-correction raw score into a risk level."""
    if raw_score >= HIGH_RISK_THRESHOLD:
        return RiskLevel.HIGH
    if raw_score >= MEDIUM_RISK_THRESHOLD:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def clamp_score(score: float) -> int:
    """Round and clamp a score into ``[0, 100]``."""
    return max(0, min(MAX_RISK_SCORE, int(round(score))))


def backfill_indicators(indicators: Iterable[ScamIndicator]) -> tuple[ScamIndicator, ...]:
    """Return exactly one indicator per canonical id, in canonical order.

    The first occurrence of an id wins; missing ids are added as
    undetected with zero confidence.
    """
    by_id: dict[IndicatorType, ScamIndicator] = {}
    for indicator in indicators:
        if indicator.id in by_id:
            continue
        by_id[indicator.id] = ScamIndicator(
            id=indicator.id,
            detected=indicator.detected,
            confidence=min(1.0, max(0.0, float(indicator.confidence))),
            evidence=indicator.evidence or None,
        )
    return tuple(by_id.get(t, ScamIndicator(id=t)) for t in CANONICAL_INDICATORS)


def normalize_result(
    *,
    risk_level: RiskLevel,
    risk_score: float,
    indicators: Iterable[ScamIndicator],
    guidance: Sequence[str],
    fallback_guidance: Sequence[str] = (),
    transcript: str | None = None,
    timestamp: datetime | None = None,
) -> AnalysisResult:
    """Build an :class:`AnalysisResult` that satisfies every invariant.

    Args:
        risk_level: Level reported by the producer.
        risk_score: Raw score reported by the producer (any number).
        indicators: Producer indicators, possibly incomplete.
        guidance: Producer guidance lines, possibly empty.
        fallback_guidance: Used when ``guidance`` has no non-blank line.
        transcript: Optional transcript to echo back.
        timestamp: Result time; defaults to now (UTC).

    Returns:
        A normalized, immutable result.
    """
    score = clamp_score(risk_score)
    if risk_level == RiskLevel.HIGH:
        score = max(score, HIGH_RISK_SCORE_FLOOR)

    lines = tuple(g for g in guidance if g and g.strip())
    if not lines:
        lines = tuple(fallback_guidance) or ("Be cautious with this call.",)

    return AnalysisResult(
        risk_level=risk_level,
        risk_score=score,
        indicators=backfill_indicators(indicators),
        guidance=lines,
        timestamp=timestamp or datetime.now(UTC),
        transcript=transcript,
    )
