"""Completed-call records handed to an external history sink.

Persistence is out of scope: the core only builds the record.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Protocol

from callguard.analysis.models import AnalysisResult, RiskLevel, ScamIndicator


@dataclass(frozen=True)
class CallRecord:
    """Summary of one monitored call."""

    started_at: datetime
    duration: int  # whole seconds
    risk_level: RiskLevel
    risk_score: int
    indicators: tuple[ScamIndicator, ...] = field(default_factory=tuple)
    transcript: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.started_at.isoformat(),
            "duration": self.duration,
            "riskLevel": self.risk_level.value,
            "riskScore": self.risk_score,
            "indicators": [i.to_dict() for i in self.indicators],
            "transcript": self.transcript,
        }


class HistorySink(Protocol):
    """Receives completed call records."""

    def record(self, call: CallRecord) -> None: ...


def build_call_record(
    result: AnalysisResult,
    *,
    started_at: datetime,
    ended_at: datetime | None = None,
    transcript: str = "",
) -> CallRecord:
    """Build a :class:`CallRecord` keeping only detected indicators."""
    ended_at = ended_at or datetime.now(UTC)
    duration = max(0, int((ended_at - started_at).total_seconds()))
    return CallRecord(
        started_at=started_at,
        duration=duration,
        risk_level=result.risk_level,
        risk_score=result.risk_score,
        indicators=tuple(result.detected_indicators),
        transcript=transcript,
    )
