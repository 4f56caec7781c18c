"""Monitoring session state and the dispatch trigger policy."""

from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from callguard.config import Settings
    from callguard.monitor.timers import Debouncer, ScheduledCall

_epochs = itertools.count(1)


@dataclass(frozen=True)
class MonitorConfig:
    """Timing and threshold configuration for live monitoring."""

    # Minimum transcript length before any pass is dispatched
    min_length: int = 15

    # Length (of the stripped transcript) that arms the debounce trigger
    fast_path_min_length: int = 10

    # Single-shot first check after start, then the recurring period
    warmup_seconds: float = 2.0
    interval_seconds: float = 3.0

    # Quiet window collapsing bursts of transcript updates
    debounce_seconds: float = 1.0

    @classmethod
    def from_settings(cls, settings: Settings) -> MonitorConfig:
        return cls(
            min_length=settings.monitor_min_length,
            fast_path_min_length=settings.monitor_fast_path_min_length,
            warmup_seconds=settings.monitor_warmup_seconds,
            interval_seconds=settings.monitor_interval_seconds,
            debounce_seconds=settings.monitor_debounce_seconds,
        )


@dataclass(frozen=True)
class TriggerPolicy:
    """When a trigger check may dispatch an analysis pass.

    Triggers arriving while a pass is in flight are dropped, not queued.
    """

    min_length: int = 15
    fast_path_min_length: int = 10

    def should_dispatch(self, length: int, last_analyzed_length: int, in_flight: bool) -> bool:
        if in_flight:
            return False
        return length >= self.min_length and length > last_analyzed_length

    def should_arm_debounce(self, transcript: str) -> bool:
        return len(transcript.strip()) >= self.fast_path_min_length


@dataclass
class Session:
    """State owned by the orchestrator for one monitoring session.

    ``epoch`` identifies the session; ``dispatch_seq`` numbers dispatches
    in start order. A finished dispatch may publish only if both still
    match the orchestrator's current session and latest dispatch.
    """

    language: str = "en"
    transcript: str = ""
    last_analyzed_length: int = 0
    in_flight: bool = False
    dispatch_seq: int = 0
    active: bool = True
    epoch: int = field(default_factory=lambda: next(_epochs))
    started_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    warmup: ScheduledCall | None = None
    recurring: ScheduledCall | None = None
    debouncer: Debouncer | None = None

    def next_dispatch(self) -> int:
        self.dispatch_seq += 1
        return self.dispatch_seq

    def is_latest(self, seq: int) -> bool:
        return self.active and seq == self.dispatch_seq

    def cancel_timers(self) -> None:
        """Cancel warm-up, recurring and debounce timers."""
        for call in (self.warmup, self.recurring):
            if call is not None:
                call.cancel()
        if self.debouncer is not None:
            self.debouncer.cancel()
        self.warmup = None
        self.recurring = None
        self.debouncer = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "epoch": self.epoch,
            "language": self.language,
            "transcript_length": len(self.transcript),
            "last_analyzed_length": self.last_analyzed_length,
            "in_flight": self.in_flight,
            "dispatch_seq": self.dispatch_seq,
            "active": self.active,
            "started_at": self.started_at.isoformat(),
        }
