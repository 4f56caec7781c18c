"""Live call monitoring: sessions, timers and the analysis orchestrator.

Public API
----------
- :class:`AnalysisOrchestrator` - schedules passes over a growing transcript
- :class:`MonitorConfig`, :class:`TriggerPolicy` - thresholds and timing
- :class:`ManualTranscriptCapture`, :class:`NullSpeechCapability` - capture sources
- :class:`CallRecord`, :func:`build_call_record` - completed-call summaries
"""

from callguard.monitor.capture import (
    ManualTranscriptCapture,
    NullSpeechCapability,
    SpeechCapability,
    TranscriptCapture,
)
from callguard.monitor.history import CallRecord, HistorySink, build_call_record
from callguard.monitor.orchestrator import AnalysisOrchestrator
from callguard.monitor.session import MonitorConfig, Session, TriggerPolicy
from callguard.monitor.timers import Debouncer, ScheduledCall, schedule_every, schedule_once

__all__ = [
    "AnalysisOrchestrator",
    "CallRecord",
    "Debouncer",
    "HistorySink",
    "ManualTranscriptCapture",
    "MonitorConfig",
    "NullSpeechCapability",
    "ScheduledCall",
    "Session",
    "SpeechCapability",
    "TranscriptCapture",
    "TriggerPolicy",
    "build_call_record",
    "schedule_every",
    "schedule_once",
]
