"""Transcript capture collaborators.

The orchestrator only needs "the current full text" plus a notification
when it changes. Speech engines, manual entry and uploaded-audio
transcription all fit behind :class:`SpeechCapability`; a platform with
no speech support gets :class:`NullSpeechCapability` instead of runtime
type probing.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Protocol

from callguard.logging import get_logger

log = get_logger("callguard.monitor.capture")

ResultCallback = Callable[[str], None]
ErrorCallback = Callable[[Exception], None]


class TranscriptCapture(Protocol):
    """Read access to an append-only transcript."""

    @property
    def text(self) -> str: ...

    def on_append(self, callback: ResultCallback) -> None: ...


class SpeechCapability(Protocol):
    """A source of transcript text that may not be available."""

    def is_supported(self) -> bool: ...

    def start(self) -> None: ...

    def stop(self) -> None: ...

    def on_result(self, callback: ResultCallback) -> None: ...

    def on_error(self, callback: ErrorCallback) -> None: ...


class NullSpeechCapability:
    """Capability for platforms without speech recognition. Never emits."""

    def is_supported(self) -> bool:
        return False

    def start(self) -> None:
        log.debug("speech_capability_unsupported")

    def stop(self) -> None:
        pass

    def on_result(self, callback: ResultCallback) -> None:
        pass

    def on_error(self, callback: ErrorCallback) -> None:
        pass


class ManualTranscriptCapture:
    """In-memory append-only transcript fed by :meth:`append`.

    Used for typed-in transcripts and for replaying a transcript file
    through the live orchestrator. Listeners receive the full text after
    every append.
    """

    def __init__(self, separator: str = " ") -> None:
        self._separator = separator
        self._text = ""
        self._running = False
        self._result_callbacks: list[ResultCallback] = []
        self._error_callbacks: list[ErrorCallback] = []

    @property
    def text(self) -> str:
        return self._text

    @property
    def is_running(self) -> bool:
        return self._running

    def is_supported(self) -> bool:
        return True

    def start(self) -> None:
        self._running = True

    def stop(self) -> None:
        self._running = False

    def on_append(self, callback: ResultCallback) -> None:
        self._result_callbacks.append(callback)

    on_result = on_append

    def on_error(self, callback: ErrorCallback) -> None:
        self._error_callbacks.append(callback)

    def append(self, chunk: str) -> str:
        """Append a chunk and notify listeners. Returns the full text."""
        chunk = chunk.strip()
        if not chunk:
            return self._text
        self._text = f"{self._text}{self._separator}{chunk}" if self._text else chunk
        for callback in list(self._result_callbacks):
            try:
                callback(self._text)
            except Exception as e:
                log.warning("transcript_listener_failed", error=str(e))
                for error_callback in list(self._error_callbacks):
                    error_callback(e)
        return self._text

    def clear(self) -> None:
        self._text = ""
