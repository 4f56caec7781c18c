"""Cancellable event-loop timers used by the analysis orchestrator.

Callbacks are plain synchronous functions run on the event loop. A
callback that needs to do async work must spawn its own task, so that
cancelling a timer never cancels work the timer already started.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable

from callguard.logging import get_logger

log = get_logger("callguard.monitor.timers")

Callback = Callable[[], None]


class ScheduledCall:
    """Cancellation token for a single-shot or recurring callback."""

    def __init__(self, name: str = "") -> None:
        self.name = name
        self.fire_count = 0
        self._handle: asyncio.TimerHandle | None = None
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def active(self) -> bool:
        """True while a future firing is still scheduled."""
        return not self._cancelled and self._handle is not None

    def cancel(self) -> None:
        """Cancel any future firing. Idempotent."""
        self._cancelled = True
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _run(self, callback: Callback) -> None:
        self.fire_count += 1
        try:
            callback()
        except Exception:
            log.exception("scheduled_callback_failed", timer=self.name)


def schedule_once(delay: float, callback: Callback, *, name: str = "") -> ScheduledCall:
    """Run ``callback`` once after ``delay`` seconds."""
    loop = asyncio.get_running_loop()
    call = ScheduledCall(name)

    def _fire() -> None:
        call._handle = None
        if not call.cancelled:
            call._run(callback)

    call._handle = loop.call_later(delay, _fire)
    return call


def schedule_every(period: float, callback: Callback, *, name: str = "") -> ScheduledCall:
    """Run ``callback`` every ``period`` seconds until cancelled.

    The next firing is armed before the callback runs, so a failing
    callback never stops the recurrence.
    """
    loop = asyncio.get_running_loop()
    call = ScheduledCall(name)

    def _fire() -> None:
        if call.cancelled:
            return
        call._handle = loop.call_later(period, _fire)
        call._run(callback)

    call._handle = loop.call_later(period, _fire)
    return call


class Debouncer:
    """Collapse bursts of triggers into one firing after a quiet window.

    Each :meth:`trigger` resets the window: only the last trigger inside
    ``delay`` seconds fires.
    """

    def __init__(self, delay: float, callback: Callback, *, name: str = "debounce") -> None:
        self._delay = delay
        self._callback = callback
        self._name = name
        self._pending: ScheduledCall | None = None

    @property
    def pending(self) -> bool:
        return self._pending is not None and self._pending.active

    def trigger(self) -> None:
        """(Re)arm the timer, discarding any earlier pending firing."""
        if self._pending is not None:
            self._pending.cancel()
        self._pending = schedule_once(self._delay, self._fire, name=self._name)

    def cancel(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    def _fire(self) -> None:
        self._pending = None
        self._callback()
