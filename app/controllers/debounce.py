"""
Debouncer - coalesce bursts of calls into one deferred callback.

Wraps a single-shot timer. Calling ``trigger()`` again before the timer
fires restarts it; only the last burst runs the callback. The timer is
created lazily by ``timer_factory`` (default: ``PyQt6.QtCore.QTimer``),
so controllers stay importable without a Qt event loop and tests can
pass a fake timer.
"""

import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)


def qt_timer_factory():
    """Create a QTimer. Imported lazily so non-GUI callers never load Qt."""
    from PyQt6.QtCore import QTimer

    return QTimer()


class Debouncer:
    """Single-shot timer that restarts on every trigger."""

    def __init__(self, delay_ms: int, callback: Callable[[], None],
                 timer_factory: Optional[Callable[[], object]] = None):
        self.delay_ms = delay_ms
        self._callback = callback
        self._timer_factory = timer_factory or qt_timer_factory
        self._timer = None

    def _ensure_timer(self):
        if self._timer is None:
            self._timer = self._timer_factory()
            self._timer.setSingleShot(True)
            self._timer.timeout.connect(self._fire)
        return self._timer

    def trigger(self) -> None:
        """(Re)start the countdown."""
        timer = self._ensure_timer()
        timer.stop()
        timer.start(self.delay_ms)

    def cancel(self) -> None:
        if self._timer is not None:
            self._timer.stop()

    def is_pending(self) -> bool:
        return self._timer is not None and bool(self._timer.isActive())

    def flush(self) -> None:
        """Run the callback now if a trigger is pending."""
        if self.is_pending():
            self._timer.stop()
            self._fire()

    def _fire(self) -> None:
        logger.debug("Debouncer fired after %d ms", self.delay_ms)
        self._callback()
