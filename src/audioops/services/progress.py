"""Progress and log translation for engine runs."""

import math
from collections import deque
from typing import Callable, Deque, List, Optional
from audioops.core.models import ProgressEvent
from audioops.utils.validate import clamp_fraction

ProgressCallback = Callable[[ProgressEvent], None]


class ProgressTranslator:
    """
    Turns the engine's raw progress stream into percent events.

    Raw fractions are clamped to [0, 0.99] and rounded to an integer
    percent; only values above the last forwarded one reach the callback.
    The terminal 100 comes from complete(), never from the engine.
    """

    def __init__(self, callback: Optional[ProgressCallback] = None):
        self._callback = callback
        self._last = -1
        self._closed = False

    def feed(self, fraction: float) -> None:
        """Handle one raw progress value."""
        if self._closed or self._callback is None:
            return
        if math.isnan(fraction):
            return
        percent = int(clamp_fraction(fraction) * 100 + 0.5)
        if percent <= self._last:
            return
        self._last = percent
        self._callback(ProgressEvent(percent=percent))

    def complete(self) -> None:
        """Emit the terminal 100 (once) and stop forwarding."""
        if self._closed:
            return
        self._closed = True
        self._last = 100
        if self._callback is not None:
            self._callback(ProgressEvent(percent=100))

    def fail(self) -> None:
        """Stop forwarding without a terminal event."""
        self._closed = True

    @property
    def last_percent(self) -> int:
        """Last forwarded percent (-1 before the first event)."""
        return self._last


class EngineLogCollector:
    """Ring buffer of the most recent engine log lines."""

    def __init__(self, capacity: int = 50):
        self._lines: Deque[str] = deque(maxlen=capacity)

    def append(self, line: str) -> None:
        """Store one log line."""
        line = line.rstrip()
        if line:
            self._lines.append(line)

    def tail(self, count: int = 10) -> List[str]:
        """Get the last `count` lines, oldest first."""
        if count <= 0:
            return []
        return list(self._lines)[-count:]

    def __len__(self) -> int:
        return len(self._lines)
