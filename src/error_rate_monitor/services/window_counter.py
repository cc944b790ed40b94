from __future__ import annotations

from error_rate_monitor.models.events import AlertRaised, ErrorDetected, MonitorEvent, WindowReset


class WindowCounter:
    """Error count over a fixed-period window.

    The count is cleared by the window timer (on_window_elapsed) and, independently,
    as soon as it reaches the threshold (on_match). This approximates a window by
    periodic reset; it is not a sliding window over error timestamps.
    """

    def __init__(self, threshold: int) -> None:
        if int(threshold) < 1:
            raise ValueError(f"threshold must be >= 1, got {threshold}")
        self.threshold = int(threshold)
        self._count = 0

    @property
    def count(self) -> int:
        return self._count

    def on_window_elapsed(self) -> WindowReset | None:
        if self._count <= 0:
            return None
        ev = WindowReset(cleared=self._count)
        self._count = 0
        return ev

    def on_match(self, line: str) -> list[MonitorEvent]:
        self._count += 1
        events: list[MonitorEvent] = [ErrorDetected(line=line, count=self._count)]
        if self._count >= self.threshold:
            events.append(AlertRaised(count=self._count))
            self._count = 0
        return events
