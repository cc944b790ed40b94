from __future__ import annotations

import sys
from typing import TextIO

from error_rate_monitor.models.config import MonitorConfig
from error_rate_monitor.models.events import AlertRaised, ErrorDetected, MonitorEvent, WindowReset

RULE = "#" * 45


class AlertService:
    """Writes human-readable status lines for monitor events."""

    def __init__(self, stream: TextIO | None = None, max_line_length: int = 2000) -> None:
        self._stream = stream
        self.max_line_length = int(max_line_length)

    @property
    def stream(self) -> TextIO:
        # Resolved late so redirected stdout (and pytest capture) is honoured.
        return self._stream if self._stream is not None else sys.stdout

    def banner(self, cfg: MonitorConfig) -> str:
        return (
            f"Log monitor started on {cfg.path}\n"
            f"Threshold: {cfg.threshold} errors | Window: {cfg.window_s:g}s\n"
        )

    def format(self, ev: MonitorEvent) -> str:
        if isinstance(ev, ErrorDetected):
            line = ev.line
            if len(line) > self.max_line_length:
                line = line[: self.max_line_length] + "…"
            return f"Detected error: {line} (total in window: {ev.count})\n"
        if isinstance(ev, WindowReset):
            return f"--- Window reset: cleared {ev.cleared} errors ---\n"
        if isinstance(ev, AlertRaised):
            return (
                "\n"
                f"{RULE}\n"
                "ALERT: High error rate detected!\n"
                f"Observed {ev.count} errors in the last window.\n"
                f"{RULE}\n"
                "\n"
            )
        raise TypeError(f"unsupported event: {ev!r}")

    def announce(self, cfg: MonitorConfig) -> None:
        self._write(self.banner(cfg))

    def publish(self, ev: MonitorEvent) -> None:
        self._write(self.format(ev))

    def _write(self, text: str) -> None:
        out = self.stream
        out.write(text)
        out.flush()
