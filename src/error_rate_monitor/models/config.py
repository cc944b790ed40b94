from __future__ import annotations

from dataclasses import dataclass, fields, replace
from typing import Any

DEFAULT_LOG_PATH = "access.log"
DEFAULT_MARKERS = ("ERROR", "500")
# QTimer resolution; shorter intervals would round down to 0 ms and spin.
MIN_INTERVAL_S = 0.001


@dataclass(frozen=True)
class MonitorConfig:
    """Monitoring parameters, loaded once at startup and immutable afterwards.

    path: log file to tail; created empty if missing.
    threshold: matches within one window that raise an alert.
    window_s: period of the window reset timer, in seconds.
    poll_interval_s: pause between read attempts when no line is available.
    markers: substrings that classify a line as an error (case-insensitive).
    max_lines_per_poll: lines consumed per read burst before yielding.
    max_line_length: lines longer than this are shortened in notices.
    watch_changes: also react to filesystem change notifications.
    """

    path: str = DEFAULT_LOG_PATH
    threshold: int = 3
    window_s: float = 10.0
    poll_interval_s: float = 0.5
    markers: tuple[str, ...] = DEFAULT_MARKERS
    max_lines_per_poll: int = 500
    max_line_length: int = 2000
    watch_changes: bool = True

    def merged(self, overrides: dict[str, Any]) -> MonitorConfig:
        known = {f.name for f in fields(self)}
        values: dict[str, Any] = {}
        for k, v in overrides.items():
            if k not in known or v is None:
                continue
            if k == "markers":
                v = tuple(str(m) for m in v)
            values[k] = v
        return replace(self, **values)

    def validated(self) -> MonitorConfig:
        if not isinstance(self.path, str) or not self.path.strip():
            raise ValueError(f"path must be a non-empty string, got {self.path!r}")
        threshold = _as_number(int, "threshold", self.threshold)
        if threshold < 1:
            raise ValueError(f"threshold must be >= 1, got {self.threshold}")
        window_s = _as_number(float, "window_s", self.window_s)
        if window_s < MIN_INTERVAL_S:
            raise ValueError(f"window_s must be >= {MIN_INTERVAL_S}, got {self.window_s}")
        poll_interval_s = _as_number(float, "poll_interval_s", self.poll_interval_s)
        if poll_interval_s < MIN_INTERVAL_S:
            raise ValueError(f"poll_interval_s must be >= {MIN_INTERVAL_S}, got {self.poll_interval_s}")
        if isinstance(self.markers, str) or not all(isinstance(m, str) for m in self.markers):
            raise ValueError(f"markers must be a list of strings, got {self.markers!r}")
        markers = tuple(m.strip() for m in self.markers if m.strip())
        if not markers:
            raise ValueError("at least one marker is required")
        max_lines_per_poll = _as_number(int, "max_lines_per_poll", self.max_lines_per_poll)
        if max_lines_per_poll < 1:
            raise ValueError(f"max_lines_per_poll must be >= 1, got {self.max_lines_per_poll}")
        max_line_length = _as_number(int, "max_line_length", self.max_line_length)
        if max_line_length < 1:
            raise ValueError(f"max_line_length must be >= 1, got {self.max_line_length}")
        if not isinstance(self.watch_changes, bool):
            raise ValueError(f"watch_changes must be true or false, got {self.watch_changes!r}")
        return replace(
            self,
            threshold=threshold,
            window_s=window_s,
            poll_interval_s=poll_interval_s,
            markers=markers,
            max_lines_per_poll=max_lines_per_poll,
            max_line_length=max_line_length,
        )


def _as_number(kind: type, name: str, value: Any) -> Any:
    if isinstance(value, bool):
        raise ValueError(f"{name} must be a number, got {value!r}")
    try:
        return kind(value)
    except (TypeError, ValueError) as e:
        raise ValueError(f"{name} must be a number, got {value!r}") from e
