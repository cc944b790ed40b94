from __future__ import annotations

from collections.abc import Iterable

from error_rate_monitor.models.config import DEFAULT_MARKERS


def normalize(line: str) -> str:
    return line.strip().upper()


def is_error_line(line: str, markers: Iterable[str] = DEFAULT_MARKERS) -> bool:
    """True if the trimmed, upper-cased line contains any marker."""
    clean = normalize(line)
    return any(m.upper() in clean for m in markers)


class ErrorClassifier:
    def __init__(self, markers: Iterable[str] | None = None) -> None:
        pats: list[str] = []
        for m in markers if markers is not None else DEFAULT_MARKERS:
            m = m.strip()
            if not m:
                continue
            pats.append(m.upper())
        self.markers: tuple[str, ...] = tuple(pats)

    def normalize(self, line: str) -> str:
        return normalize(line)

    def matches(self, line: str) -> bool:
        return is_error_line(line, self.markers)
