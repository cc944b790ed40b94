from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Union


@dataclass(frozen=True)
class ErrorDetected:
    line: str
    count: int
    ts: datetime = field(default_factory=datetime.now)


@dataclass(frozen=True)
class WindowReset:
    cleared: int
    ts: datetime = field(default_factory=datetime.now)


@dataclass(frozen=True)
class AlertRaised:
    count: int
    ts: datetime = field(default_factory=datetime.now)


MonitorEvent = Union[ErrorDetected, WindowReset, AlertRaised]
