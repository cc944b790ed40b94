from __future__ import annotations

import logging
import os

from PySide6.QtCore import QFileSystemWatcher, QObject, QTimer, Signal

from error_rate_monitor.collectors.error_classifier import ErrorClassifier
from error_rate_monitor.collectors.log_tailer import LogTailer
from error_rate_monitor.models.config import MonitorConfig
from error_rate_monitor.models.events import AlertRaised, ErrorDetected, MonitorEvent, WindowReset
from error_rate_monitor.services.alert_service import AlertService
from error_rate_monitor.services.window_counter import WindowCounter

logger = logging.getLogger(__name__)


class ErrorRateMonitor(QObject):
    """Drives tailing, classification and window counting from the Qt event loop.

    Everything runs on the thread that owns this object. The window timer, the
    poll timer and file-change notifications are queued by Qt and handled one
    at a time, so the error count needs no locking.
    """

    errorDetected = Signal(object)
    windowReset = Signal(object)
    alertRaised = Signal(object)

    def __init__(
        self,
        cfg: MonitorConfig,
        tailer: LogTailer,
        notifier: AlertService | None = None,
        classifier: ErrorClassifier | None = None,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self.cfg = cfg
        self._tailer = tailer
        self._notifier = notifier or AlertService(max_line_length=cfg.max_line_length)
        self._classifier = classifier or ErrorClassifier(cfg.markers)
        self._counter = WindowCounter(cfg.threshold)

        self._window_timer = QTimer(self)
        self._window_timer.setInterval(max(1, round(cfg.window_s * 1000)))
        self._window_timer.timeout.connect(self.on_window_elapsed)  # type: ignore[arg-type]

        self._poll_timer = QTimer(self)
        self._poll_timer.setInterval(max(1, round(cfg.poll_interval_s * 1000)))
        self._poll_timer.timeout.connect(self.poll)  # type: ignore[arg-type]

        self._watcher: QFileSystemWatcher | None = None
        if cfg.watch_changes:
            self._watcher = QFileSystemWatcher(self)
            self._watcher.fileChanged.connect(self._on_file_changed)  # type: ignore[arg-type]

    @property
    def error_count(self) -> int:
        return self._counter.count

    @property
    def is_running(self) -> bool:
        return self._window_timer.isActive()

    def start(self) -> None:
        self._window_timer.start()
        self._poll_timer.start()
        if self._watcher is not None and not self._watcher.addPath(self._tailer.path):
            logger.warning("change notifications unavailable for %s; polling only", self._tailer.path)
        logger.debug(
            "monitor started: window=%ss poll=%ss watch=%s",
            self.cfg.window_s,
            self.cfg.poll_interval_s,
            self._watcher is not None,
        )

    def stop(self) -> None:
        self._window_timer.stop()
        self._poll_timer.stop()
        if self._watcher is not None and self._watcher.files():
            self._watcher.removePaths(self._watcher.files())

    def on_window_elapsed(self) -> None:
        ev = self._counter.on_window_elapsed()
        if ev is not None:
            self._emit(ev)

    def poll(self) -> int:
        """Consume up to max_lines_per_poll complete lines. Returns how many were read."""
        if not self._tailer.is_open:
            # A rescheduled burst can outlive the tailer it was reading.
            return 0
        lines = self._tailer.read_available(self.cfg.max_lines_per_poll)
        for line in lines:
            self.process_line(line)
        if len(lines) >= self.cfg.max_lines_per_poll:
            # More may be waiting; yield so a due window tick is handled first.
            QTimer.singleShot(0, self.poll)
        return len(lines)

    def process_line(self, line: str) -> bool:
        if not self._classifier.matches(line):
            return False
        for ev in self._counter.on_match(self._classifier.normalize(line)):
            self._emit(ev)
        return True

    def _emit(self, ev: MonitorEvent) -> None:
        self._notifier.publish(ev)
        if isinstance(ev, ErrorDetected):
            self.errorDetected.emit(ev)
        elif isinstance(ev, WindowReset):
            self.windowReset.emit(ev)
        elif isinstance(ev, AlertRaised):
            logger.debug("alert raised at %d errors", ev.count)
            self.alertRaised.emit(ev)

    def _on_file_changed(self, path: str) -> None:
        # Some platforms drop the watch after certain writes; re-arm it.
        if self._watcher is not None and path not in self._watcher.files() and os.path.exists(path):
            self._watcher.addPath(path)
        self.poll()
