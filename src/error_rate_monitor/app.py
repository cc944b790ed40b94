from __future__ import annotations

import argparse
import faulthandler
import logging
import signal
import sys
from pathlib import Path
from typing import Any

from PySide6.QtCore import QCoreApplication

from error_rate_monitor.collectors.log_tailer import LogTailer, ensure_log_file_exists
from error_rate_monitor.models.config import MonitorConfig
from error_rate_monitor.monitor import ErrorRateMonitor
from error_rate_monitor.services.alert_service import AlertService
from error_rate_monitor.services.config_service import ConfigPaths, ConfigService

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="error-rate-monitor",
        description="Tail a log file and alert when error lines cross a threshold within a window.",
    )
    p.add_argument("--file", dest="path", help="log file to tail (default: access.log)")
    p.add_argument("--threshold", type=int, help="errors per window that raise an alert (default: 3)")
    p.add_argument("--window", dest="window_s", type=float, help="window length in seconds (default: 10)")
    p.add_argument("--poll-interval", dest="poll_interval_s", type=float, help="seconds between read attempts (default: 0.5)")
    p.add_argument(
        "--marker",
        dest="markers",
        action="append",
        help="substring marking an error line; repeatable (default: ERROR, 500)",
    )
    p.add_argument("--no-watch", dest="watch_changes", action="store_false", default=None, help="poll only, no change notifications")
    p.add_argument("--config", type=Path, help="JSON config file (default: $XDG_CONFIG_HOME/error_rate_monitor/config.json)")
    p.add_argument(
        "--write-config",
        action="store_true",
        help="save the effective settings to the config file and exit",
    )
    p.add_argument("-v", "--verbose", action="store_true", help="debug logging on stderr")
    return p.parse_args(argv)


def config_service_for(args: argparse.Namespace) -> ConfigService:
    return ConfigService(ConfigPaths(path=args.config)) if args.config else ConfigService()


def build_config(args: argparse.Namespace, service: ConfigService | None = None) -> MonitorConfig:
    """Defaults, then the JSON config file, then command-line flags."""
    if service is None:
        service = config_service_for(args)
    cfg = service.load_config()

    overrides: dict[str, Any] = {
        "path": args.path,
        "threshold": args.threshold,
        "window_s": args.window_s,
        "poll_interval_s": args.poll_interval_s,
        "markers": args.markers,
        "watch_changes": args.watch_changes,
    }
    return cfg.merged(overrides).validated()


def open_tailer(cfg: MonitorConfig) -> LogTailer:
    """Ensure the log exists and open it at end-of-file; exit(1) if it cannot be opened."""
    try:
        ensure_log_file_exists(cfg.path)
    except OSError as e:
        logger.warning("could not create %s: %s", cfg.path, e)

    tailer = LogTailer(cfg.path)
    try:
        tailer.open()
    except OSError as e:
        logger.critical("could not open log file %s: %s", cfg.path, e)
        raise SystemExit(1) from e
    return tailer


def _install_signal_handlers(app: QCoreApplication) -> None:
    def _quit(signum: int, _frame: object) -> None:
        logger.info("received %s, stopping", signal.Signals(signum).name)
        app.quit()

    signal.signal(signal.SIGINT, _quit)
    signal.signal(signal.SIGTERM, _quit)


def run(argv: list[str] | None = None) -> None:
    faulthandler.enable()
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    service = config_service_for(args)
    try:
        cfg = build_config(args, service)
    except ValueError as e:
        logger.critical("invalid configuration: %s", e)
        raise SystemExit(1) from e

    if args.write_config:
        service.save(cfg)
        logger.info("wrote configuration to %s", service.paths.path)
        raise SystemExit(0)

    tailer = open_tailer(cfg)
    with tailer:
        notifier = AlertService(max_line_length=cfg.max_line_length)
        notifier.announce(cfg)

        app = QCoreApplication.instance() or QCoreApplication(sys.argv[:1])
        app.setApplicationName("Error Rate Monitor")

        monitor = ErrorRateMonitor(cfg, tailer, notifier=notifier)
        _install_signal_handlers(app)
        monitor.start()
        code = app.exec()
        monitor.stop()
        logger.info("monitor stopped")

    raise SystemExit(code)
