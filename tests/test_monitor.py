import io

import pytest
from PySide6.QtCore import QEventLoop, QTimer

from conftest import append
from error_rate_monitor.collectors.log_tailer import LogTailer
from error_rate_monitor.models.config import MonitorConfig
from error_rate_monitor.monitor import ErrorRateMonitor
from error_rate_monitor.services.alert_service import AlertService


@pytest.fixture
def make_monitor(qapp, log_path):
    opened = []

    def _make(**kwargs):
        cfg = MonitorConfig(path=str(log_path), watch_changes=False, **kwargs)
        tailer = LogTailer(log_path)
        tailer.open()
        opened.append(tailer)
        out = io.StringIO()
        mon = ErrorRateMonitor(cfg, tailer, notifier=AlertService(out))
        events = {"detected": [], "reset": [], "alert": []}
        mon.errorDetected.connect(events["detected"].append)
        mon.windowReset.connect(events["reset"].append)
        mon.alertRaised.connect(events["alert"].append)
        return mon, out, events

    yield _make
    for t in opened:
        t.close()


def test_three_errors_raise_one_alert(make_monitor, log_path):
    mon, out, events = make_monitor()
    append(log_path, "ERROR foo\nstatus=500\nerror BAR\n")
    assert mon.poll() == 3
    assert len(events["alert"]) == 1
    assert events["alert"][0].count == 3
    assert mon.error_count == 0
    assert [e.count for e in events["detected"]] == [1, 2, 3]
    assert out.getvalue().count("ALERT: High error rate detected!") == 1


def test_window_reset_then_count_restarts(make_monitor, log_path):
    mon, out, events = make_monitor()
    append(log_path, "ERROR one\nERROR two\n")
    mon.poll()
    mon.on_window_elapsed()
    assert "--- Window reset: cleared 2 errors ---" in out.getvalue()
    assert mon.error_count == 0

    append(log_path, "ERROR three\n")
    mon.poll()
    assert events["detected"][-1].count == 1
    assert events["alert"] == []


def test_quiet_window_prints_nothing(make_monitor):
    mon, out, events = make_monitor()
    for _ in range(3):
        mon.poll()
        mon.on_window_elapsed()
    assert out.getvalue() == ""
    assert events["reset"] == []


def test_lowercase_and_superstring_markers_count(make_monitor, log_path):
    mon, out, events = make_monitor()
    append(log_path, "an error here\ncode 500X\nall good\n")
    mon.poll()
    assert [e.line for e in events["detected"]] == ["AN ERROR HERE", "CODE 500X"]
    assert mon.error_count == 2


def test_lines_before_start_are_ignored(qapp, tmp_path):
    p = tmp_path / "access.log"
    p.write_text("ERROR a\nERROR b\nERROR c\n", encoding="utf-8")
    with LogTailer(p) as tailer:
        mon = ErrorRateMonitor(MonitorConfig(path=str(p), watch_changes=False), tailer, notifier=AlertService(io.StringIO()))
        assert mon.poll() == 0
        assert mon.error_count == 0


def test_poll_reads_at_most_max_lines(make_monitor, log_path):
    mon, out, events = make_monitor(max_lines_per_poll=2, threshold=10)
    append(log_path, "ERROR 1\nERROR 2\nERROR 3\n")
    assert mon.poll() == 2
    assert mon.error_count == 2
    assert mon.poll() == 1
    assert mon.error_count == 3


def test_custom_threshold_and_markers(make_monitor, log_path):
    mon, out, events = make_monitor(threshold=2, markers=("TIMEOUT",))
    append(log_path, "ERROR ignored\nread timeout\nconnect TIMEOUT\n")
    mon.poll()
    assert len(events["alert"]) == 1
    assert events["alert"][0].count == 2


def test_start_and_stop(qapp, log_path):
    cfg = MonitorConfig(path=str(log_path))
    with LogTailer(log_path) as tailer:
        mon = ErrorRateMonitor(cfg, tailer, notifier=AlertService(io.StringIO()))
        mon.start()
        assert mon.is_running
        mon.stop()
        assert not mon.is_running


def run_loop(ms):
    loop = QEventLoop()
    QTimer.singleShot(ms, loop.quit)
    loop.exec()


def test_window_timer_clears_count_in_event_loop(qapp, log_path):
    cfg = MonitorConfig(path=str(log_path), window_s=0.5, poll_interval_s=0.05, watch_changes=False)
    with LogTailer(log_path) as tailer:
        out = io.StringIO()
        mon = ErrorRateMonitor(cfg, tailer, notifier=AlertService(out))
        detected, resets = [], []
        mon.errorDetected.connect(detected.append)
        mon.windowReset.connect(resets.append)

        mon.start()
        QTimer.singleShot(50, lambda: append(log_path, "ERROR one\nERROR two\n"))
        QTimer.singleShot(650, lambda: append(log_path, "ERROR three\n"))
        run_loop(850)
        mon.stop()

    assert [r.cleared for r in resets] == [2]
    assert [d.count for d in detected] == [1, 2, 1]
    assert "--- Window reset: cleared 2 errors ---" in out.getvalue()


def test_capped_burst_reschedules_until_drained(qapp, log_path):
    cfg = MonitorConfig(
        path=str(log_path),
        threshold=10,
        poll_interval_s=60,
        max_lines_per_poll=2,
        watch_changes=False,
    )
    with LogTailer(log_path) as tailer:
        mon = ErrorRateMonitor(cfg, tailer, notifier=AlertService(io.StringIO()))
        append(log_path, "ERROR 1\nERROR 2\nERROR 3\nERROR 4\nERROR 5\n")
        assert mon.poll() == 2
        run_loop(200)
        assert mon.error_count == 5


def test_file_change_reads_and_rearms_watch(qapp, log_path):
    cfg = MonitorConfig(path=str(log_path), poll_interval_s=60)
    with LogTailer(log_path) as tailer:
        mon = ErrorRateMonitor(cfg, tailer, notifier=AlertService(io.StringIO()))
        mon.start()
        try:
            watcher = mon._watcher
            assert str(log_path) in watcher.files()

            watcher.removePath(str(log_path))
            append(log_path, "ERROR via notification\n")
            mon._on_file_changed(str(log_path))

            assert mon.error_count == 1
            assert str(log_path) in watcher.files()
        finally:
            mon.stop()


def test_sub_millisecond_intervals_never_become_zero(qapp, log_path):
    cfg = MonitorConfig(path=str(log_path), window_s=0.0004, poll_interval_s=0.0004, watch_changes=False)
    with LogTailer(log_path) as tailer:
        mon = ErrorRateMonitor(cfg, tailer, notifier=AlertService(io.StringIO()))
        assert mon._window_timer.interval() == 1
        assert mon._poll_timer.interval() == 1


def test_poll_after_tailer_closed_is_a_no_op(qapp, log_path):
    tailer = LogTailer(log_path)
    tailer.open()
    mon = ErrorRateMonitor(MonitorConfig(path=str(log_path), watch_changes=False), tailer, notifier=AlertService(io.StringIO()))
    tailer.close()
    assert mon.poll() == 0
