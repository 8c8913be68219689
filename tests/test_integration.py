"""End-to-end scenarios: setup, emit, alerts, rotation and restart."""

import re
import threading
from datetime import datetime, timedelta

from applog.config import RESTART_MARKER, Config, RotationPolicy
from applog.levels import Severity
from applog.logger import Logger
from applog.viewer import LogFilter, load_log_lines

LINE_RE = re.compile(r"^\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}\.\d{3} \[(Debug|Info|Warning|Error)\] .+$")


class Clock:
    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now


def make_logger(**config):
    return Logger(Config(app_identity="com.example.Demo", **config))


def test_boot_ok_scenario(tmp_path):
    log = make_logger()
    log.setup(min_level=Severity.INFO, log_dir=str(tmp_path))
    alerts = log.subscribe()

    log.emit("boot ok", Severity.INFO, "main", "app.py", 1)
    log.file_sink.close()

    assert "boot ok" in log.log_file.read_text()
    assert alerts.drain() == []


def test_disk_full_scenario(tmp_path):
    log = make_logger()
    log.setup(min_level=Severity.INFO, log_dir=str(tmp_path))
    alerts = log.subscribe()

    log.emit("disk full", Severity.ERROR, "save", "store.py", 88)
    log.file_sink.close()

    assert log.log_file.read_text().splitlines()[-1].endswith("[Error] disk full")
    published = alerts.drain()
    assert len(published) == 1
    assert published[0].level is Severity.ERROR
    assert published[0].message == "disk full"


def test_restart_appends_with_marker(tmp_path):
    clock = Clock(datetime(2025, 1, 15, 12, 0, 0))
    first = make_logger()
    first.setup(log_dir=str(tmp_path), time_func=clock)
    first.emit("before restart", Severity.INFO)
    first.file_sink.close()

    clock.now += timedelta(minutes=5)
    second = make_logger()
    second.setup(log_dir=str(tmp_path), time_func=clock)
    second.emit("after restart", Severity.INFO)
    second.file_sink.close()

    lines = (tmp_path / "Demo.log").read_text().splitlines()
    marker = lines.index(RESTART_MARKER)
    assert any(line.endswith("before restart") for line in lines[:marker])
    assert lines[-1].endswith("after restart")
    assert second.file_sink.archived_files() == []


def test_rotation_and_retention_through_logger(tmp_path):
    clock = Clock(datetime(2025, 1, 15, 12, 0, 0))
    log = make_logger(rotation=RotationPolicy(max_log_files=3, max_time_interval=3600))
    log.setup(log_dir=str(tmp_path), time_func=clock)

    for hour in range(6):
        log.emit(f"hour {hour}", Severity.INFO)
        clock.now += timedelta(hours=1)
    log.file_sink.close()

    files = sorted(p.name for p in tmp_path.iterdir())
    assert len(files) == 3
    assert log.log_file.read_text().splitlines() == ["2025-01-15 17:00:00.000 [Info] hour 5"]


def test_concurrent_emits_produce_complete_lines(tmp_path):
    log = make_logger()
    log.setup(min_level=Severity.INFO, log_dir=str(tmp_path))
    num_threads = 8
    per_thread = 50

    def worker(thread_id):
        for i in range(per_thread):
            log.emit(f"worker-{thread_id}-entry-{i}", Severity.INFO)

    threads = [threading.Thread(target=worker, args=(t,)) for t in range(num_threads)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    log.file_sink.close()

    lines = [l for l in log.log_file.read_text().splitlines() if "worker-" in l]
    assert len(lines) == num_threads * per_thread
    for line in lines:
        assert LINE_RE.match(line), line
        assert re.search(r"\[Info\] worker-\d+-entry-\d+$", line)


def test_viewer_reads_what_logger_wrote(tmp_path):
    log = make_logger()
    log.setup(log_dir=str(tmp_path))
    log.emit("slow query", Severity.WARNING)
    log.emit("all good", Severity.INFO)
    log.file_sink.close()

    lines = load_log_lines(str(log.log_file), LogFilter.PREFIX, "slow")
    assert [l.color for l in lines] == ["yellow"]
