"""Append-only file sink with time/size-based rotation and count-based retention."""

import logging
import os
import threading
from datetime import datetime
from pathlib import Path

from applog.config import FILE_SINK_DEFAULTS, RESTART_MARKER, RotationPolicy, SinkConfig
from applog.errors import WriteFailure
from applog.formatter import parse_line_timestamp
from applog.sinks import Sink

logger = logging.getLogger(__name__)

ARCHIVE_STAMP = "%Y%m%d_%H%M%S_%f"


def local_now() -> datetime:
    return datetime.now().astimezone()


def elapsed_seconds(later: datetime, earlier: datetime) -> float:
    """Real seconds between two instants. Naive values are taken as local time."""
    return (later.astimezone() - earlier.astimezone()).total_seconds()


def get_archived_files(log_dir: str, log_filename: str) -> list[str]:
    """List archived files sorted oldest-first (lexicographic on timestamp suffix)."""
    prefix = log_filename + "."
    archived = []
    for name in os.listdir(log_dir):
        if name.startswith(prefix) and parse_archive_timestamp(name, log_filename) is not None:
            archived.append(name)
    archived.sort()
    return archived


def parse_archive_timestamp(filename: str, log_filename: str) -> datetime | None:
    """Extract the rotation timestamp from an archive filename. Returns None on failure."""
    prefix = log_filename + "."
    if not filename.startswith(prefix):
        return None
    suffix = filename[len(prefix):]
    # Collision counter, e.g. ".20250115_120000_000000-1"
    stamp, _, counter = suffix.partition("-")
    if counter and not counter.isdigit():
        return None
    try:
        return datetime.strptime(stamp, ARCHIVE_STAMP)
    except ValueError:
        return None


def enforce_retention(log_dir: str, log_filename: str, max_log_files: int) -> list[str]:
    """Delete the oldest archives so that archives plus the active file fit in max_log_files."""
    archived = get_archived_files(log_dir, log_filename)
    keep = max(max_log_files - 1, 0)
    deleted = []
    while len(archived) > keep:
        name = archived.pop(0)
        try:
            os.remove(os.path.join(log_dir, name))
        except FileNotFoundError:
            continue
        deleted.append(name)
    return deleted


class RotatingFileSink(Sink):
    """Writes lines to ``path``; archives it when its period or size limit is reached."""

    def __init__(
        self,
        path,
        config: SinkConfig = FILE_SINK_DEFAULTS,
        policy: RotationPolicy | None = None,
        identifier: str | None = None,
        should_append: bool = True,
        append_marker: str = RESTART_MARKER,
        time_func=None,
    ):
        self._path = Path(path)
        super().__init__(identifier or f"{self._path.stem}.autoRotatingFileDestination", config)
        self._policy = policy or RotationPolicy()
        self._time_func = time_func or local_now
        self._lock = threading.Lock()
        self._file = None
        self._period_start = self._time_func()
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._open_initial(should_append, append_marker)
        except (OSError, ValueError) as exc:
            raise WriteFailure(self.identifier, exc) from exc

    @property
    def path(self) -> Path:
        return self._path

    @property
    def policy(self) -> RotationPolicy:
        return self._policy

    @property
    def period_start(self) -> datetime:
        with self._lock:
            return self._period_start

    def _open(self):
        self._file = open(self._path, "a", encoding="utf-8", errors="backslashreplace")

    def _close(self):
        if self._file and not self._file.closed:
            self._file.close()
        self._file = None

    def _existing_period_start(self) -> datetime:
        """Start of the period covered by the existing active file."""
        with open(self._path, "r", encoding="utf-8", errors="replace") as f:
            first = f.readline()
        started = parse_line_timestamp(first)
        if started is not None:
            return started
        return datetime.fromtimestamp(os.path.getmtime(self._path)).astimezone()

    def _open_initial(self, should_append: bool, append_marker: str):
        now = self._time_func()
        if self._path.exists() and self._path.stat().st_size > 0:
            started = self._existing_period_start()
            expired = elapsed_seconds(now, started) >= self._policy.max_time_interval
            if should_append and not expired and not self._size_exceeded():
                self._open()
                self._file.write(append_marker + "\n")
                self._file.flush()
                self._period_start = started
                self._enforce_retention()
                return
            self._archive_active(started)
        self._open()
        self._period_start = now
        self._enforce_retention()

    def _size_exceeded(self) -> bool:
        if not self._policy.max_file_size_bytes:
            return False
        try:
            return os.path.getsize(self._path) >= self._policy.max_file_size_bytes
        except OSError:
            return False

    def _time_exceeded(self, now: datetime) -> bool:
        return elapsed_seconds(now, self._period_start) >= self._policy.max_time_interval

    def _archive_path(self, started: datetime) -> Path:
        base = f"{self._path.name}.{started.strftime(ARCHIVE_STAMP)}"
        candidate = self._path.with_name(base)
        counter = 0
        while candidate.exists():
            counter += 1
            candidate = self._path.with_name(f"{base}-{counter}")
        return candidate

    def _archive_active(self, started: datetime) -> Path:
        """Rename the active file to an archive stamped with the start of its period."""
        archive = self._archive_path(started)
        os.rename(self._path, archive)
        return archive

    def _enforce_retention(self):
        deleted = enforce_retention(
            str(self._path.parent), self._path.name, self._policy.max_log_files
        )
        if deleted:
            logger.info("Purged %d archived log file(s): %s", len(deleted), ", ".join(deleted))

    def _rotate(self, now: datetime) -> Path:
        """Rename-and-create rotation. Returns the path of the archived file."""
        self._close()
        archive = self._archive_active(self._period_start)
        self._open()
        self._period_start = now
        self._enforce_retention()
        logger.info("Rotated %s -> %s", self._path.name, archive.name)
        return archive

    def write(self, line: str) -> Path | None:
        """Append a line, rotating first if due. Returns the archive path if rotation occurred."""
        with self._lock:
            try:
                if self._file is None:
                    self._open()
                now = self._time_func()
                rotated = None
                if self._time_exceeded(now) or self._size_exceeded():
                    rotated = self._rotate(now)
                self._file.write(line if line.endswith("\n") else line + "\n")
                self._file.flush()
                return rotated
            except (OSError, ValueError) as exc:
                raise WriteFailure(self.identifier, exc) from exc

    def rotate(self) -> Path:
        with self._lock:
            try:
                if self._file is None and not self._path.exists():
                    self._open()
                return self._rotate(self._time_func())
            except (OSError, ValueError) as exc:
                raise WriteFailure(self.identifier, exc) from exc

    def archived_files(self) -> list[Path]:
        """Archives oldest-first."""
        with self._lock:
            names = get_archived_files(str(self._path.parent), self._path.name)
        return [self._path.parent / name for name in names]

    def flush(self):
        with self._lock:
            if self._file and not self._file.closed:
                self._file.flush()

    def close(self):
        with self._lock:
            self._close()
