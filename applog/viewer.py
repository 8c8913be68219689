"""Log viewer helpers: list, read, filter and search stored log files."""

import os
from dataclasses import dataclass
from enum import Enum

from applog.levels import Severity

LEVEL_COLORS = {
    Severity.DEBUG: "secondary",
    Severity.INFO: "primary",
    Severity.WARNING: "yellow",
    Severity.ERROR: "red",
}


class LogFilter(str, Enum):
    NONE = "none"
    INCLUDES = "includes"
    EXCLUDES = "excludes"
    PREFIX = "prefix"


@dataclass(frozen=True)
class LogLine:
    text: str
    color: str = "primary"


@dataclass(frozen=True)
class LogFileInfo:
    name: str
    size: int
    archived: bool


def format_size(size: int) -> str:
    """Human-readable byte count using binary units, e.g. ``1.5 KB``."""
    if size < 1024:
        return f"{size} B"
    for unit in ("KB", "MB"):
        size /= 1024
        if size < 1024:
            return f"{size:.1f} {unit}"
    return f"{size / 1024:.1f} GB"


def line_color(text: str) -> str:
    """Colour for a rendered line, from the first level label it contains."""
    for level in (Severity.ERROR, Severity.WARNING, Severity.DEBUG, Severity.INFO):
        if f"[{level.label}]" in text:
            return LEVEL_COLORS[level]
    return LEVEL_COLORS[Severity.INFO]


def _matches(text: str, log_filter: LogFilter, filter_text: str) -> bool:
    if log_filter is LogFilter.NONE or not filter_text:
        return True
    if log_filter is LogFilter.INCLUDES:
        return filter_text in text
    if log_filter is LogFilter.EXCLUDES:
        return filter_text not in text
    # Prefix applies to the message, after any timestamp/level decoration
    message = text.split("] ", 1)[1] if "] " in text else text
    return message.startswith(filter_text) or text.startswith(filter_text)


def filter_lines(lines, log_filter: LogFilter = LogFilter.NONE, filter_text: str = "") -> list[LogLine]:
    log_filter = LogFilter(log_filter)
    result = []
    for raw in lines:
        text = raw.rstrip("\n")
        if not text or not _matches(text, log_filter, filter_text):
            continue
        result.append(LogLine(text=text, color=line_color(text)))
    return result


def load_log_lines(path: str, log_filter: LogFilter = LogFilter.NONE, filter_text: str = "",
                   limit: int | None = None) -> list[LogLine]:
    """Read a log file and return its filtered lines, keeping only the last *limit* if given."""
    if not os.path.exists(path):
        raise FileNotFoundError(f"File not found: {path}")
    with open(path, "r", encoding="utf-8", errors="replace") as f:
        lines = filter_lines(f, log_filter, filter_text)
    if limit is not None:
        lines = lines[-limit:] if limit > 0 else []
    return lines


def list_log_files(log_dir: str) -> list[str]:
    """Return active and archived log files sorted by name."""
    files = []
    for name in os.listdir(log_dir):
        if name.endswith(".log") or ".log." in name:
            files.append(name)
    files.sort()
    return files


def describe_log_files(log_dir: str) -> list[LogFileInfo]:
    infos = []
    for name in list_log_files(log_dir):
        try:
            size = os.path.getsize(os.path.join(log_dir, name))
        except OSError:
            continue
        infos.append(LogFileInfo(name=name, size=size, archived=not name.endswith(".log")))
    return infos


def active_log_file(log_dir: str) -> str | None:
    """Name of the last active (non-archived) log file in the folder, if any."""
    active = [name for name in list_log_files(log_dir) if name.endswith(".log")]
    return active[-1] if active else None


def read_file(log_dir: str, filename: str) -> str:
    path = os.path.join(log_dir, filename)
    if not os.path.exists(path):
        raise FileNotFoundError(f"File not found: {path}")
    with open(path, "r", encoding="utf-8", errors="replace") as f:
        return f.read()


def search_files(log_dir: str, text: str) -> list[tuple[str, int, str]]:
    """Search for text across all log files. Returns (filename, line_num, line) tuples."""
    results = []
    for filename in list_log_files(log_dir):
        path = os.path.join(log_dir, filename)
        try:
            with open(path, "r", encoding="utf-8", errors="replace") as f:
                for line_num, line in enumerate(f, 1):
                    if text in line:
                        results.append((filename, line_num, line.rstrip("\n")))
        except OSError:
            continue
    return results
