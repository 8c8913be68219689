"""Level filtering and rendering of log entries to text lines."""

import os
import re
from datetime import datetime

from applog.config import SinkConfig
from applog.levels import Severity
from applog.models import LogEntry

TIMESTAMP_LENGTH = len("2025-01-15 12:00:00.000")
_TIMESTAMP_RE = re.compile(r"^(\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2})\.(\d{3})")


def should_emit(entry_level: Severity, sink_min_level: Severity) -> bool:
    return entry_level >= sink_min_level


def format_timestamp(dt: datetime) -> str:
    """Render as 'YYYY-MM-DD HH:MM:SS.mmm'."""
    return dt.strftime("%Y-%m-%d %H:%M:%S.") + f"{dt.microsecond // 1000:03d}"


def parse_line_timestamp(line: str) -> datetime | None:
    """Extract the naive local timestamp prefix of a rendered line. Returns None on failure."""
    match = _TIMESTAMP_RE.match(line)
    if not match:
        return None
    try:
        ts = datetime.strptime(match.group(1), "%Y-%m-%d %H:%M:%S")
    except ValueError:
        return None
    return ts.replace(microsecond=int(match.group(2)) * 1000)


def render(entry: LogEntry, options: SinkConfig, identifier: str = "") -> str:
    """Build one line from *entry*; the message always comes last."""
    parts = []
    if options.show_date:
        parts.append(format_timestamp(entry.timestamp))
    if options.show_level:
        parts.append(f"[{entry.level.label}]")
    if options.show_identifier and identifier:
        parts.append(f"[{identifier}]")
    if options.show_thread_name and entry.thread_name:
        parts.append(f"[{entry.thread_name}]")

    origin = False
    if options.show_file_name and entry.file:
        name = os.path.basename(entry.file)
        if options.show_line_number:
            name = f"{name}:{entry.line}"
        parts.append(f"[{name}]")
        origin = True
    elif options.show_line_number and entry.line:
        parts.append(f"[{entry.line}]")
        origin = True
    if options.show_function_name and entry.function:
        parts.append(entry.function)
        origin = True

    parts.append(f"> {entry.message}" if origin else entry.message)
    return " ".join(parts)
