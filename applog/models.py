"""Log entry model with factory function."""

import threading
from dataclasses import dataclass, field
from datetime import datetime

from applog.levels import Severity


@dataclass(frozen=True)
class LogEntry:
    message: str
    level: Severity
    function: str = ""
    file: str = ""
    line: int = 0
    timestamp: datetime = field(default_factory=datetime.now, compare=False)
    thread_name: str = field(default="", compare=False)


def create_log_entry(
    message: str,
    level: Severity,
    function: str | None = None,
    file: str | None = None,
    line: int | None = None,
    time_func=None,
) -> LogEntry:
    now_func = time_func or datetime.now
    return LogEntry(
        message=str(message),
        level=level,
        function=function or "",
        file=file or "",
        line=line or 0,
        timestamp=now_func(),
        thread_name=threading.current_thread().name,
    )
