"""Sink base class and the console sink."""

import sys
import threading

from applog.config import SinkConfig
from applog.errors import WriteFailure
from applog.formatter import render, should_emit
from applog.levels import Severity
from applog.models import LogEntry


class Sink:
    """A destination for rendered lines with its own minimum level and render flags."""

    def __init__(self, identifier: str, config: SinkConfig):
        self.identifier = identifier
        self.config = config

    def accepts(self, level: Severity) -> bool:
        return should_emit(level, self.config.min_level)

    def process(self, entry: LogEntry) -> None:
        """Render and write *entry*. Raises WriteFailure."""
        self.write(render(entry, self.config, self.identifier))

    def write(self, line: str) -> None:
        raise NotImplementedError

    def flush(self) -> None:
        pass

    def close(self) -> None:
        pass


class ConsoleSink(Sink):
    def __init__(self, identifier: str, config: SinkConfig, stream=None):
        super().__init__(identifier, config)
        self._stream = stream if stream is not None else sys.stderr
        self._lock = threading.Lock()

    def write(self, line: str) -> None:
        with self._lock:
            try:
                self._stream.write(line if line.endswith("\n") else line + "\n")
                self._stream.flush()
            except (OSError, ValueError) as exc:
                raise WriteFailure(self.identifier, exc) from exc
