"""Fan-out dispatcher: routes entries to sinks and republishes warnings/errors as alerts."""

import logging
import os
import platform
import sys
import threading
from dataclasses import replace
from enum import Enum
from pathlib import Path

from applog.alerts import AlertChannel, Subscription
from applog.config import CONSOLE_SINK_DEFAULTS, FILE_SINK_DEFAULTS, Config, load_config, load_yaml_config
from applog.errors import FolderUnavailable, WriteFailure
from applog.folder import ensure_folder, log_file_path, resolve_log_folder, split_identity
from applog.levels import Severity, coerce_severity, parse_severity
from applog.models import LogEntry, create_log_entry
from applog.rotating import RotatingFileSink
from applog.sinks import ConsoleSink, Sink

logger = logging.getLogger(__name__)

VERSION = "0.1.0"


class LoggerState(Enum):
    UNINITIALIZED = "uninitialized"
    ACTIVE = "active"


class Logger:
    """Owned logging front end with a ``new -> setup -> use`` lifecycle.

    Until :meth:`setup` succeeds every :meth:`emit` is a silent no-op. After
    it, entries are rendered to each sink whose minimum level admits them, and
    warning/error entries are also offered to the alert channel. Nothing
    raised by a sink reaches the caller.
    """

    def __init__(self, config: Config | None = None, alerts: AlertChannel | None = None):
        self._config = config or Config()
        self._alerts = alerts or AlertChannel(self._config.alert_queue_size)
        self._sinks: list[Sink] = []
        self._failing: set[str] = set()
        self._state = LoggerState.UNINITIALIZED
        self._lock = threading.Lock()
        self._time_func = None
        self._dropped_before_setup = 0
        self._log_folder: Path | None = None
        self._file_sink: RotatingFileSink | None = None

    @property
    def state(self) -> LoggerState:
        return self._state

    @property
    def is_active(self) -> bool:
        return self._state is LoggerState.ACTIVE

    @property
    def config(self) -> Config:
        return self._config

    @property
    def alerts(self) -> AlertChannel:
        return self._alerts

    @property
    def sinks(self) -> tuple[Sink, ...]:
        return tuple(self._sinks)

    @property
    def log_folder(self) -> Path | None:
        return self._log_folder

    @property
    def log_file(self) -> Path | None:
        return self._file_sink.path if self._file_sink else None

    @property
    def file_sink(self) -> RotatingFileSink | None:
        return self._file_sink

    @property
    def dropped_before_setup(self) -> int:
        with self._lock:
            return self._dropped_before_setup

    def setup(
        self,
        min_level=None,
        group_id: str | None = None,
        *,
        enable_console_sink: bool | None = None,
        log_dir: str | None = None,
        console_stream=None,
        time_func=None,
    ) -> "Logger":
        """Resolve the log folder, open the active file and register sinks.

        Keyword overrides take precedence over the Config given at construction.
        Raises FolderUnavailable when no log destination can be created.
        """
        with self._lock:
            if self._state is LoggerState.ACTIVE:
                logger.warning("Logger already configured; ignoring repeated setup()")
                return self

            overrides = {}
            if min_level is not None:
                overrides["min_level"] = parse_severity(min_level)
            if group_id is not None:
                overrides["group_id"] = group_id
            if enable_console_sink is not None:
                overrides["enable_console_sink"] = enable_console_sink
            if log_dir is not None:
                overrides["log_dir"] = log_dir
            cfg = replace(self._config, **overrides)

            if cfg.log_dir:
                folder = ensure_folder(Path(cfg.log_dir))
            else:
                folder = resolve_log_folder(cfg.app_identity, cfg.group_id)
            _, app_name = split_identity(cfg.app_identity)

            sinks: list[Sink] = []
            if cfg.enable_console_sink:
                sinks.append(ConsoleSink(
                    f"{app_name}.systemDestination",
                    replace(CONSOLE_SINK_DEFAULTS, min_level=cfg.min_level),
                    stream=console_stream,
                ))
            try:
                file_sink = RotatingFileSink(
                    log_file_path(folder, cfg.app_identity),
                    replace(FILE_SINK_DEFAULTS, min_level=cfg.min_level),
                    cfg.rotation,
                    identifier=f"{app_name}.autoRotatingFileDestination",
                    should_append=True,
                    append_marker=cfg.append_marker,
                    time_func=time_func,
                )
            except WriteFailure as exc:
                raise FolderUnavailable(f"Unable to open log file in {folder}: {exc.cause}") from exc
            sinks.append(file_sink)

            self._config = cfg
            self._sinks = sinks
            self._file_sink = file_sink
            self._log_folder = folder
            self._time_func = time_func
            self._state = LoggerState.ACTIVE

        logger.info("Logging to %s (min level %s)", file_sink.path, cfg.min_level.label)
        self._log_app_details(app_name)
        return self

    def _log_app_details(self, app_name: str):
        details = [
            f"{app_name} PID: {os.getpid()}",
            f"Python {platform.python_version()} on {platform.platform()}",
            f"applog Version: {VERSION} - Level: {self._config.min_level.label}",
        ]
        for text in details:
            self._dispatch(create_log_entry(text, Severity.INFO, "setup", __file__, 0, self._time_func))

    def emit(self, message, level, function: str | None = None, file: str | None = None,
             line: int | None = None) -> None:
        """Log one entry. Never raises."""
        try:
            self._emit(message, level, function, file, line)
        except Exception:
            logger.exception("Unexpected failure while logging %r", message)

    def _emit(self, message, level, function, file, line):
        if self._state is not LoggerState.ACTIVE:
            with self._lock:
                self._dropped_before_setup += 1
            return

        severity, note = coerce_severity(level)
        text = f"{note} {message}" if note else str(message)
        entry = create_log_entry(text, severity, function, file, line, self._time_func)

        if entry.level.is_alert:
            self._alerts.publish(entry)
        self._dispatch(entry)

    def _dispatch(self, entry: LogEntry):
        failures = []
        for sink in self._sinks:
            if not sink.accepts(entry.level):
                continue
            try:
                sink.process(entry)
            except WriteFailure as exc:
                failures.append((sink, exc))
            else:
                self._mark_recovered(sink)

        for sink, exc in failures:
            self._report_failure(sink, exc)

    def _mark_recovered(self, sink: Sink):
        if sink.identifier not in self._failing:
            return
        with self._lock:
            self._failing.discard(sink.identifier)
        logger.info("Log destination %s recovered", sink.identifier)

    def _report_failure(self, failed: Sink, exc: WriteFailure):
        with self._lock:
            first = failed.identifier not in self._failing
            self._failing.add(failed.identifier)
        if not first:
            return

        logger.error("Log destination %s failed: %s", failed.identifier, exc.cause)
        notice = create_log_entry(
            f"Log destination {failed.identifier} failed: {exc.cause}",
            Severity.ERROR, "_report_failure", __file__, 0, self._time_func,
        )
        for sink in self._sinks:
            if sink is failed or sink.identifier in self._failing:
                continue
            try:
                sink.process(notice)
            except WriteFailure as other:
                logger.error("Log destination %s failed: %s", sink.identifier, other.cause)

    def _emit_from_caller(self, message, level: Severity):
        frame = sys._getframe(2)
        code = frame.f_code
        self.emit(message, level, code.co_name, code.co_filename, frame.f_lineno)

    def debug(self, message):
        self._emit_from_caller(message, Severity.DEBUG)

    def info(self, message):
        self._emit_from_caller(message, Severity.INFO)

    def warning(self, message):
        self._emit_from_caller(message, Severity.WARNING)

    def error(self, message):
        self._emit_from_caller(message, Severity.ERROR)

    def subscribe(self, maxsize: int | None = None) -> Subscription:
        return self._alerts.subscribe(maxsize)

    def flush(self):
        for sink in self._sinks:
            try:
                sink.flush()
            except OSError as exc:
                logger.error("Flushing %s failed: %s", sink.identifier, exc)


_default: Logger | None = None
_default_lock = threading.Lock()


def get_logger() -> Logger:
    """The process-wide Logger, created on first use from env/YAML configuration."""
    global _default
    with _default_lock:
        if _default is None:
            _default = Logger(load_config(load_yaml_config(os.environ.get("APPLOG_CONFIG"))))
        return _default


def setup(min_level=None, group_id: str | None = None, **kwargs) -> Logger:
    return get_logger().setup(min_level, group_id, **kwargs)


def log(message, level, function: str | None = None, file: str | None = None,
        line: int | None = None) -> None:
    get_logger().emit(message, level, function, file, line)
