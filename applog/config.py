"""Configuration: frozen dataclasses loaded from env vars and an optional YAML file."""

import logging
import os
from dataclasses import dataclass, field

import yaml

from applog.levels import Severity, parse_severity

logger = logging.getLogger(__name__)

RESTART_MARKER = "- - - - - App was restarted - - - - -"


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("true", "1", "yes")


def _parse_level(value, default: Severity) -> Severity:
    try:
        return parse_severity(value)
    except ValueError:
        logger.warning("Invalid log level %r, falling back to %s", value, default.label)
        return default


@dataclass(frozen=True)
class SinkConfig:
    min_level: Severity = Severity.DEBUG
    show_date: bool = True
    show_level: bool = True
    show_identifier: bool = False
    show_thread_name: bool = False
    show_file_name: bool = False
    show_line_number: bool = False
    show_function_name: bool = False


# Console lines carry no date; the system console stamps its own.
CONSOLE_SINK_DEFAULTS = SinkConfig(show_date=False)
FILE_SINK_DEFAULTS = SinkConfig()


@dataclass(frozen=True)
class RotationPolicy:
    max_log_files: int = 10
    max_time_interval: float = 60 * 60  # 1 hour
    max_file_size_bytes: int = 0  # 0 disables size-based rotation

    def __post_init__(self):
        if self.max_log_files < 1:
            raise ValueError("max_log_files must be at least 1")
        if self.max_time_interval <= 0:
            raise ValueError("max_time_interval must be positive")
        if self.max_file_size_bytes < 0:
            raise ValueError("max_file_size_bytes must not be negative")


@dataclass(frozen=True)
class Config:
    app_identity: str = "applog"
    group_id: str | None = None
    log_dir: str | None = None
    min_level: Severity = Severity.DEBUG
    enable_console_sink: bool = False
    rotation: RotationPolicy = field(default_factory=RotationPolicy)
    append_marker: str = RESTART_MARKER
    alert_queue_size: int = 256


def load_yaml_config(path: str | None) -> dict:
    """Load settings from a YAML file. Returns empty dict if no path."""
    if not path:
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        logger.info("Loaded YAML config from %s", path)
        return data
    except FileNotFoundError:
        logger.warning("Config file %s not found, using defaults", path)
        return {}


def load_config(yaml_data: dict | None = None) -> Config:
    """Build Config from env vars layered over YAML data and dataclass defaults."""
    data = yaml_data or {}
    rotation_data = data.get("rotation") or {}
    defaults = RotationPolicy()

    rotation = RotationPolicy(
        max_log_files=int(os.environ.get(
            "APPLOG_MAX_LOG_FILES", rotation_data.get("max_log_files", defaults.max_log_files)
        )),
        max_time_interval=float(os.environ.get(
            "APPLOG_MAX_TIME_INTERVAL", rotation_data.get("max_time_interval", defaults.max_time_interval)
        )),
        max_file_size_bytes=int(os.environ.get(
            "APPLOG_MAX_FILE_SIZE_BYTES", rotation_data.get("max_file_size_bytes", defaults.max_file_size_bytes)
        )),
    )

    console = os.environ.get("APPLOG_DEBUG", data.get("console", Config.enable_console_sink))
    enable_console = _parse_bool(console) if isinstance(console, str) else bool(console)

    return Config(
        app_identity=os.environ.get("APPLOG_APP_ID", data.get("app_id", Config.app_identity)),
        group_id=os.environ.get("APPLOG_GROUP_ID", data.get("group_id")) or None,
        log_dir=os.environ.get("APPLOG_LOG_DIR", data.get("log_dir")) or None,
        min_level=_parse_level(
            os.environ.get("APPLOG_MIN_LEVEL", data.get("min_level", Config.min_level)),
            Config.min_level,
        ),
        enable_console_sink=enable_console,
        rotation=rotation,
        append_marker=data.get("append_marker", RESTART_MARKER),
        alert_queue_size=int(os.environ.get(
            "APPLOG_ALERT_QUEUE_SIZE", data.get("alert_queue_size", Config.alert_queue_size)
        )),
    )
