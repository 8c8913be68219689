"""Severity levels and lenient level parsing."""

import logging
from enum import IntEnum


class Severity(IntEnum):
    DEBUG = 10
    INFO = 20
    WARNING = 30
    ERROR = 40

    @property
    def label(self) -> str:
        return self.name.capitalize()

    @property
    def is_alert(self) -> bool:
        return self >= Severity.WARNING


_ALIASES = {
    "debug": Severity.DEBUG,
    "info": Severity.INFO,
    "warning": Severity.WARNING,
    "warn": Severity.WARNING,
    "error": Severity.ERROR,
    "err": Severity.ERROR,
}


def parse_severity(value) -> Severity:
    """Parse a Severity from a Severity, stdlib level number or name. Raises ValueError."""
    if isinstance(value, Severity):
        return value
    if isinstance(value, bool):
        raise ValueError(f"Invalid severity: {value!r}")
    if isinstance(value, int):
        if value in (logging.DEBUG, logging.INFO, logging.WARNING, logging.ERROR):
            return Severity(value)
        raise ValueError(f"Invalid severity: {value!r}")
    if isinstance(value, str):
        level = _ALIASES.get(value.strip().lower())
        if level is not None:
            return level
    raise ValueError(f"Invalid severity: {value!r}")


def coerce_severity(value) -> tuple[Severity, str | None]:
    """Return (severity, note). Unknown values become ERROR with a note naming the input."""
    try:
        return parse_severity(value), None
    except ValueError:
        return Severity.ERROR, f"[invalid level {value!r}]"
