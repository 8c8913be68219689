"""Tests for the sink base class and console sink."""

import io
from datetime import datetime

import pytest

from applog.config import CONSOLE_SINK_DEFAULTS, SinkConfig
from applog.errors import WriteFailure
from applog.levels import Severity
from applog.models import LogEntry
from applog.sinks import ConsoleSink, Sink


class TestSinkBase:
    def test_accepts_by_min_level(self):
        sink = Sink("s", SinkConfig(min_level=Severity.WARNING))
        assert not sink.accepts(Severity.INFO)
        assert sink.accepts(Severity.WARNING)
        assert sink.accepts(Severity.ERROR)

    def test_write_not_implemented(self):
        with pytest.raises(NotImplementedError):
            Sink("s", SinkConfig()).write("x")


class TestConsoleSink:
    def test_writes_rendered_line(self):
        stream = io.StringIO()
        sink = ConsoleSink("app.systemDestination", CONSOLE_SINK_DEFAULTS, stream=stream)
        sink.process(LogEntry("boot ok", Severity.INFO, timestamp=datetime(2025, 1, 1)))
        assert stream.getvalue() == "[Info] boot ok\n"

    def test_defaults_to_stderr(self, capsys):
        sink = ConsoleSink("app.systemDestination", CONSOLE_SINK_DEFAULTS)
        sink.write("to the console")
        assert capsys.readouterr().err == "to the console\n"

    def test_closed_stream_raises_write_failure(self):
        stream = io.StringIO()
        stream.close()
        sink = ConsoleSink("app.systemDestination", CONSOLE_SINK_DEFAULTS, stream=stream)
        with pytest.raises(WriteFailure) as info:
            sink.write("lost")
        assert info.value.sink_id == "app.systemDestination"
