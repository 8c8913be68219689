"""Tests for the configuration module."""

import dataclasses

import pytest

from applog.config import (
    CONSOLE_SINK_DEFAULTS,
    RESTART_MARKER,
    Config,
    RotationPolicy,
    SinkConfig,
    _parse_bool,
    load_config,
    load_yaml_config,
)
from applog.levels import Severity

ENV_VARS = (
    "APPLOG_APP_ID", "APPLOG_GROUP_ID", "APPLOG_LOG_DIR", "APPLOG_MIN_LEVEL", "APPLOG_DEBUG",
    "APPLOG_MAX_LOG_FILES", "APPLOG_MAX_TIME_INTERVAL", "APPLOG_MAX_FILE_SIZE_BYTES",
    "APPLOG_ALERT_QUEUE_SIZE",
)


@pytest.fixture
def clean_env(monkeypatch):
    for var in ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    return monkeypatch


class TestParseBool:
    @pytest.mark.parametrize("value", ["true", "True", "1", "yes", " YES "])
    def test_truthy_values(self, value):
        assert _parse_bool(value) is True

    @pytest.mark.parametrize("value", ["false", "0", "no", "", "anything"])
    def test_falsy_values(self, value):
        assert _parse_bool(value) is False


class TestDefaults:
    def test_config_defaults(self):
        cfg = Config()
        assert cfg.app_identity == "applog"
        assert cfg.group_id is None
        assert cfg.min_level is Severity.DEBUG
        assert cfg.enable_console_sink is False
        assert cfg.append_marker == RESTART_MARKER
        assert cfg.rotation == RotationPolicy(max_log_files=10, max_time_interval=3600, max_file_size_bytes=0)

    def test_console_has_no_date(self):
        assert CONSOLE_SINK_DEFAULTS.show_date is False
        assert CONSOLE_SINK_DEFAULTS.show_level is True

    def test_frozen(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            Config().min_level = Severity.ERROR
        with pytest.raises(dataclasses.FrozenInstanceError):
            SinkConfig().show_date = False


class TestRotationPolicy:
    @pytest.mark.parametrize("kwargs", [
        {"max_log_files": 0},
        {"max_time_interval": 0},
        {"max_file_size_bytes": -1},
    ])
    def test_rejects_invalid_values(self, kwargs):
        with pytest.raises(ValueError):
            RotationPolicy(**kwargs)


class TestLoadYamlConfig:
    def test_no_path(self):
        assert load_yaml_config(None) == {}

    def test_missing_file(self, tmp_path):
        assert load_yaml_config(str(tmp_path / "nope.yml")) == {}

    def test_loads_file(self, tmp_path):
        path = tmp_path / "applog.yml"
        path.write_text("app_id: com.example.Demo\nrotation:\n  max_log_files: 3\n")
        data = load_yaml_config(str(path))
        assert data["app_id"] == "com.example.Demo"
        assert data["rotation"]["max_log_files"] == 3

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yml"
        path.write_text("")
        assert load_yaml_config(str(path)) == {}


class TestLoadConfig:
    def test_defaults_without_env(self, clean_env):
        assert load_config() == Config()

    def test_yaml_values(self, clean_env):
        cfg = load_config({
            "app_id": "com.example.Demo",
            "group_id": "group.example",
            "min_level": "warning",
            "console": True,
            "rotation": {"max_log_files": 4, "max_time_interval": 60},
            "alert_queue_size": 8,
        })
        assert cfg.app_identity == "com.example.Demo"
        assert cfg.group_id == "group.example"
        assert cfg.min_level is Severity.WARNING
        assert cfg.enable_console_sink is True
        assert cfg.rotation.max_log_files == 4
        assert cfg.rotation.max_time_interval == 60
        assert cfg.alert_queue_size == 8

    def test_env_overrides_yaml(self, clean_env):
        clean_env.setenv("APPLOG_APP_ID", "com.example.Env")
        clean_env.setenv("APPLOG_MIN_LEVEL", "error")
        clean_env.setenv("APPLOG_DEBUG", "false")
        clean_env.setenv("APPLOG_MAX_LOG_FILES", "2")
        clean_env.setenv("APPLOG_MAX_FILE_SIZE_BYTES", "1024")
        cfg = load_config({"app_id": "com.example.Yaml", "min_level": "info", "console": True})
        assert cfg.app_identity == "com.example.Env"
        assert cfg.min_level is Severity.ERROR
        assert cfg.enable_console_sink is False
        assert cfg.rotation.max_log_files == 2
        assert cfg.rotation.max_file_size_bytes == 1024

    def test_invalid_level_falls_back(self, clean_env):
        clean_env.setenv("APPLOG_MIN_LEVEL", "loud")
        assert load_config().min_level is Severity.DEBUG

    def test_empty_group_is_none(self, clean_env):
        clean_env.setenv("APPLOG_GROUP_ID", "")
        assert load_config().group_id is None

    @pytest.mark.parametrize("value,expected", [("false", False), ("no", False), ("true", True), ("1", True)])
    def test_quoted_console_flag_in_yaml(self, clean_env, value, expected):
        assert load_config({"console": value}).enable_console_sink is expected
