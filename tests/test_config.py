import pytest
from pydantic import ValidationError

from guest_agent.config import (
    DEFAULT_FRESHNESS_SECONDS,
    DEFAULT_SAMPLE_INTERVAL_SECONDS,
    Settings,
    get_settings,
)


def test_settings_defaults(monkeypatch):
    for name in (
        "GUEST_AGENT_STATE_DIR",
        "GUEST_AGENT_FRESHNESS_SECONDS",
        "GUEST_AGENT_SAMPLE_INTERVAL",
        "GUEST_AGENT_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)

    settings = Settings.from_env()
    assert settings.freshness_seconds == DEFAULT_FRESHNESS_SECONDS == 30.0
    assert settings.sample_interval_seconds == DEFAULT_SAMPLE_INTERVAL_SECONDS == 1.0
    assert settings.state_prefix == "pvy_cpu_stats"
    assert settings.proc_stat_path == "/proc/stat"
    assert settings.log_level == "WARNING"


def test_settings_from_env_overrides(monkeypatch, tmp_path):
    monkeypatch.setenv("GUEST_AGENT_STATE_DIR", str(tmp_path))
    monkeypatch.setenv("GUEST_AGENT_FRESHNESS_SECONDS", "10")
    monkeypatch.setenv("GUEST_AGENT_SAMPLE_INTERVAL", "0.25")
    monkeypatch.setenv("GUEST_AGENT_LOG_LEVEL", "debug")

    settings = Settings.from_env()
    assert settings.state_dir == str(tmp_path)
    assert settings.freshness_seconds == 10.0
    assert settings.sample_interval_seconds == 0.25
    assert settings.log_level == "DEBUG"


def test_empty_env_var_keeps_default(monkeypatch):
    monkeypatch.setenv("GUEST_AGENT_PROC_STAT", "")
    assert Settings.from_env().proc_stat_path == "/proc/stat"


@pytest.mark.parametrize(
    "name, value",
    [
        ("GUEST_AGENT_FRESHNESS_SECONDS", "0"),
        ("GUEST_AGENT_FRESHNESS_SECONDS", "soon"),
        ("GUEST_AGENT_SAMPLE_INTERVAL", "-1"),
        ("GUEST_AGENT_LOG_LEVEL", "LOUD"),
    ],
)
def test_invalid_values_are_rejected(monkeypatch, name, value):
    monkeypatch.setenv(name, value)
    with pytest.raises(ValidationError):
        Settings.from_env()


def test_get_settings_is_cached(monkeypatch):
    get_settings.cache_clear()
    monkeypatch.setenv("GUEST_AGENT_STATE_PREFIX", "cached_stats")
    try:
        s1 = get_settings()
        s2 = get_settings()
        assert s1 is s2
        assert s1.state_prefix == "cached_stats"
    finally:
        get_settings.cache_clear()
