"""Tests for settings loading."""

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from jasper.core.config import LogLevel, Settings
from jasper.errors import ConfigError


def test_defaults():
    """Test default settings."""
    settings = Settings()

    assert settings.screenshots_dir == Path("screenshots")
    assert settings.teamcity is False
    assert settings.save is None
    assert settings.capture_padding == 200
    assert settings.timeouts.step_timeout == 600
    assert settings.timeouts.delay_between_describe_blocks == 5
    assert settings.browser.headless is True
    assert settings.logging.level == LogLevel.INFO


def test_project_config_in_working_directory(tmp_path):
    """Test that jasper.yaml in the working directory is picked up."""
    (tmp_path / "jasper.yaml").write_text(
        "teamcity: true\n"
        "timeouts:\n"
        "  step_timeout: 60\n"
        "browser:\n"
        "  viewport_width: 1280\n"
    )

    settings = Settings()

    assert settings.teamcity is True
    assert settings.timeouts.step_timeout == 60
    assert settings.timeouts.wait_timeout == 300
    assert settings.browser.viewport_width == 1280


def test_explicit_file_overrides_project_config(tmp_path):
    """Test precedence of an explicit config file."""
    (tmp_path / "jasper.yaml").write_text("timeouts:\n  step_timeout: 60\n  timeout: 120\n")
    config = tmp_path / "ci.json"
    config.write_text(json.dumps({"timeouts": {"step_timeout": 30}, "save": "out/xunit.xml"}))

    settings = Settings(config_file=str(config))

    assert settings.config_file == config
    assert settings.timeouts.step_timeout == 30
    assert settings.timeouts.timeout == 120
    assert settings.save == Path("out/xunit.xml")


def test_missing_config_file(tmp_path):
    """Test that a missing explicit file is an error."""
    with pytest.raises(ConfigError, match="not found"):
        Settings(config_file=tmp_path / "nope.yaml")


def test_invalid_config_file(tmp_path):
    """Test that unreadable config is an error."""
    config = tmp_path / "broken.yaml"
    config.write_text("timeouts: [unclosed\n")

    with pytest.raises(ConfigError, match="Error loading configuration file"):
        Settings(config_file=config)


def test_environment(monkeypatch, tmp_path):
    """Test environment variables."""
    monkeypatch.setenv("JASPER_SCREENSHOTS_DIR", str(tmp_path / "shots"))
    monkeypatch.setenv("JASPER_HEADLESS", "0")
    monkeypatch.setenv("JASPER_LOG_LEVEL", "debug")
    monkeypatch.setenv("JASPER_SAVE", "results.xml")

    settings = Settings()

    assert settings.screenshots_dir == tmp_path / "shots"
    assert settings.browser.headless is False
    assert settings.logging.level == LogLevel.DEBUG
    assert settings.save == Path("results.xml")


def test_teamcity_detected_from_agent(monkeypatch):
    """Test TeamCity mode on a build agent."""
    monkeypatch.setenv("TEAMCITY_VERSION", "2024.03")
    assert Settings().teamcity is True

    monkeypatch.setenv("JASPER_TEAMCITY", "false")
    assert Settings().teamcity is False


def test_overrides_beat_environment(monkeypatch, tmp_path):
    """Test explicit overrides."""
    (tmp_path / "jasper.yaml").write_text("timeouts:\n  wait_timeout: 10\n")
    monkeypatch.setenv("JASPER_TEAMCITY", "1")

    settings = Settings(teamcity=False, timeouts={"step_timeout": 5})

    assert settings.teamcity is False
    assert settings.timeouts.step_timeout == 5
    assert settings.timeouts.wait_timeout == 10


def test_log_file_is_absolute():
    """Test log file path normalization."""
    settings = Settings(logging={"file": "logs/jasper.log"})

    assert settings.logging.file.is_absolute()
    assert settings.logging.file.name == "jasper.log"


@pytest.mark.parametrize("timeouts", [
    {"wait_timeout": 0},
    {"step_timeout": -1},
    {"delay_between_describe_blocks": -1},
])
def test_invalid_timeouts(timeouts):
    """Test timeout validation."""
    with pytest.raises(ValidationError):
        Settings(timeouts=timeouts)


def test_step_timeout_longer_than_run_warns(caplog):
    """Test the warning about a step timeout that cannot fire."""
    Settings(timeouts={"step_timeout": 100, "timeout": 10})

    assert "Step timeout is longer than the whole run timeout" in caplog.text
