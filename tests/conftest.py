"""Common pytest fixtures for Jasper tests."""

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from jasper.core.config import Settings
from jasper.suite import Jasper


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """Isolate tests from config files and environment of the host."""
    for name in [
        "JASPER_SCREENSHOTS_DIR",
        "JASPER_TEAMCITY",
        "JASPER_SAVE",
        "JASPER_HEADLESS",
        "JASPER_LOG_LEVEL",
        "JASPER_LOG_FILE",
        "TEAMCITY_VERSION",
    ]:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def test_settings(tmp_path):
    """Create fast test settings."""
    return Settings(
        screenshots_dir=tmp_path / "screenshots",
        timeouts={
            "delay_between_describe_blocks": 0,
            "wait_after_page_load": 0,
            "remote_site_timeout": 0.05,
            "wait_timeout": 0.05,
            "poll_interval": 0.01,
        },
    )


@pytest.fixture
def mock_engine():
    """Create a mock browser engine."""
    engine = MagicMock()
    engine.last_status = 200
    engine.start = AsyncMock()
    engine.open = AsyncMock()
    engine.sleep = AsyncMock()
    engine.evaluate = AsyncMock(return_value=None)
    engine.check = AsyncMock(return_value=True)
    engine.wait_for = AsyncMock(return_value=True)
    engine.exists = AsyncMock(return_value=True)
    engine.get_element_bounds = AsyncMock(
        return_value={"top": 100, "left": 100, "width": 50, "height": 20}
    )
    engine.get_html = AsyncMock(return_value="<html><body>Hello</body></html>")
    engine.get_text = AsyncMock(return_value="Hello")
    engine.get_title = AsyncMock(return_value="Home")
    engine.current_url = AsyncMock(return_value="https://example.com/")
    engine.get_cookies = AsyncMock(return_value=[])
    engine.clear_cookies = AsyncMock()
    engine.close_popups = AsyncMock(return_value=0)
    engine.capture = AsyncMock(side_effect=lambda path, clip=None: Path(path))
    return engine


@pytest.fixture
def output():
    """Collect echoed console lines."""
    return []


@pytest.fixture
def jasper(test_settings, mock_engine, output):
    """Create a runner over the mock engine."""
    return Jasper(test_settings, engine=mock_engine, echo=output.append)


@pytest.fixture
def teamcity_lines(output):
    """Return the TeamCity service messages echoed so far."""
    def lines():
        return [line for line in output if line.startswith("##teamcity[")]
    return lines
