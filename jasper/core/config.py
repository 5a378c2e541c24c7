"""
Configuration management for Jasper using Pydantic.
"""

import json
import logging
import os
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from jasper.errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILES = ("jasper.yaml", "jasper.yml", "jasper.json")
TRUTHY = {"1", "true", "yes", "on"}


class LogLevel(str, Enum):
    """Log levels for Jasper."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class TimeoutSettings(BaseModel):
    """Timeouts and delays, in seconds."""

    step_timeout: float = Field(
        default=600,
        gt=0,
        description="Maximum execution time of a single describe block"
    )
    wait_timeout: float = Field(
        default=300,
        gt=0,
        description="Default timeout for wait_for conditions"
    )
    timeout: float = Field(
        default=3600,
        gt=0,
        description="Maximum execution time of the whole run"
    )
    remote_site_timeout: float = Field(
        default=30,
        gt=0,
        description="How long open_and_wait and redirects wait for a remote site"
    )
    delay_between_describe_blocks: float = Field(
        default=5,
        ge=0,
        description="Pause before each describe block"
    )
    wait_after_page_load: float = Field(
        default=5,
        ge=0,
        description="Pause after a page passed its readiness check"
    )
    poll_interval: float = Field(
        default=0.1,
        gt=0,
        description="Polling interval of wait conditions"
    )


class BrowserSettings(BaseModel):
    """Browser-specific settings."""

    headless: bool = Field(
        default=True,
        description="Run the browser in headless mode"
    )
    viewport_width: int = Field(
        default=1000,
        description="Viewport width in pixels"
    )
    viewport_height: int = Field(
        default=800,
        description="Viewport height in pixels"
    )
    user_agent: Optional[str] = Field(
        default=None,
        description="User agent string"
    )
    executable_path: Optional[Path] = Field(
        default=None,
        description="Path to the Chrome executable"
    )
    extra_args: List[str] = Field(
        default=[],
        description="Extra arguments to pass to the browser"
    )
    client_scripts: List[Path] = Field(
        default=[],
        description="Scripts evaluated in every page after it loads"
    )


class LoggingSettings(BaseModel):
    """Logging-specific settings."""
    level: LogLevel = Field(
        default=LogLevel.INFO,
        description="Log level"
    )
    file: Optional[Path] = Field(
        default=None,
        description="Path to log file"
    )
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log format"
    )
    rotate_size: int = Field(
        default=10 * 1024 * 1024,  # 10 MB
        description="Size in bytes before log rotation"
    )
    backup_count: int = Field(
        default=5,
        description="Number of backup logs to keep"
    )

    @field_validator("file", mode="before")
    @classmethod
    def validate_log_file_path(cls, value: Any) -> Optional[Path]:
        """Validate and convert log file path to Path object.

        Args:
            value: Path value

        Returns:
            Path object or None
        """
        if value is None:
            return None

        if isinstance(value, str):
            return Path(value).expanduser().absolute()

        if isinstance(value, Path):
            return value.expanduser().absolute()

        raise ValueError(f"Invalid log file path: {value}")


class Settings(BaseModel):
    """Main settings for Jasper."""

    config_file: Optional[Path] = Field(
        default=None,
        description="Path to configuration file"
    )
    screenshots_dir: Path = Field(
        default=Path("screenshots"),
        description="Directory for screenshots and HTML dumps"
    )
    capture_padding: int = Field(
        default=200,
        ge=0,
        description="Padding in pixels around captured selectors"
    )
    teamcity: bool = Field(
        default=False,
        description="Emit TeamCity service messages"
    )
    save: Optional[Path] = Field(
        default=None,
        description="Write xUnit results to this file"
    )
    start_url: Optional[str] = Field(
        default=None,
        description="Page opened before the first describe block"
    )

    # Component settings
    timeouts: TimeoutSettings = Field(
        default_factory=TimeoutSettings,
        description="Timeouts and delays"
    )
    browser: BrowserSettings = Field(
        default_factory=BrowserSettings,
        description="Browser settings"
    )
    logging: LoggingSettings = Field(
        default_factory=LoggingSettings,
        description="Logging settings"
    )

    def __init__(
        self,
        config_file: Optional[Union[str, Path]] = None,
        **data: Any
    ):
        """Initialize settings.

        Args:
            config_file: Path to configuration file
            **data: Additional settings
        """
        if isinstance(config_file, str):
            config_file = Path(config_file)

        # Load settings in order of precedence
        settings: Dict[str, Any] = {}

        # 1. Project config in the working directory
        for name in DEFAULT_CONFIG_FILES:
            default_config = Path.cwd() / name
            if default_config.exists():
                _deep_update(settings, self._load_from_file(default_config))
                break

        # 2. Explicit config file
        if config_file:
            if not config_file.exists():
                raise ConfigError(
                    f"Configuration file {config_file} not found",
                    {"config_file": str(config_file)}
                )
            _deep_update(settings, self._load_from_file(config_file))

        # 3. Environment variables
        _deep_update(settings, self._load_from_env())

        # 4. Explicit overrides
        _deep_update(settings, data)

        super().__init__(**settings)
        self.config_file = config_file

    def _load_from_env(self) -> Dict[str, Any]:
        """Load settings from environment variables.

        Returns:
            Dictionary of settings from environment variables
        """
        settings: Dict[str, Any] = {}
        env_prefix = "JASPER_"

        if os.environ.get(f"{env_prefix}SCREENSHOTS_DIR"):
            settings["screenshots_dir"] = Path(os.environ[f"{env_prefix}SCREENSHOTS_DIR"])

        # TeamCity agents export TEAMCITY_VERSION to every build step
        if os.environ.get("TEAMCITY_VERSION"):
            settings["teamcity"] = True
        if os.environ.get(f"{env_prefix}TEAMCITY"):
            settings["teamcity"] = os.environ[f"{env_prefix}TEAMCITY"].lower() in TRUTHY

        if os.environ.get(f"{env_prefix}SAVE"):
            settings["save"] = Path(os.environ[f"{env_prefix}SAVE"])

        if os.environ.get(f"{env_prefix}HEADLESS"):
            settings.setdefault("browser", {})["headless"] = (
                os.environ[f"{env_prefix}HEADLESS"].lower() in TRUTHY
            )

        if os.environ.get(f"{env_prefix}LOG_LEVEL"):
            settings.setdefault("logging", {})["level"] = os.environ[f"{env_prefix}LOG_LEVEL"].upper()

        if os.environ.get(f"{env_prefix}LOG_FILE"):
            settings.setdefault("logging", {})["file"] = Path(os.environ[f"{env_prefix}LOG_FILE"])

        return settings

    def _load_from_file(self, config_file: Path) -> Dict[str, Any]:
        """Load settings from configuration file.

        Args:
            config_file: Path to configuration file

        Returns:
            Dictionary of settings from file
        """
        try:
            with open(config_file, "r") as f:
                if config_file.suffix.lower() in [".yaml", ".yml"]:
                    return yaml.safe_load(f) or {}
                elif config_file.suffix.lower() == ".json":
                    return json.load(f)
                else:
                    logger.warning(f"Unsupported configuration file format: {config_file.suffix}")
                    return {}
        except (OSError, ValueError, yaml.YAMLError) as e:
            raise ConfigError(
                f"Error loading configuration file {config_file}: {e}",
                {"config_file": str(config_file)}
            )

    @model_validator(mode="after")
    def validate_timeouts(self) -> "Settings":
        """Warn about timeouts that can never fire.

        Returns:
            Validated settings
        """
        if self.timeouts.step_timeout > self.timeouts.timeout:
            logger.warning("Step timeout is longer than the whole run timeout")

        return self

    @field_validator("screenshots_dir", mode="before")
    @classmethod
    def validate_path(cls, value: Any) -> Path:
        """Validate and convert path to Path object.

        Args:
            value: Path value

        Returns:
            Path object
        """
        if isinstance(value, str):
            return Path(value).expanduser()

        if isinstance(value, Path):
            return value.expanduser()

        raise ValueError(f"Invalid path: {value}")


def _deep_update(target: Dict[str, Any], source: Dict[str, Any]) -> Dict[str, Any]:
    """Merge nested dictionaries in place."""
    for key, value in source.items():
        if isinstance(value, dict) and isinstance(target.get(key), dict):
            _deep_update(target[key], value)
        else:
            target[key] = value
    return target
