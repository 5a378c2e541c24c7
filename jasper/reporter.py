"""TeamCity service message reporting."""

import re
from typing import Any, Callable, Dict, Optional

import click

_ESCAPES = {
    "|": "||",
    "'": "|'",
    "[": "|[",
    "]": "|]",
    "\n": "|n",
    "\r": "|r",
}
_ESCAPE_RE = re.compile(r"[|'\[\]\n\r]")


class TeamCityReporter:
    """Writes ##teamcity[...] lines to stdout when enabled."""

    def __init__(self, enabled: bool = False, echo: Optional[Callable[[str], Any]] = None):
        """Initialize the reporter.

        Args:
            enabled: Whether messages are written at all
            echo: Line writer, defaults to click.echo
        """
        self.enabled = enabled
        self._echo = echo or click.echo

    @staticmethod
    def encode(value: Any) -> str:
        """Escape a value for use inside a service message attribute."""
        return _ESCAPE_RE.sub(lambda m: _ESCAPES[m.group(0)], str(value))

    @classmethod
    def format(cls, name: str, attributes: Optional[Dict[str, Any]] = None) -> str:
        message = "##teamcity[" + name
        for key, value in (attributes or {}).items():
            message += f" {key}='{cls.encode(value)}'"
        return message + "]"

    def message(self, name: str, attributes: Optional[Dict[str, Any]] = None) -> None:
        """Write a service message.

        Args:
            name: Message name, e.g. testSuiteStarted
            attributes: Attributes in output order
        """
        if not self.enabled:
            return
        self._echo(self.format(name, attributes))

    def echo(self, message: str, failed: bool = False) -> None:
        """Report a single assertion as a test."""
        self.message("testStarted", {"name": message})
        if failed:
            self.message("testFailed", {"name": message})
        self.message("testFinished", {"name": message})

    def suite_started(self, name: str) -> None:
        self.message("testSuiteStarted", {"name": name})

    def suite_finished(self, name: str) -> None:
        self.message("testSuiteFinished", {"name": name})

    def ignored(self, name: str, message: str) -> None:
        self.message("testIgnored", {"name": name, "message": message})
