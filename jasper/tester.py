"""Assertion bookkeeping, result rendering and xUnit output."""

import datetime
import logging
import re
import time
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

import click
from pydantic import BaseModel, Field
from tabulate import tabulate

from jasper.core.browser import BrowserEngine, Condition
from jasper.core.context import RunContext
from jasper.core.events import EventEmitter
from jasper.core.logging import colorize

logger = logging.getLogger(__name__)


class AssertionResult(BaseModel):
    """Outcome of a single assertion."""
    success: bool
    type: str
    message: str
    suite: str = ""
    expected: Optional[Any] = None
    actual: Optional[Any] = None
    timestamp: datetime.datetime = Field(default_factory=datetime.datetime.now)


class Tester(EventEmitter):
    """Records assertions and notifies "success" and "fail" listeners.

    Failed assertions never raise: every result is collected and the run
    goes on.
    """

    def __init__(
        self,
        context: RunContext,
        engine: Optional[BrowserEngine] = None,
        echo: Optional[Callable[[str], Any]] = None
    ):
        super().__init__()
        self.context = context
        self.engine = engine
        self.results: List[AssertionResult] = []
        self._echo = echo or click.echo

    def reset(self) -> None:
        self.results = []

    @property
    def passed(self) -> List[AssertionResult]:
        return [r for r in self.results if r.success]

    @property
    def failed(self) -> List[AssertionResult]:
        return [r for r in self.results if not r.success]

    # Output

    def comment(self, message: str) -> None:
        self._echo(colorize(f"# {message}", "COMMENT"))

    def info(self, message: str) -> None:
        self._echo(colorize(message, "PARAMETER"))

    async def record(
        self,
        success: bool,
        message: str,
        type: str = "assert",
        expected: Any = None,
        actual: Any = None
    ) -> AssertionResult:
        """Store an assertion result and notify listeners.

        Args:
            success: Whether the assertion held
            message: Human readable description
            type: Assertion kind, used in failure reports
            expected: Expected value, for failure details
            actual: Actual value, for failure details

        Returns:
            The stored result
        """
        result = AssertionResult(
            success=success,
            type=type,
            message=message,
            suite=self.context.last_describe,
            expected=expected,
            actual=actual,
        )
        self.results.append(result)

        if success:
            self._echo(f"{colorize('PASS', 'INFO')} {message}")
            await self.emit("success", result)
        else:
            self._echo(f"{colorize('FAIL', 'WARNING')} {message}")
            if type != "fail":
                self._echo(f"#    type: {type}")
            if expected is not None or actual is not None:
                self._echo(f"#    got:      {actual!r}")
                self._echo(f"#    expected: {expected!r}")
            await self.emit("fail", result)
        return result

    # Generic assertions

    async def assert_(self, condition: Any, message: Optional[str] = None) -> AssertionResult:
        return await self.record(
            bool(condition),
            message or "Subject is strictly true",
            type="assert",
            expected=True,
            actual=bool(condition),
        )

    assert_true = assert_

    async def assert_equals(self, actual: Any, expected: Any, message: Optional[str] = None) -> AssertionResult:
        return await self.record(
            actual == expected,
            message or "Subject equals the expected value",
            type="assertEquals",
            expected=expected,
            actual=actual,
        )

    async def assert_not_equals(self, actual: Any, unexpected: Any, message: Optional[str] = None) -> AssertionResult:
        return await self.record(
            actual != unexpected,
            message or "Subject doesn't equal what it shouldn't be",
            type="assertNotEquals",
            expected=unexpected,
            actual=actual,
        )

    async def fail(self, message: str) -> AssertionResult:
        return await self.record(False, message, type="fail")

    # Page assertions

    def _require_engine(self) -> BrowserEngine:
        if self.engine is None:
            raise RuntimeError("Page assertions need a browser engine")
        return self.engine

    async def assert_exists(self, selector: str, message: Optional[str] = None) -> AssertionResult:
        found = bool(await self._require_engine().exists(selector))
        return await self.record(
            found,
            message or f"Found an element matching: {selector}",
            type="assertSelectorExists",
        )

    assert_selector_exists = assert_exists

    async def assert_eval(self, condition: Condition, message: Optional[str] = None) -> AssertionResult:
        value = bool(await self._require_engine().check(condition))
        return await self.record(
            value,
            message or "Evaluated function returns true",
            type="assertEval",
        )

    async def assert_eval_equals(
        self,
        expression: str,
        expected: Any,
        message: Optional[str] = None
    ) -> AssertionResult:
        actual = await self._require_engine().evaluate(expression)
        return await self.record(
            actual == expected,
            message or "Evaluated function returns the expected value",
            type="assertEvalEquals",
            expected=expected,
            actual=actual,
        )

    async def assert_http_status(self, status: int, message: Optional[str] = None) -> AssertionResult:
        actual = self._require_engine().last_status
        return await self.record(
            actual == status,
            message or f"HTTP status code is: {status}",
            type="assertHttpStatus",
            expected=status,
            actual=actual,
        )

    async def assert_text_exists(self, text: str, message: Optional[str] = None) -> AssertionResult:
        body = await self._require_engine().get_text()
        return await self.record(
            text in body,
            message or "Found expected text within the document body",
            type="assertTextExists",
        )

    async def assert_title(self, title: str, message: Optional[str] = None) -> AssertionResult:
        actual = await self._require_engine().get_title()
        return await self.record(
            actual == title,
            message or f"Page title is: {title}",
            type="assertTitle",
            expected=title,
            actual=actual,
        )

    async def assert_url_match(self, pattern: str, message: Optional[str] = None) -> AssertionResult:
        url = await self._require_engine().current_url()
        matched = re.search(pattern, url) is not None
        return await self.record(
            matched,
            message or "Current url matches the provided pattern",
            type="assertUrlMatch",
            expected=getattr(pattern, "pattern", pattern),
            actual=url,
        )

    # Results

    def render_results(
        self,
        exit_code: int,
        save: Optional[Union[str, Path]] = None,
        elapsed: Optional[float] = None
    ) -> int:
        """Print the summary and optionally write xUnit results.

        Args:
            exit_code: Exit code of the run
            save: Optional xUnit output file
            elapsed: Run duration in seconds

        Returns:
            The exit code, unchanged
        """
        if elapsed is None:
            elapsed = time.time() - self.context.start_time

        total = len(self.results)
        passed = len(self.passed)
        failed = len(self.failed)

        if failed:
            rows = [[r.suite, r.type, r.message] for r in self.failed]
            self._echo(tabulate(rows, headers=["Suite", "Type", "Message"], tablefmt="grid"))

        status = "FAIL" if exit_code else "PASS"
        summary = (
            f"{status} {total} test{'s' if total != 1 else ''} executed in {elapsed:.3f}s, "
            f"{passed} passed, {failed} failed."
        )
        self._echo(colorize(summary, "RED_BAR" if exit_code else "GREEN_BAR", pad=80))

        if save:
            path = self.save_xunit(save, elapsed)
            self._echo(f"Result log stored in {path}")

        return exit_code

    def save_xunit(self, path: Union[str, Path], elapsed: float = 0.0) -> Path:
        """Write results as an xUnit XML file grouped by suite."""
        path = Path(path)
        by_suite: Dict[str, List[AssertionResult]] = {}
        for result in self.results:
            by_suite.setdefault(result.suite or "jasper", []).append(result)

        root = ET.Element("testsuites", time=f"{elapsed:.3f}")
        for suite, results in by_suite.items():
            failures = sum(1 for r in results if not r.success)
            suite_el = ET.SubElement(
                root,
                "testsuite",
                name=suite,
                tests=str(len(results)),
                failures=str(failures),
                timestamp=results[0].timestamp.isoformat(),
            )
            for result in results:
                case = ET.SubElement(
                    suite_el,
                    "testcase",
                    name=result.message,
                    classname=suite,
                    type=result.type,
                )
                if not result.success:
                    failure = ET.SubElement(case, "failure", type=result.type, message=result.message)
                    if result.expected is not None or result.actual is not None:
                        failure.text = f"got: {result.actual!r}\nexpected: {result.expected!r}"

        path.parent.mkdir(parents=True, exist_ok=True)
        ET.ElementTree(root).write(path, encoding="utf-8", xml_declaration=True)
        logger.info(f"Saved xUnit results to {path}")
        return path
