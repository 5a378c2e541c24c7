"""Describe-style suite runner."""

import asyncio
import datetime
import logging
from enum import Enum
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

import click
from pydantic import BaseModel

from jasper.assertions import AssertionsMixin
from jasper.capture import CaptureMixin
from jasper.core.browser import BrowserEngine, Condition
from jasper.core.config import Settings
from jasper.core.context import RunContext
from jasper.core.logging import colorize
from jasper.errors import JasperError, ScriptTimeoutError, StepTimeoutError, WaitTimeoutError
from jasper.reporter import TeamCityReporter
from jasper.tester import AssertionResult, Tester
from jasper.utils import format_future_date

logger = logging.getLogger(__name__)

SuiteFn = Callable[["Jasper"], Union[Awaitable[Any], Any]]


class SuiteKind(str, Enum):
    """How a suite was registered."""
    DESCRIBE = "describe"
    DESCRIBE_ONLY = "describe_only"
    XDESCRIBE = "xdescribe"


class SuiteStatus(str, Enum):
    """Status of a suite."""
    PENDING = "pending"
    RUNNING = "running"
    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"
    IGNORED = "ignored"


class Suite(BaseModel):
    """A registered describe block."""
    description: str
    fn: Optional[Callable] = None
    kind: SuiteKind = SuiteKind.DESCRIBE
    status: SuiteStatus = SuiteStatus.PENDING
    error: Optional[Dict[str, Any]] = None
    start_time: Optional[datetime.datetime] = None
    end_time: Optional[datetime.datetime] = None

    def reset(self) -> None:
        """Forget the outcome of a previous run."""
        self.status = SuiteStatus.PENDING
        self.error = None
        self.start_time = None
        self.end_time = None


async def _call(fn: Callable, *args: Any) -> Any:
    result = fn(*args)
    if asyncio.iscoroutine(result):
        result = await result
    return result


class Jasper(AssertionsMixin, CaptureMixin):
    """Runs describe blocks one after another against a single browser.

    Failures never abort the run: they are logged, reported, captured and
    reflected in the exit code.

    Example:
        jasper = Jasper()

        @jasper.describe("Homepage")
        async def homepage(j):
            await j.open_and_wait("https://example.com", "document.readyState === 'complete'")
            await j.assert_selectors({"Main heading": "h1"})
    """

    format_future_date = staticmethod(format_future_date)

    def __init__(
        self,
        settings: Optional[Settings] = None,
        engine: Optional[BrowserEngine] = None,
        echo: Optional[Callable[[str], Any]] = None
    ):
        """Initialize the runner.

        Args:
            settings: Settings, loaded from config files and environment if omitted
            engine: Browser engine, built from settings.browser if omitted
            echo: Console writer, defaults to click.echo
        """
        self.suites: List[Suite] = []
        self.context = RunContext()
        self.engine: Optional[BrowserEngine] = None
        self._engine_override = engine
        self._echo = echo or click.echo
        self.configure(settings or Settings())

    def configure(self, settings: Settings) -> None:
        """Apply settings, rebuilding the engine, reporter and tester.

        Registered suites are kept. A rebuilt engine inherits the client
        scripts and listeners of the previous one.
        """
        previous = self.engine
        if previous is not None:
            previous.off("url.changed", self._on_url_changed)
            previous.off("popup.created", self._on_popup_created)
            previous.off("popup.closed", self._on_popup_closed)

        self.settings = settings
        self.engine = self._engine_override or BrowserEngine(settings.browser)
        if previous is not None and previous is not self.engine:
            for script in previous.client_scripts:
                self.engine.inject_script(script)
            previous.copy_listeners_to(self.engine)
        self.reporter = TeamCityReporter(enabled=settings.teamcity, echo=self._echo)
        self.test = Tester(self.context, self.engine, echo=self._echo)

        self.engine.on("url.changed", self._on_url_changed)
        self.engine.on("popup.created", self._on_popup_created)
        self.engine.on("popup.closed", self._on_popup_closed)
        self.test.on("success", self._on_success)
        self.test.on("fail", self._on_fail)

    # Event handlers

    def _on_url_changed(self, url: str) -> None:
        logger.info(f"{self.context.benchmark()} url changed to: {url}")

    def _on_popup_created(self, url: str) -> None:
        logger.info(f"{self.context.benchmark()} popup created for url: {url}")

    def _on_popup_closed(self, url: str) -> None:
        logger.info(f"{self.context.benchmark()} popup closed for url: {url}")

    def _on_success(self, result: AssertionResult) -> None:
        self.reporter.echo(result.message)

    async def _on_fail(self, result: AssertionResult) -> None:
        self.context.mark_failed()
        self.reporter.echo(result.message, failed=True)
        await self.rescue_screenshot("fail")
        await self.dump_html_to_file("fail")

    async def _on_error(self, error: Exception, suite: Suite) -> None:
        self.context.mark_failed()
        suite.status = SuiteStatus.FAILED
        if isinstance(error, JasperError):
            suite.error = error.to_dict()
            logger.error(f'Error in "{suite.description}": {error}')
        else:
            suite.error = {"type": type(error).__name__, "message": str(error)}
            logger.exception(f'Error in "{suite.description}"')
        await self.rescue_screenshot("error")
        self._echo(str(error))

    async def _on_step_timeout(self, index: int, suite: Suite) -> None:
        error = StepTimeoutError(index, self.settings.timeouts.step_timeout)
        self.context.mark_failed()
        suite.status = SuiteStatus.FAILED
        suite.error = error.to_dict()
        logger.error(colorize(error.message, "RED_BAR", pad=80))
        logger.info(f"{self.context.benchmark()} step timeout")
        await self.rescue_screenshot("timeout")

    async def _on_wait_timeout(self, timeout: float) -> None:
        error = WaitTimeoutError(timeout)
        self.context.mark_failed()
        logger.error(colorize(error.message, "RED_BAR", pad=80))
        await self.rescue_screenshot("timeout")

    # Registration

    def _register(self, description: str, fn: Optional[SuiteFn], kind: SuiteKind):
        if fn is None:
            def decorator(f: SuiteFn) -> SuiteFn:
                self._register(description, f, kind)
                return f
            return decorator
        self.suites.append(Suite(description=description, fn=fn, kind=kind))
        return fn

    def describe(self, description: str, fn: Optional[SuiteFn] = None):
        """Register a describe block, directly or as a decorator.

        Args:
            description: Suite name, used in output and artifact names
            fn: Callable receiving this runner, sync or async
        """
        return self._register(description, fn, SuiteKind.DESCRIBE)

    def describe_only(self, description: str, fn: Optional[SuiteFn] = None):
        """Register a describe block and skip every plain describe block.

        The skip check happens when suites run, so blocks registered before
        this call are skipped as well.
        """
        self.context.only_describe_active = True
        return self._register(description, fn, SuiteKind.DESCRIBE_ONLY)

    def xdescribe(self, description: str, fn: Optional[SuiteFn] = None):
        """Register a describe block that is reported as ignored and never runs."""
        self.suites.append(Suite(description=description, fn=fn, kind=SuiteKind.XDESCRIBE))
        if fn is None:
            return lambda f: f
        return fn

    # Navigation helpers

    async def start(self, url: Optional[str] = None) -> None:
        """Launch the browser and optionally open a first page."""
        await self.engine.start()
        if url:
            await self.engine.open(url)

    async def then_open(self, url: str, then: Optional[Callable] = None) -> None:
        await self.engine.open(url)
        if then:
            await _call(then)

    async def wait(self, seconds: float, then: Optional[Callable] = None) -> None:
        await self.engine.sleep(seconds)
        if then:
            await _call(then)

    async def wait_for(
        self,
        test: Condition,
        then: Optional[Callable] = None,
        on_timeout: Optional[Callable] = None,
        timeout: Optional[float] = None
    ) -> bool:
        """Wait for a condition, then run a callback.

        Without on_timeout, an expired wait is a failure of the run.

        Args:
            test: JavaScript expression or callable
            then: Called once the condition holds
            on_timeout: Called if the condition never holds
            timeout: Seconds, defaults to the configured wait timeout

        Returns:
            Whether the condition was met
        """
        if timeout is None:
            timeout = self.settings.timeouts.wait_timeout

        met = await self.engine.wait_for(test, timeout, self.settings.timeouts.poll_interval)
        if met:
            if then:
                await _call(then)
            return True

        if on_timeout:
            await _call(on_timeout)
        else:
            await self._on_wait_timeout(timeout)
        return False

    async def open_and_wait(
        self,
        url: str,
        ready: Condition,
        then: Optional[Callable] = None
    ) -> bool:
        """Open a remote page and wait for it to become ready.

        A page that never becomes ready is reported as ignored rather than
        failed, with a screenshot and HTML dump for inspection.

        Args:
            url: Page to open
            ready: Readiness condition, JavaScript expression or callable
            then: Called after the page is ready and settled

        Returns:
            Whether the page became ready
        """
        await self.engine.open(url)
        remote_site_timeout = self.settings.timeouts.remote_site_timeout

        async def wait_then():
            await self.engine.sleep(self.settings.timeouts.wait_after_page_load)
            if then:
                await _call(then)

        async def give_up():
            msg = f"Giving up after {remote_site_timeout:g} seconds."
            await self.rescue_screenshot("ignored")
            await self.dump_html_to_file("ignored")
            self.reporter.ignored(self.context.last_describe, msg)
            self.test.comment(msg)

        return await self.wait_for(ready, wait_then, give_up, remote_site_timeout)

    async def close_popups(self) -> int:
        return await self.engine.close_popups()

    def inject_script(self, script: Union[str, Path]) -> None:
        self.engine.inject_script(script)

    def remove_script(self, script: Union[str, Path]) -> None:
        self.engine.remove_script(script)

    # Running

    async def run_suite(self, index: int, suite: Suite) -> None:
        """Run a single registered suite."""
        if suite.kind == SuiteKind.XDESCRIBE:
            self.test.comment(suite.description)
            self.reporter.ignored(suite.description, "Tests intentionally skipped.")
            suite.status = SuiteStatus.IGNORED
            return

        if self.context.only_describe_active and suite.kind != SuiteKind.DESCRIBE_ONLY:
            self._echo(f'Skipping "{suite.description}" due to describeOnly')
            suite.status = SuiteStatus.SKIPPED
            return

        await self.engine.sleep(self.settings.timeouts.delay_between_describe_blocks)
        logger.info(f"{self.context.benchmark()} step started")

        try:
            await self.engine.clear_cookies()
        except JasperError as e:
            logger.warning(f"Could not clear cookies: {e}")

        self.context.last_describe = suite.description
        self.test.comment(suite.description)
        self.reporter.suite_started(suite.description)

        suite.status = SuiteStatus.RUNNING
        suite.start_time = datetime.datetime.now()
        failures_before = len(self.test.failed)
        step_timeout = asyncio.timeout(self.settings.timeouts.step_timeout)
        try:
            async with step_timeout:
                await _call(suite.fn, self)
        except TimeoutError as e:
            if step_timeout.expired():
                await self._on_step_timeout(index, suite)
            else:
                await self._on_error(e, suite)
        except Exception as e:
            await self._on_error(e, suite)
        else:
            failed = len(self.test.failed) > failures_before
            suite.status = SuiteStatus.FAILED if failed else SuiteStatus.PASSED
        finally:
            suite.end_time = datetime.datetime.now()
            self.reporter.suite_finished(suite.description)

    async def run(self) -> int:
        """Run every registered suite and render the results.

        Returns:
            Exit code, 1 if anything failed
        """
        self.context.reset()
        self.test.reset()
        for suite in self.suites:
            suite.reset()
        timeout = self.settings.timeouts.timeout
        run_timeout = asyncio.timeout(timeout)

        try:
            async with run_timeout:
                await self.start(self.settings.start_url)
                for index, suite in enumerate(self.suites, start=1):
                    await self.run_suite(index, suite)
        except TimeoutError:
            if not run_timeout.expired():
                raise
            error = ScriptTimeoutError(timeout)
            self.context.mark_failed()
            logger.error(colorize(error.message, "RED_BAR", pad=80))
            # The suite cancelled mid-run never reached its own status update
            for suite in self.suites:
                if suite.status == SuiteStatus.RUNNING:
                    suite.status = SuiteStatus.FAILED
                    suite.error = error.to_dict()
        except JasperError as e:
            self.context.mark_failed()
            logger.error(f"Run aborted: {e}")
        finally:
            self.engine.stop()

        return self.test.render_results(self.context.exit_code, self.settings.save)

    def execute(self) -> int:
        """Run synchronously, for use from scripts."""
        return asyncio.run(self.run())
