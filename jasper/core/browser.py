"""Headless browser engine wrapper for Jasper using nodriver."""

import asyncio
import base64
import json
import logging
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

from nodriver import Browser, Tab, cdp, start

from jasper.core.config import BrowserSettings
from jasper.core.events import EventEmitter
from jasper.errors import EngineError, NavigationError

logger = logging.getLogger(__name__)

# A wait condition is either a JavaScript expression evaluated in the page
# or a Python callable (sync or async) returning a truthy value.
Condition = Union[str, Callable[[], Any]]

BOUNDS_SCRIPT = """(() => {
    const el = document.querySelector(%s);
    if (!el) { return null; }
    const rect = el.getBoundingClientRect();
    return {
        top: rect.top + window.scrollY,
        left: rect.left + window.scrollX,
        width: rect.width,
        height: rect.height
    };
})()"""


class BrowserEngine(EventEmitter):
    """Thin adapter over a nodriver browser and its main tab.

    Emits "url.changed", "popup.created" and "popup.closed" with the url
    as the only argument.
    """

    def __init__(self, settings: Optional[BrowserSettings] = None):
        """Initialize the engine.

        Args:
            settings: Browser settings, defaults to BrowserSettings()
        """
        super().__init__()
        self.settings = settings or BrowserSettings()
        self.browser: Optional[Browser] = None
        self.tab: Optional[Tab] = None
        self.client_scripts: List[Path] = list(self.settings.client_scripts)
        self.last_status: Optional[int] = None
        self._current_url: Optional[str] = None

    @property
    def is_running(self) -> bool:
        return self.browser is not None

    async def start(self) -> Browser:
        """Launch the browser if it is not running yet.

        Returns:
            Browser instance
        """
        if self.browser:
            return self.browser

        args = [f"--window-size={self.settings.viewport_width},{self.settings.viewport_height}"]
        if self.settings.user_agent:
            args.append(f"--user-agent={self.settings.user_agent}")
        args.extend(self.settings.extra_args)

        executable = self.settings.executable_path
        try:
            browser = await start(
                headless=self.settings.headless,
                browser_args=args,
                browser_executable_path=str(executable) if executable else None,
            )
        except Exception as e:
            raise EngineError(f"Failed to start browser: {e}")

        self.browser = browser
        self.tab = browser.main_tab
        if self.tab is None:
            self.stop()
            raise EngineError("Browser started without a main tab")

        self.tab.add_handler(cdp.network.ResponseReceived, self._on_response)
        self.tab.add_handler(cdp.page.FrameNavigated, self._on_frame_navigated)
        browser.connection.add_handler(cdp.target.TargetCreated, self._on_target_created)

        await self.tab.send(cdp.emulation.set_device_metrics_override(
            width=self.settings.viewport_width,
            height=self.settings.viewport_height,
            device_scale_factor=1,
            mobile=False,
        ))

        logger.info(f"Started browser (headless={self.settings.headless})")
        return browser

    def stop(self) -> None:
        """Stop the browser."""
        if self.browser is None:
            return
        self.browser.stop()
        self.browser = None
        self.tab = None
        self._current_url = None
        logger.info("Stopped browser")

    def _require_tab(self) -> Tab:
        if self.tab is None:
            raise EngineError("Browser is not running")
        return self.tab

    # Event handlers

    async def _on_response(self, event: cdp.network.ResponseReceived) -> None:
        if event.type_ != cdp.network.ResourceType.DOCUMENT:
            return
        # The main frame of a page target shares the target id
        if self.tab is not None and str(event.frame_id) != str(self.tab.target.target_id):
            return
        self.last_status = event.response.status

    async def _on_frame_navigated(self, event: cdp.page.FrameNavigated) -> None:
        if event.frame.parent_id is not None:
            return
        url = event.frame.url
        if url != self._current_url:
            self._current_url = url
            await self.emit("url.changed", url)

    async def _on_target_created(self, event: cdp.target.TargetCreated) -> None:
        info = event.target_info
        if info.type_ != "page":
            return
        if self.tab is not None and info.target_id == self.tab.target.target_id:
            return
        await self.emit("popup.created", info.url)

    # Navigation

    async def open(self, url: str) -> None:
        """Navigate the main tab and run client scripts.

        Args:
            url: Address to open

        Raises:
            NavigationError: If the page could not be opened
        """
        tab = self._require_tab()
        self.last_status = None
        logger.debug(f"Opening {url}")
        try:
            await tab.get(url)
        except Exception as e:
            raise NavigationError(f"Failed to open {url}: {e}", {"url": url})

        for script in self.client_scripts:
            await self.evaluate(Path(script).read_text())

    async def current_url(self) -> str:
        return await self.evaluate("document.location.href")

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)

    # Evaluation

    async def evaluate(self, expression: str) -> Any:
        """Evaluate a JavaScript expression in the page.

        Promises are awaited and the result is returned by value.

        Raises:
            EngineError: If the expression threw in the page
        """
        tab = self._require_tab()
        try:
            remote_object, errors = await tab.send(cdp.runtime.evaluate(
                expression=expression,
                await_promise=True,
                return_by_value=True,
                user_gesture=True,
            ))
        except Exception as e:
            raise EngineError(f"Evaluation failed: {e}", {"expression": expression[:200]})
        if errors:
            raise EngineError(
                f"Evaluation failed: {errors.text}",
                {"expression": expression[:200]}
            )
        return remote_object.value

    async def check(self, condition: Condition) -> bool:
        """Evaluate a wait condition once."""
        if isinstance(condition, str):
            return bool(await self.evaluate(condition))
        result = condition()
        if asyncio.iscoroutine(result):
            result = await result
        return bool(result)

    async def wait_for(
        self,
        condition: Condition,
        timeout: float,
        interval: float = 0.1
    ) -> bool:
        """Poll a condition until it holds or the timeout expires.

        Args:
            condition: JavaScript expression or callable
            timeout: Seconds to wait
            interval: Seconds between checks

        Returns:
            True if the condition was met, False on timeout
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while True:
            try:
                if await self.check(condition):
                    return True
            except EngineError as e:
                # Execution contexts come and go while a page navigates
                logger.debug(f"Wait condition not evaluable yet: {e}")
            if loop.time() >= deadline:
                return False
            await asyncio.sleep(interval)

    async def exists(self, selector: str) -> bool:
        return bool(await self.evaluate(f"document.querySelector({json.dumps(selector)}) !== null"))

    async def get_element_bounds(self, selector: str) -> Dict[str, float]:
        """Page coordinates of the first element matching a selector.

        Raises:
            EngineError: If no element matches
        """
        bounds = await self.evaluate(BOUNDS_SCRIPT % json.dumps(selector))
        if not bounds:
            raise EngineError(f"No element matches selector {selector}", {"selector": selector})
        return bounds

    async def get_html(self) -> str:
        return await self.evaluate("document.documentElement.outerHTML")

    async def get_text(self) -> str:
        return await self.evaluate("document.body ? document.body.textContent : ''") or ""

    async def get_title(self) -> str:
        return await self.evaluate("document.title") or ""

    # Screenshots

    async def capture(self, path: Union[str, Path], clip: Optional[Dict[str, float]] = None) -> Path:
        """Save a PNG screenshot of the viewport or of a page area.

        Args:
            path: Output file
            clip: Optional area with top, left, width and height in page pixels

        Returns:
            Path of the written file
        """
        tab = self._require_tab()
        path = Path(path)

        viewport = None
        if clip:
            viewport = cdp.page.Viewport(
                x=max(clip["left"], 0),
                y=max(clip["top"], 0),
                width=clip["width"],
                height=clip["height"],
                scale=1,
            )
        try:
            data = await tab.send(cdp.page.capture_screenshot(
                format_="png",
                clip=viewport,
                capture_beyond_viewport=viewport is not None,
            ))
        except Exception as e:
            raise EngineError(f"Screenshot failed: {e}", {"path": str(path)})

        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(base64.b64decode(data))
        logger.debug(f"Captured {path}")
        return path

    # Cookies

    async def get_cookies(self) -> List[Dict[str, Any]]:
        if self.browser is None:
            raise EngineError("Browser is not running")
        cookies = await self.browser.cookies.get_all()
        return [
            {
                "name": cookie.name,
                "value": cookie.value,
                "domain": cookie.domain,
                "path": cookie.path,
            }
            for cookie in cookies
        ]

    async def clear_cookies(self) -> None:
        if self.browser is None:
            raise EngineError("Browser is not running")
        await self.browser.cookies.clear()

    # Popups and client scripts

    @property
    def popups(self) -> List[Tab]:
        if self.browser is None:
            return []
        return [tab for tab in self.browser.tabs if tab is not self.tab]

    async def close_popups(self) -> int:
        """Close every tab except the main one.

        Returns:
            Number of closed popups
        """
        popups = self.popups
        for popup in popups:
            url = popup.target.url
            await popup.close()
            await self.emit("popup.closed", url)
        return len(popups)

    def inject_script(self, script: Union[str, Path]) -> None:
        script = Path(script)
        if script not in self.client_scripts:
            self.client_scripts.append(script)

    def remove_script(self, script: Union[str, Path]) -> None:
        script = Path(script)
        self.client_scripts = [s for s in self.client_scripts if s != script]
