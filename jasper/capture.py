"""Screenshot and HTML dump helpers."""

import logging
import re
import time
from pathlib import Path
from typing import Dict, Optional, Union

from jasper.errors import JasperError

logger = logging.getLogger(__name__)


def artifact_name(kind: str, describe: str, extension: str, timestamp: Optional[int] = None) -> str:
    """File name of a failure artifact.

    Args:
        kind: Artifact trigger, e.g. "fail", "error", "ignored"
        describe: Current describe block, non-word characters are dropped
        extension: File extension without the dot
        timestamp: Milliseconds since the epoch, defaults to now

    Returns:
        File name like jasper-fail-1700000000000-Homepage.png
    """
    if timestamp is None:
        timestamp = int(time.time() * 1000)
    return f"jasper-{kind}-{timestamp}-{re.sub(r'[^A-Za-z0-9_]', '', describe)}.{extension}"


def pad_bounds(bounds: Dict[str, float], padding: float) -> Dict[str, float]:
    """Grow element bounds by padding, split evenly around the element."""
    return {
        "top": bounds["top"] - padding / 2,
        "left": bounds["left"] - padding / 2,
        "width": bounds["width"] + padding,
        "height": bounds["height"] + padding,
    }


class CaptureMixin:
    """Screenshot helpers for the runner.

    Failure artifacts are best effort: capture errors are logged, not raised.
    """

    @property
    def screenshots_dir(self) -> Path:
        return Path(self.settings.screenshots_dir)

    async def capture_selector(
        self,
        filename: Union[str, Path],
        selector: str,
        padding: Optional[int] = None
    ) -> Path:
        """Capture the area around an element."""
        if padding is None:
            padding = self.settings.capture_padding
        bounds = await self.engine.get_element_bounds(selector)
        return await self.engine.capture(filename, pad_bounds(bounds, padding))

    async def capture_selectors(self, selectors: Dict[str, str], padding: Optional[int] = None) -> None:
        """Capture every existing element of a {filename: selector} mapping."""
        for filename, selector in selectors.items():
            if await self.engine.exists(selector):
                await self.capture_selector(self.screenshots_dir / filename, selector, padding)
            else:
                logger.debug(f"Not capturing missing selector {selector}")

    async def capture_page(self, filename: Union[str, Path]) -> Path:
        return await self.engine.capture(self.screenshots_dir / filename)

    async def rescue_screenshot(self, kind: str) -> Optional[Path]:
        """Save a screenshot named after the current describe block."""
        path = self.screenshots_dir / artifact_name(kind, self.context.last_describe, "png")
        self.test.comment(f"Screenshot saved to {path}")
        try:
            return await self.engine.capture(path)
        except (JasperError, OSError) as e:
            logger.error(f"Failed to save screenshot {path}: {e}")
            return None

    async def dump_html_to_file(self, kind: str) -> Optional[Path]:
        """Save the page HTML named after the current describe block."""
        path = self.screenshots_dir / artifact_name(kind, self.context.last_describe, "html")
        self.test.comment(f"HTML dump saved to {path}")
        try:
            html = await self.engine.get_html()
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(html or "", encoding="utf-8")
            return path
        except (JasperError, OSError) as e:
            logger.error(f"Failed to save HTML dump {path}: {e}")
            return None
