"""Run state for a Jasper test run."""

import logging
import time
from typing import Optional

from pydantic import BaseModel, Field

from jasper.core.logging import colorize

logger = logging.getLogger(__name__)


class RunContext(BaseModel):
    """Mutable state of a single run.

    The exit code only ever moves from 0 to 1.
    """

    last_describe: str = ""
    exit_code: int = 0
    start_time: float = Field(default_factory=time.time)
    last_benchmark_time: Optional[float] = None
    only_describe_active: bool = False

    def mark_failed(self) -> None:
        """Record that a failure was observed."""
        if self.exit_code == 0:
            logger.debug("Run marked as failed")
        self.exit_code = 1

    @property
    def failed(self) -> bool:
        return self.exit_code != 0

    def benchmark(self, now: Optional[float] = None) -> str:
        """Elapsed time since start and since the previous call.

        Args:
            now: Current timestamp, defaults to time.time()

        Returns:
            Colored "[total] +since" string
        """
        if self.last_benchmark_time is None:
            self.last_benchmark_time = self.start_time

        now = time.time() if now is None else now
        since_last = f"+{now - self.last_benchmark_time:.3f}s"
        total = f"[{now - self.start_time:.3f}s]"
        self.last_benchmark_time = now

        return colorize(f"{total} {since_last}", "PARAMETER")

    def reset(self) -> None:
        """Start a fresh run, keeping the describe_only flag."""
        self.last_describe = ""
        self.exit_code = 0
        self.start_time = time.time()
        self.last_benchmark_time = None
