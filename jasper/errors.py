"""Error types for Jasper."""

import datetime
import enum
from typing import Any, Dict, Optional


class ErrorCode(enum.Enum):
    """Error codes for Jasper failures."""
    ENGINE_ERROR = "ENGINE_ERROR"
    NAVIGATION_ERROR = "NAVIGATION_ERROR"
    WAIT_TIMEOUT = "WAIT_TIMEOUT"
    STEP_TIMEOUT = "STEP_TIMEOUT"
    SCRIPT_TIMEOUT = "SCRIPT_TIMEOUT"
    SUITE_LOAD_ERROR = "SUITE_LOAD_ERROR"
    CONFIG_ERROR = "CONFIG_ERROR"


class JasperError(Exception):
    """Base class for Jasper errors."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        *args: object
    ) -> None:
        """Initialize Jasper error.

        Args:
            code: Error code
            message: Error message
            context: Additional context information
        """
        super().__init__(message, *args)
        self.code = code
        self.message = message
        self.context = context or {}
        self.timestamp = datetime.datetime.now()

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary format.

        Returns:
            Dictionary representation of the error
        """
        return {
            "code": self.code.value,
            "message": self.message,
            "timestamp": self.timestamp.isoformat(),
            "context": self.context
        }


class EngineError(JasperError):
    """Error raised when the browser engine fails."""
    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(ErrorCode.ENGINE_ERROR, message, context)


class NavigationError(JasperError):
    """Error raised when a page cannot be opened."""
    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(ErrorCode.NAVIGATION_ERROR, message, context)


class WaitTimeoutError(JasperError):
    """Error raised when a wait condition is never met."""
    def __init__(self, timeout: float, context: Optional[Dict[str, Any]] = None):
        super().__init__(
            ErrorCode.WAIT_TIMEOUT,
            f"Wait timeout of {int(timeout * 1000)}ms reached.",
            context
        )
        self.timeout = timeout


class StepTimeoutError(JasperError):
    """Error raised when a describe block runs longer than the step timeout."""
    def __init__(self, step: int, timeout: float, context: Optional[Dict[str, Any]] = None):
        super().__init__(
            ErrorCode.STEP_TIMEOUT,
            f"Maximum step execution timeout exceeded for step {step}",
            {"step": step, "timeout": timeout, **(context or {})}
        )
        self.step = step
        self.timeout = timeout


class ScriptTimeoutError(JasperError):
    """Error raised when the whole run exceeds its timeout."""
    def __init__(self, timeout: float, context: Optional[Dict[str, Any]] = None):
        super().__init__(
            ErrorCode.SCRIPT_TIMEOUT,
            f"Script timeout of {int(timeout * 1000)}ms reached.",
            context
        )
        self.timeout = timeout


class SuiteLoadError(JasperError):
    """Error raised when a test file cannot be loaded."""
    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(ErrorCode.SUITE_LOAD_ERROR, message, context)


class ConfigError(JasperError):
    """Error raised when configuration is invalid."""
    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(ErrorCode.CONFIG_ERROR, message, context)
