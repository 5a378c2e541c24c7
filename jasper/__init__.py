"""
Jasper - describe-style remote dependency tests over a headless browser.
"""

from jasper.core.config import Settings
from jasper.errors import JasperError
from jasper.suite import Jasper, Suite, SuiteKind, SuiteStatus
from jasper.utils import format_future_date

__version__ = "0.1.0"

__all__ = [
    "Jasper",
    "JasperError",
    "Settings",
    "Suite",
    "SuiteKind",
    "SuiteStatus",
    "format_future_date",
]
