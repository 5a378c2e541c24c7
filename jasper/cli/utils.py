"""
Shared utilities for the Jasper CLI.
"""

import importlib.util
import logging
import sys
from functools import wraps
from pathlib import Path
from typing import Any, Dict, List

import click
from tabulate import tabulate

from jasper.core.config import Settings
from jasper.errors import SuiteLoadError
from jasper.suite import Jasper

logger = logging.getLogger(__name__)

pass_settings = click.make_pass_decorator(Settings, ensure=True)


def handle_error(func):
    """Decorator for handling command errors."""
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except Exception as e:
            logger.error(f"Command error: {e}", exc_info=True)
            click.echo(f"Error: {str(e)}", err=True)
            sys.exit(1)
    return wrapper


def display_table(data: List[List[Any]], headers: List[str]) -> None:
    """Display a formatted table.

    Args:
        data: List of rows (each row is a list of values)
        headers: List of column headers
    """
    click.echo(tabulate(data, headers=headers, tablefmt="grid"))


def format_dict(d: Dict[str, Any], indent: int = 0) -> List[str]:
    """Format dictionary for display.

    Args:
        d: Dictionary to format
        indent: Indentation level

    Returns:
        List of formatted string lines
    """
    lines = []
    for key, value in d.items():
        if isinstance(value, dict):
            lines.append("  " * indent + f"{key}:")
            lines.extend(format_dict(value, indent + 1))
        else:
            lines.append("  " * indent + f"{key}: {value}")
    return lines


def load_runners(path: Path) -> List[Jasper]:
    """Import a test file and collect its module-level Jasper instances.

    Args:
        path: Python file defining suites

    Returns:
        Runners in definition order

    Raises:
        SuiteLoadError: If the file cannot be imported or defines no runner
    """
    path = Path(path).resolve()
    spec = importlib.util.spec_from_file_location(f"jasper_suite_{path.stem}", path)
    if spec is None or spec.loader is None:
        raise SuiteLoadError(f"Cannot import {path}", {"path": str(path)})

    module = importlib.util.module_from_spec(spec)

    # Let test files import helpers that live next to them
    sys.path.insert(0, str(path.parent))
    try:
        spec.loader.exec_module(module)
    except Exception as e:
        raise SuiteLoadError(f"Failed to load {path}: {e}", {"path": str(path)})
    finally:
        if str(path.parent) in sys.path:
            sys.path.remove(str(path.parent))

    runners = [value for value in vars(module).values() if isinstance(value, Jasper)]
    if not runners:
        raise SuiteLoadError(f"No Jasper instance found in {path}", {"path": str(path)})

    logger.debug(f"Loaded {len(runners)} runner(s) from {path}")
    return runners
