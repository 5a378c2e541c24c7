"""
Logging and console coloring for Jasper.
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Optional

import colorama
from colorama import Back, Fore, Style

colorama.init()

# Console styles used by the runner output
STYLES = {
    "RED_BAR": Back.RED + Fore.WHITE + Style.BRIGHT,
    "GREEN_BAR": Back.GREEN + Fore.WHITE + Style.BRIGHT,
    "PARAMETER": Fore.CYAN,
    "COMMENT": Fore.YELLOW,
    "INFO": Fore.GREEN,
    "WARNING": Fore.RED + Style.BRIGHT,
    "ERROR": Fore.WHITE + Back.RED,
}


class ColoredFormatter(logging.Formatter):
    """Custom formatter for colorized console output."""

    COLORS = {
        'DEBUG': 'CYAN',
        'INFO': 'GREEN',
        'WARNING': 'YELLOW',
        'ERROR': 'RED',
        'CRITICAL': 'RED',
    }

    def format(self, record):
        """Format the log record with a colored level name.

        Args:
            record: Log record to format

        Returns:
            Formatted log message
        """
        orig_levelname = record.levelname

        color = getattr(Fore, self.COLORS.get(record.levelname, 'WHITE'), Fore.WHITE)
        record.levelname = f"{color}{record.levelname}{Style.RESET_ALL}"
        try:
            return super().format(record)
        finally:
            record.levelname = orig_levelname


def colorize(text: str, style: str, pad: Optional[int] = None) -> str:
    """Wrap text in the console colors of a named style.

    Args:
        text: Text to colorize
        style: One of the names in STYLES
        pad: Optional width to pad the text to, used for bars

    Returns:
        Colorized text, unchanged if the style is unknown
    """
    if pad:
        text = text.ljust(pad)
    color = STYLES.get(style)
    if not color:
        return text
    return f"{color}{text}{Style.RESET_ALL}"


def setup_logging(settings: "Settings") -> logging.Logger:
    """Set up logging for Jasper.

    Args:
        settings: Application settings containing logging configuration

    Returns:
        Root logger
    """
    log_file = settings.logging.file
    if isinstance(log_file, str):
        log_file = Path(log_file)

    root_logger = logging.getLogger()

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    level = getattr(logging, settings.logging.level.value, logging.INFO)
    root_logger.setLevel(level)

    base_format = settings.logging.format
    file_formatter = logging.Formatter(base_format)
    console_formatter = ColoredFormatter(base_format)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(console_formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=settings.logging.rotate_size,
            backupCount=settings.logging.backup_count
        )
        file_handler.setFormatter(file_formatter)
        root_logger.addHandler(file_handler)

    # nodriver is chatty at INFO
    logging.getLogger("nodriver").setLevel(max(level, logging.WARNING))
    logging.getLogger("uc").setLevel(max(level, logging.WARNING))

    logging.getLogger("jasper").debug(
        f"Logging initialized: level={settings.logging.level.value}"
    )

    return root_logger
