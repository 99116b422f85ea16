"""
Logging utilities for the prerenderer.

Provides colorful CLI logging using the rich library.
"""

import logging
import os

from rich.console import Console
from rich.logging import RichHandler

from .constants import LOG_LEVEL_ENV


# Global console instance
console = Console()

# Logger instances cache
_loggers: dict = {}

# Root logger name; component loggers are children of it
ROOT_LOGGER = "spa_prerender"


def level_from_env(default: int = logging.INFO) -> int:
    """
    Resolve the log level from the environment.

    Accepts level names (``debug``, ``WARNING``) or numeric values.
    Unknown values fall back to ``default``.
    """
    raw = os.environ.get(LOG_LEVEL_ENV, "").strip()
    if not raw:
        return default
    if raw.isdigit():
        return int(raw)
    level = logging.getLevelName(raw.upper())
    return level if isinstance(level, int) else default


def setup_logger(
    name: str = ROOT_LOGGER,
    level: int = logging.INFO
) -> logging.Logger:
    """
    Set up and configure a logger with rich formatting.
    
    Args:
        name: Logger name
        level: Logging level (default: INFO)
        
    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)
    
    # Clear existing handlers
    logger.handlers.clear()
    
    console_handler = RichHandler(
        console=console,
        show_time=True,
        show_path=False,
        markup=False,
        rich_tracebacks=True
    )
    console_handler.setFormatter(logging.Formatter("%(message)s"))
    console_handler.setLevel(level)
    logger.addHandler(console_handler)
    
    _loggers[name] = logger
    return logger


def get_logger(name: str = ROOT_LOGGER) -> logging.Logger:
    """
    Get a component logger.

    Component names are placed under the package root logger, so a single
    ``setup_logger()`` call configures all of them.
    
    Args:
        name: Logger name
        
    Returns:
        Logger instance
    """
    if name != ROOT_LOGGER and not name.startswith(ROOT_LOGGER + "."):
        name = f"{ROOT_LOGGER}.{name}"
    if name not in _loggers:
        _loggers[name] = logging.getLogger(name)
    return _loggers[name]


def print_status(message: str, style: str = "bold blue") -> None:
    """
    Print a styled status message.
    
    Args:
        message: Message to print
        style: Rich style string
    """
    console.print(message, style=style, markup=False, highlight=False)


def print_error(message: str) -> None:
    """Print an error message."""
    print_status(f"❌ {message}", "bold red")


def print_success(message: str) -> None:
    """Print a success message."""
    print_status(f"✅ {message}", "bold green")


def print_info(message: str) -> None:
    """Print an info message."""
    print_status(f"ℹ️ {message}", "bold cyan")
