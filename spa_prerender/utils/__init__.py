"""
Utility modules for the prerenderer.

Contains logging, route and path handling utilities, and constants.
"""

from .log import setup_logger, get_logger
from .paths import (
    normalize_route,
    is_same_origin,
    is_resource_path,
    route_to_path,
    route_to_url,
    ensure_dir,
)
from .constants import (
    DEFAULT_HOST,
    DEFAULT_PORT,
    DEFAULT_SOURCE_DIR,
    DEFAULT_OUTPUT_DIR,
    DEFAULT_CONCURRENCY,
    DEFAULT_PAGE_TIMEOUT,
    DEFAULT_MARKER_CLASS,
    DEFAULT_TRANSPARENT_TAG,
)

__all__ = [
    "setup_logger",
    "get_logger",
    "normalize_route",
    "is_same_origin",
    "is_resource_path",
    "route_to_path",
    "route_to_url",
    "ensure_dir",
    "DEFAULT_HOST",
    "DEFAULT_PORT",
    "DEFAULT_SOURCE_DIR",
    "DEFAULT_OUTPUT_DIR",
    "DEFAULT_CONCURRENCY",
    "DEFAULT_PAGE_TIMEOUT",
    "DEFAULT_MARKER_CLASS",
    "DEFAULT_TRANSPARENT_TAG",
]
