"""
Path and URL utilities for the prerenderer.

Provides route normalization, same-origin checks, and the mapping from
routes to files in the output tree.
"""

import os
import posixpath
from typing import List, Optional
from urllib.parse import urljoin, urlparse, unquote

from .constants import DEFAULT_OUTPUT_EXTENSION, RESOURCE_EXTENSIONS


# Schemes that never point at a crawlable page
_SKIPPED_PREFIXES = ('javascript:', 'data:', 'mailto:', 'tel:', '#')

_DEFAULT_PORTS = {'http': 80, 'https': 443}


def get_origin(url: str) -> str:
    """
    Extract the origin (scheme, host, and non-default port) of a URL.
    
    Args:
        url: Absolute URL
        
    Returns:
        Origin string (e.g., 'http://localhost:1337')
    """
    parsed = urlparse(url)
    scheme = parsed.scheme.lower()
    host = (parsed.hostname or '').lower()
    port = parsed.port
    if port is None or port == _DEFAULT_PORTS.get(scheme):
        return f"{scheme}://{host}"
    return f"{scheme}://{host}:{port}"


def is_same_origin(url: str, origin: str) -> bool:
    """
    Check if an absolute URL shares the given origin.
    
    Args:
        url: URL to check
        origin: Origin (or any URL on it) to compare with
        
    Returns:
        True if scheme, host and port all match
    """
    return get_origin(url) == get_origin(origin)


def normalize_route(href: str, origin: Optional[str] = None) -> Optional[str]:
    """
    Normalize a link into a route key relative to ``origin``.

    The fragment and query string are dropped, duplicate slashes collapse,
    dot segments are resolved without climbing above the root, and the
    trailing slash is removed (except for ``/`` itself). Percent escapes
    are kept as they are.
    
    Args:
        href: Absolute or relative link
        origin: Crawl origin; links on other origins are rejected
        
    Returns:
        Route string such as ``/about``, or None if not crawlable
    """
    if not href:
        return None
    href = href.strip()
    if not href or href.lower().startswith(_SKIPPED_PREFIXES):
        return None
    
    base = (origin or 'http://localhost').rstrip('/') + '/'
    absolute = urljoin(base, href)
    parsed = urlparse(absolute)
    
    if parsed.scheme not in ('http', 'https'):
        return None
    if origin is not None and not is_same_origin(absolute, origin):
        return None
    
    segments: List[str] = []
    for segment in parsed.path.split('/'):
        if segment in ('', '.'):
            continue
        if segment == '..':
            if segments:
                segments.pop()
            continue
        segments.append(segment)
    
    return '/' + '/'.join(segments)


def is_resource_path(route: str) -> bool:
    """
    Check whether a route points at a static resource rather than a page.

    Only known asset extensions on the last path segment count
    (``/app.js``, ``/logo.png``); dotted routes such as ``/releases/v1.2``
    are still pages.
    """
    last = posixpath.basename(urlparse(route).path)
    if "." not in last:
        return False
    ext = last.rsplit(".", 1)[-1].lower()
    return ext in RESOURCE_EXTENSIONS



def route_to_url(origin: str, route: str) -> str:
    """Join the crawl origin and a route into an absolute URL."""
    return origin.rstrip('/') + route


def route_to_path(
    route: str,
    output_dir: str,
    extension: str = DEFAULT_OUTPUT_EXTENSION
) -> str:
    """
    Convert a route to the file it is written to in the output tree.

    ``/`` maps to ``<output>/index.html``; ``/docs/intro`` maps to
    ``<output>/docs/intro/index.html``.
    
    Args:
        route: Route to convert
        output_dir: Base output directory
        extension: File extension of the written document
        
    Returns:
        Local file path
        
    Raises:
        ValueError: If the route cannot be mapped inside ``output_dir``
    """
    normalized = normalize_route(route)
    if normalized is None:
        raise ValueError(f"Not a route: {route!r}")
    
    parts: List[str] = []
    for segment in normalized.strip('/').split('/'):
        if not segment:
            continue
        decoded = unquote(segment)
        # Escapes such as %2F or %2e%2e must not leave the route's directory
        if decoded in ('.', '..') or '/' in decoded or os.sep in decoded or '\0' in decoded:
            raise ValueError(f"Route escapes the output directory: {route!r}")
        parts.append(decoded)
    
    return os.path.join(output_dir, *parts, f"index.{extension}")


def ensure_dir(path: str) -> None:
    """
    Ensure a directory exists, creating it if necessary.
    
    Args:
        path: Directory path to ensure exists
    """
    os.makedirs(path, exist_ok=True)


def ensure_parent_dir(file_path: str) -> None:
    """
    Ensure the parent directory of a file exists.
    
    Args:
        file_path: File path whose parent directory should exist
    """
    parent = os.path.dirname(file_path)
    if parent:
        ensure_dir(parent)
