"""
Local web server used while prerendering.
"""

from .server import StaticSiteServer

__all__ = ["StaticSiteServer"]
