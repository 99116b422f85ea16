"""
Exception types raised by the prerenderer.
"""


class PrerenderError(Exception):
    """Base prerenderer exception."""
    pass


class ConfigError(PrerenderError):
    """Raised when options cannot be parsed into a configuration."""
    pass


class ServerStartError(PrerenderError):
    """Raised when the local file server cannot bind its port."""
    pass


class ContentWriteError(PrerenderError):
    """Raised when a rendered document cannot be persisted."""

    def __init__(self, route: str, reason: str):
        super().__init__(f"Cannot write {route}: {reason}")
        self.route = route
        self.reason = reason
