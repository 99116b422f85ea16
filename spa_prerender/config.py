"""
Configuration for a prerender run.

Options mirror the constructor-style dictionary accepted by the manager:
``{"queue": {...}, "http": {...}, "output": {...}, "render": {...}}``.
"""

from dataclasses import dataclass, field, fields, replace
from typing import Any, Dict, Mapping, Optional

from .errors import ConfigError
from .utils.constants import (
    DEFAULT_CONCURRENCY,
    DEFAULT_HOST,
    DEFAULT_MARKER_CLASS,
    DEFAULT_OUTPUT_DIR,
    DEFAULT_OUTPUT_EXTENSION,
    DEFAULT_PAGE_TIMEOUT,
    DEFAULT_PORT,
    DEFAULT_SOURCE_DIR,
    DEFAULT_TRANSPARENT_TAG,
)


@dataclass(frozen=True)
class QueueOptions:
    """Worker pool settings."""

    concurrency: int = DEFAULT_CONCURRENCY
    # Per-page render timeout in milliseconds
    timeout: int = DEFAULT_PAGE_TIMEOUT
    # Safety cap on dispatched routes; None crawls the whole closure
    max_pages: Optional[int] = None

    def __post_init__(self):
        if self.concurrency < 1:
            raise ConfigError(f"queue.concurrency must be at least 1, got {self.concurrency}")
        if self.timeout <= 0:
            raise ConfigError(f"queue.timeout must be positive, got {self.timeout}")
        if self.max_pages is not None and self.max_pages < 1:
            raise ConfigError(f"queue.max_pages must be at least 1, got {self.max_pages}")


@dataclass(frozen=True)
class HttpOptions:
    """Local file server settings."""

    directory: str = DEFAULT_SOURCE_DIR
    port: int = DEFAULT_PORT
    host: str = DEFAULT_HOST

    def __post_init__(self):
        if not 0 <= self.port <= 65535:
            raise ConfigError(f"http.port out of range: {self.port}")


@dataclass(frozen=True)
class OutputOptions:
    """Output tree settings."""

    directory: str = DEFAULT_OUTPUT_DIR
    extension: str = DEFAULT_OUTPUT_EXTENSION


@dataclass(frozen=True)
class RenderOptions:
    """Browser and annotation settings."""

    headless: bool = True
    slow_mo: int = 0
    marker_class: str = DEFAULT_MARKER_CLASS
    transparent_tag: str = DEFAULT_TRANSPARENT_TAG


@dataclass(frozen=True)
class PrerenderOptions:
    """Complete configuration of a prerender run."""

    queue: QueueOptions = field(default_factory=QueueOptions)
    http: HttpOptions = field(default_factory=HttpOptions)
    output: OutputOptions = field(default_factory=OutputOptions)
    render: RenderOptions = field(default_factory=RenderOptions)

    @classmethod
    def from_dict(cls, options: Optional[Mapping[str, Any]] = None) -> "PrerenderOptions":
        """
        Build options from a nested dictionary.

        Missing sections and keys keep their defaults. Unknown sections or
        keys raise ConfigError.
        
        Args:
            options: Nested mapping such as ``{"http": {"port": 8080}}``
            
        Returns:
            PrerenderOptions instance
        """
        options = options or {}
        sections = {f.name: f for f in fields(cls)}
        
        unknown = set(options) - set(sections)
        if unknown:
            raise ConfigError(f"Unknown option sections: {', '.join(sorted(unknown))}")
        
        values: Dict[str, Any] = {}
        for name, section in sections.items():
            raw = options.get(name)
            section_type = section.default_factory
            if raw is None:
                values[name] = section_type()
                continue
            if not isinstance(raw, Mapping):
                raise ConfigError(f"Option section '{name}' must be a mapping")
            allowed = {f.name for f in fields(section_type)}
            bad = set(raw) - allowed
            if bad:
                raise ConfigError(
                    f"Unknown {name} options: {', '.join(sorted(bad))}"
                )
            try:
                values[name] = section_type(**raw)
            except TypeError as e:
                raise ConfigError(f"Invalid {name} options: {e}") from e
        
        return cls(**values)

    def with_directories(
        self,
        source: Optional[str] = None,
        output: Optional[str] = None
    ) -> "PrerenderOptions":
        """Return a copy with the source and/or output directory replaced."""
        updated = self
        if source:
            updated = replace(updated, http=replace(updated.http, directory=source))
        if output:
            updated = replace(updated, output=replace(updated.output, directory=output))
        return updated
