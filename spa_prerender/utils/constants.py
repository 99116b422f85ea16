"""
Shared constants for the prerenderer.

Contains default configuration values used across multiple modules.
"""

# Default local server binding
DEFAULT_HOST = "localhost"
DEFAULT_PORT = 1337

# Default source and output directories
DEFAULT_SOURCE_DIR = "./www"
DEFAULT_OUTPUT_DIR = "./output"

# Root document of the single-page app; served for every unmatched route
ROOT_DOCUMENT = "index.html"

# Default number of simultaneous renders
DEFAULT_CONCURRENCY = 25

# Default page render timeout in milliseconds (for Playwright)
DEFAULT_PAGE_TIMEOUT = 30000

# Playwright navigation completion signal
DEFAULT_WAIT_UNTIL = "networkidle"

# Class marking a component the client runtime re-hydrates
DEFAULT_MARKER_CLASS = "hydrated"

# Tag skipped over when looking for nested components
DEFAULT_TRANSPARENT_TAG = "slot"

# Extension of the files written per route
DEFAULT_OUTPUT_EXTENSION = "html"

# Extensions of static assets; links ending in one are never crawled
RESOURCE_EXTENSIONS = frozenset({
    "js", "mjs", "css", "map", "json", "xml", "txt", "webmanifest",
    "jpg", "jpeg", "png", "gif", "webp", "avif", "svg", "ico", "bmp",
    "woff", "woff2", "ttf", "otf", "eot",
    "mp4", "webm", "mp3", "ogg", "wav", "avi", "mov", "mkv",
    "pdf", "zip", "gz", "tar", "rar", "7z", "exe", "dmg",
    "wasm",
})


# Environment variable controlling log verbosity
LOG_LEVEL_ENV = "SPA_PRERENDER_LOG_LEVEL"
