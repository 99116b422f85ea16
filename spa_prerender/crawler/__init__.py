"""
Crawler module for prerendering.

Contains components for crawling, rendering, annotating, and writing pages.
"""

from .crawler import PrerenderCrawler, CrawlResult, ErrorRecord
from .renderer import PageRenderer, RenderResult
from .annotator import DomAnnotator, annotate
from .writer import ContentWriter
from .pool import WorkerPool

__all__ = [
    "PrerenderCrawler",
    "CrawlResult",
    "ErrorRecord",
    "PageRenderer",
    "RenderResult",
    "DomAnnotator",
    "annotate",
    "ContentWriter",
    "WorkerPool",
]
