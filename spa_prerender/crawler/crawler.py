"""
Main crawl engine.

Discovers every same-origin route reachable from the start route, renders
each one once at bounded concurrency, annotates the HTML and writes it to
the output tree.
"""

import asyncio
import time
from dataclasses import dataclass, field
from typing import Awaitable, Dict, List, Optional, Protocol, Set, Tuple, Union

from .annotator import DomAnnotator
from .pool import WorkerPool
from .renderer import RenderResult
from .writer import ContentWriter
from ..errors import ContentWriteError
from ..utils.constants import DEFAULT_CONCURRENCY
from ..utils.log import get_logger
from ..utils.paths import get_origin, is_resource_path, normalize_route, route_to_url


class Renderer(Protocol):
    """Anything that can render an absolute URL."""

    def render(self, url: str) -> Awaitable[RenderResult]:
        ...


@dataclass(frozen=True)
class ErrorRecord:
    """Errors collected for one route."""

    url: str
    errors: Tuple[str, ...]

    def to_dict(self) -> Dict:
        return {'url': self.url, 'errors': list(self.errors)}


@dataclass
class CrawlResult:
    """Results of the crawling operation."""

    pages_rendered: int = 0
    errors: List[ErrorRecord] = field(default_factory=list)
    # Routes written to the output tree, in completion order
    routes: List[str] = field(default_factory=list)
    duration_seconds: float = 0.0


@dataclass
class PageOutcome:
    """What a worker reports back for one route."""

    route: str
    links: Set[str] = field(default_factory=set)
    errors: List[str] = field(default_factory=list)
    path: Optional[str] = None

    @property
    def written(self) -> bool:
        return self.path is not None


@dataclass
class CrawlSession:
    """
    Crawl state of a single run.

    Only the coordinating coroutine touches a session; workers report back
    through the pool's result channel.
    """

    origin: str
    max_pages: Optional[int] = None
    seen: Set[str] = field(default_factory=set)
    errors: List[ErrorRecord] = field(default_factory=list)
    routes: List[str] = field(default_factory=list)
    # Admitted routes whose outcome has not come back yet
    pending: int = 0

    def admit(self, link: str) -> Optional[str]:
        """
        Mark a discovered link as seen if it should be rendered.

        Args:
            link: Absolute URL or route found on a page

        Returns:
            The normalized route to dispatch, or None to drop the link
        """
        route = normalize_route(link, self.origin)
        if route is None or is_resource_path(route):
            return None
        if route in self.seen:
            return None
        if self.max_pages is not None and len(self.seen) >= self.max_pages:
            return None
        self.seen.add(route)
        self.pending += 1
        return route

    def settle(self, route: str, outcome: Union["PageOutcome", BaseException]) -> Set[str]:
        """
        Record a finished route.

        Args:
            route: Route the outcome belongs to
            outcome: Worker outcome, or the exception the worker raised

        Returns:
            Links discovered on the page
        """
        self.pending -= 1
        if isinstance(outcome, BaseException):
            message = f"{type(outcome).__name__}: {outcome}" if str(outcome) else type(outcome).__name__
            self.errors.append(ErrorRecord(route, (message,)))
            return set()
        if outcome.errors:
            self.errors.append(ErrorRecord(route, tuple(outcome.errors)))
        if outcome.written:
            self.routes.append(route)
        return outcome.links

    @property
    def quiescent(self) -> bool:
        return self.pending == 0


class PrerenderCrawler:
    """
    Crawl engine for prerendering a single-page app.

    Coordinates the renderer, annotator and writer over a bounded pool of
    workers until no route is queued or in flight.
    """

    def __init__(
        self,
        renderer: Renderer,
        writer: ContentWriter,
        origin: str,
        annotator: Optional[DomAnnotator] = None,
        concurrency: int = DEFAULT_CONCURRENCY,
        max_pages: Optional[int] = None
    ):
        """
        Initialize the crawl engine.

        Args:
            renderer: Page renderer (see PageRenderer)
            writer: Content writer for the output tree
            origin: Origin of the served site, e.g. 'http://localhost:1337'
            annotator: DOM annotator (default: DomAnnotator())
            concurrency: Maximum simultaneous renders
            max_pages: Optional cap on the number of routes dispatched
        """
        self.renderer = renderer
        self.writer = writer
        self.origin = get_origin(origin)
        self.annotator = annotator or DomAnnotator()
        self.concurrency = concurrency
        self.max_pages = max_pages
        self.logger = get_logger("crawler")

    async def run(self, start_route: str = "/") -> CrawlResult:
        """
        Crawl from ``start_route`` until the reachable routes are exhausted.

        Per-page failures are collected in the result and never raised.

        Args:
            start_route: Route (or same-origin URL) to start from

        Returns:
            CrawlResult with the rendered count and collected errors
        """
        start_time = time.time()
        session = CrawlSession(origin=self.origin, max_pages=self.max_pages)

        async with WorkerPool(self._process, self.concurrency) as pool:
            first = session.admit(start_route)
            if first is None:
                self.logger.warning(f"Start route is not crawlable: {start_route}")
            else:
                pool.submit(first)

            while not session.quiescent:
                route, outcome = await pool.next_result()
                links = session.settle(route, outcome)

                for link in sorted(links):
                    queued = session.admit(link)
                    if queued is not None:
                        self.logger.debug(f"Queued: {queued} (from {route})")
                        pool.submit(queued)
                    else:
                        self.logger.debug(f"Skipping {link} (from {route})")

        result = CrawlResult(
            pages_rendered=len(session.routes),
            errors=list(session.errors),
            routes=list(session.routes),
            duration_seconds=time.time() - start_time
        )
        self.logger.info(
            f"Rendered {result.pages_rendered} pages with "
            f"{len(result.errors)} error records in {result.duration_seconds:.1f}s"
        )
        return result

    async def _process(self, route: str) -> PageOutcome:
        """
        Render, annotate and write one route.

        Runs inside a worker. Must not touch the crawl session.
        """
        url = route_to_url(self.origin, route)
        self.logger.info(f"Render: {route}")

        rendered = await self.renderer.render(url)
        outcome = PageOutcome(
            route=route,
            links=set(rendered.links),
            errors=[str(error) for error in rendered.errors]
        )

        if not rendered.ok:
            if not outcome.errors:
                outcome.errors.append("Render returned no HTML")
            self.logger.warning(f"Nothing rendered for {route}")
            return outcome

        try:
            # CPU-bound parse runs off the event loop
            html = await asyncio.to_thread(self.annotator.annotate, rendered.html)
        except Exception as e:
            self.logger.error(f"Annotation failed for {route}: {e}")
            outcome.errors.append(f"Annotation failed: {e}")
            return outcome

        try:
            outcome.path = await self.writer.write(route, html)
        except ContentWriteError as e:
            outcome.errors.append(str(e))

        return outcome
