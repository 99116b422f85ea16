"""
Page renderer using Playwright for JavaScript rendering.

Drives one headless Chromium shared by every concurrent render and reports
the post-JavaScript HTML, same-origin links and page errors of each page.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Set

from playwright.async_api import (
    async_playwright,
    Browser,
    Error as PlaywrightError,
    Page,
    Playwright,
    TimeoutError as PlaywrightTimeout,
)

from ..utils.constants import DEFAULT_PAGE_TIMEOUT, DEFAULT_WAIT_UNTIL
from ..utils.log import get_logger
from ..utils.paths import get_origin, normalize_route


# Runs in the page: unique anchor targets on the crawl origin
LINK_SCRIPT = """
(origin) => {
    const links = new Set();
    for (const anchor of Array.from(document.querySelectorAll('a[href]'))) {
        try {
            const target = new URL(anchor.href, document.baseURI);
            if (target.origin === origin) {
                links.add(target.href);
            }
        } catch (e) {
            // unparsable href
        }
    }
    return Array.from(links);
}
"""


@dataclass
class RenderResult:
    """Outcome of rendering a single page."""

    url: str
    html: str = ""
    # Routes of same-origin anchors, one entry per target
    links: Set[str] = field(default_factory=set)
    errors: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        """True when the page produced HTML."""
        return bool(self.html)


def describe_error(error: object) -> str:
    """Turn a Playwright error payload into a readable string."""
    message = getattr(error, "message", None)
    if message:
        name = getattr(error, "name", None)
        return f"{name}: {message}" if name else str(message)
    return str(error)


class PageRenderer:
    """
    Renders web pages using a Playwright headless browser.

    The browser is started lazily on the first render and shared by all
    concurrent renders; each render gets its own context and page.
    """

    def __init__(
        self,
        origin: str,
        timeout: int = DEFAULT_PAGE_TIMEOUT,
        wait_until: str = DEFAULT_WAIT_UNTIL,
        headless: bool = True,
        slow_mo: int = 0
    ):
        """
        Initialize the page renderer.

        Args:
            origin: Origin whose links are reported (e.g. 'http://localhost:1337')
            timeout: Per-page render timeout in milliseconds
            wait_until: Event to wait for ('load', 'domcontentloaded', 'networkidle')
            headless: Run browser in headless mode
            slow_mo: Slow down browser operations by this many milliseconds
        """
        self.origin = get_origin(origin)
        self.timeout = timeout
        self.wait_until = wait_until
        self.headless = headless
        self.slow_mo = slow_mo
        self.logger = get_logger("renderer")

        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._lock = asyncio.Lock()

    @property
    def started(self) -> bool:
        return self._browser is not None

    async def start(self) -> None:
        """
        Start the Playwright browser instance.
        """
        self.logger.info("Starting Playwright browser...")
        self._playwright = await async_playwright().start()
        try:
            self._browser = await self._playwright.chromium.launch(
                headless=self.headless,
                slow_mo=self.slow_mo,
                args=[
                    '--no-sandbox',
                    '--disable-setuid-sandbox',
                    '--disable-dev-shm-usage',
                ]
            )
        except BaseException:
            await self._playwright.stop()
            self._playwright = None
            raise
        self.logger.info("Browser started successfully")

    async def shutdown(self) -> None:
        """
        Close the browser. Safe to call when it was never started.
        """
        async with self._lock:
            if self._browser is None and self._playwright is None:
                return
            if self._browser:
                await self._browser.close()
                self._browser = None
            if self._playwright:
                await self._playwright.stop()
                self._playwright = None
            self.logger.info("Browser stopped")

    async def _ensure_browser(self) -> Browser:
        async with self._lock:
            if self._browser is None:
                await self.start()
            return self._browser

    async def render(self, url: str) -> RenderResult:
        """
        Render a page and collect its HTML, links and errors.

        Never raises for page-level problems: navigation failures and
        timeouts come back as a result with empty HTML and the failure in
        ``errors``.

        Args:
            url: Absolute URL to render

        Returns:
            RenderResult for the page
        """
        result = RenderResult(url=url)
        # Playwright enforces the timeout per step; this bounds the whole page
        budget = 2 * self.timeout / 1000

        try:
            await asyncio.wait_for(self._render_into(result), timeout=budget)
        except asyncio.TimeoutError:
            self.logger.warning(f"Timeout rendering {url}")
            result.html = ""
            result.errors.append(f"Render timed out after {budget:g}s")
        except PlaywrightTimeout as e:
            self.logger.warning(f"Timeout rendering {url}")
            result.html = ""
            result.errors.append(describe_error(e))
        except PlaywrightError as e:
            self.logger.error(f"Error rendering {url}: {e}")
            result.html = ""
            result.errors.append(describe_error(e))
        except Exception as e:
            self.logger.error(f"Error rendering {url}: {e}")
            result.html = ""
            result.errors.append(f"{type(e).__name__}: {e}")

        return result

    async def _render_into(self, result: RenderResult) -> None:
        browser = await self._ensure_browser()
        context = await browser.new_context(
            viewport={"width": 1920, "height": 1080},
            ignore_https_errors=True,
        )

        try:
            page: Page = await context.new_page()
            page.set_default_timeout(self.timeout)

            # Uncaught exceptions thrown by page scripts
            page.on("pageerror", lambda error: result.errors.append(describe_error(error)))
            # Renderer process failures
            page.on("crash", lambda _page: result.errors.append(f"Page crashed: {result.url}"))

            self.logger.debug(f"Rendering: {result.url}")
            response = await page.goto(
                result.url,
                wait_until=self.wait_until,
                timeout=self.timeout
            )

            if response is not None and response.status >= 400:
                self.logger.warning(f"HTTP {response.status} for {result.url}")
                result.errors.append(f"HTTP {response.status}")
                return

            hrefs = await page.evaluate(LINK_SCRIPT, self.origin)
            result.links = self.collect_links(hrefs)
            result.html = await page.content()

            self.logger.debug(f"Got page content for {result.url}")
        finally:
            await context.close()

    def collect_links(self, hrefs: Iterable[str]) -> Set[str]:
        """
        Reduce raw anchor targets to unique same-origin routes.

        Args:
            hrefs: Absolute or relative link targets

        Returns:
            Set of normalized routes
        """
        links: Set[str] = set()
        for href in hrefs or ():
            route = normalize_route(href, self.origin)
            if route is not None:
                links.add(route)
        return links

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.shutdown()
