"""
Prerender manager.

Wires the local file server, renderer, crawl engine and writer together,
prepares the output directory and reports the final summary.
"""

import json
import os
import shutil
from typing import Any, Callable, Mapping, Optional, Union

from .config import PrerenderOptions
from .crawler import ContentWriter, CrawlResult, DomAnnotator, PageRenderer, PrerenderCrawler
from .errors import ConfigError
from .utils.constants import ROOT_DOCUMENT
from .utils.log import get_logger, print_error, print_info, print_success
from .utils.paths import ensure_dir
from .web import StaticSiteServer


RendererFactory = Callable[[str], Any]


def _is_within(path: str, parent: str) -> bool:
    path = os.path.realpath(path)
    parent = os.path.realpath(parent)
    return path == parent or path.startswith(parent + os.sep)


class PrerenderManager:
    """
    Runs a complete prerender: serve, crawl, write, copy assets, report.
    """

    def __init__(
        self,
        options: Optional[Union[PrerenderOptions, Mapping[str, Any]]] = None,
        renderer_factory: Optional[RendererFactory] = None
    ):
        """
        Initialize the manager.

        Args:
            options: PrerenderOptions or the equivalent nested mapping
            renderer_factory: Builds the renderer for the server origin
                (default: a Playwright PageRenderer)

        Raises:
            ConfigError: If the options are invalid
        """
        if not isinstance(options, PrerenderOptions):
            options = PrerenderOptions.from_dict(options)
        self.options = options

        self.source_dir = os.path.abspath(options.http.directory)
        self.output_dir = os.path.abspath(options.output.directory)
        if _is_within(self.source_dir, self.output_dir):
            raise ConfigError(
                f"Output directory {self.output_dir} would overwrite "
                f"source directory {self.source_dir}"
            )

        self.server = StaticSiteServer(
            self.source_dir,
            port=options.http.port,
            host=options.http.host
        )
        self.renderer_factory = renderer_factory or self._default_renderer
        self.logger = get_logger("manager")

    def _default_renderer(self, origin: str) -> PageRenderer:
        return PageRenderer(
            origin=origin,
            timeout=self.options.queue.timeout,
            headless=self.options.render.headless,
            slow_mo=self.options.render.slow_mo
        )

    async def start(self) -> CrawlResult:
        """
        Run the prerender.

        Returns:
            CrawlResult of the crawl

        Raises:
            ServerStartError: If the local server cannot start
        """
        await self.server.start()
        try:
            self.prepare_output()
            self.copy_assets()

            renderer = self.renderer_factory(self.server.origin)
            crawler = PrerenderCrawler(
                renderer=renderer,
                writer=ContentWriter(self.output_dir, self.options.output.extension),
                origin=self.server.origin,
                annotator=DomAnnotator(
                    marker_class=self.options.render.marker_class,
                    transparent_tag=self.options.render.transparent_tag
                ),
                concurrency=self.options.queue.concurrency,
                max_pages=self.options.queue.max_pages
            )
            try:
                result = await crawler.run("/")
            finally:
                await renderer.shutdown()

            self.copy_assets()
            print_summary(result)
            return result
        finally:
            await self.server.stop()

    def prepare_output(self) -> None:
        """Empty the output directory, creating it if needed."""
        try:
            if os.path.exists(self.output_dir):
                shutil.rmtree(self.output_dir)
            ensure_dir(self.output_dir)
        except OSError as e:
            self.logger.error(f"Error while creating output directory {self.output_dir}: {e}")

    def copy_assets(self) -> int:
        """
        Copy every source entry except the root document to the output.

        Failures are logged per entry and do not stop the copy.

        Returns:
            Number of entries copied
        """
        print_info("Copying build and assets")
        try:
            entries = sorted(os.listdir(self.source_dir))
        except OSError as e:
            self.logger.error(f"Error while listing {self.source_dir}: {e}")
            return 0

        copied = 0
        for entry in entries:
            if entry == ROOT_DOCUMENT:
                continue
            source = os.path.join(self.source_dir, entry)
            target = os.path.join(self.output_dir, entry)
            if _is_within(self.output_dir, source):
                continue
            try:
                if os.path.isdir(source):
                    shutil.copytree(source, target, dirs_exist_ok=True)
                else:
                    shutil.copy2(source, target)
                copied += 1
            except (OSError, shutil.Error) as e:
                self.logger.error(f"Error while copying {entry}: {e}")
        self.logger.debug(f"Copied {copied} entries to {self.output_dir}")
        return copied


def print_summary(result: CrawlResult) -> None:
    """
    Print the crawl summary.

    Args:
        result: CrawlResult object
    """
    print("\n" + "=" * 60)
    print_success("PRERENDER SUMMARY")
    print("=" * 60)
    print(f"  Pages rendered: {result.pages_rendered}")
    print(f"  Error count:    {len(result.errors)}")
    print(f"  Duration:       {result.duration_seconds:.1f} seconds")
    if result.errors:
        print_error("Errors:")
        print(json.dumps([record.to_dict() for record in result.errors], indent=2))
    print("=" * 60 + "\n")
