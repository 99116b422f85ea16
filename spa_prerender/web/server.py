"""
Local file server for the site being prerendered.

Serves the source directory over HTTP and answers every path that is not
an existing file with the root document, so client-side routing resolves.
"""

import os
from typing import Optional

from aiohttp import web

from ..errors import ServerStartError
from ..utils.constants import DEFAULT_HOST, DEFAULT_PORT, ROOT_DOCUMENT
from ..utils.log import get_logger


class StaticSiteServer:
    """
    aiohttp server for a single-page app build directory.
    """

    def __init__(
        self,
        directory: str,
        port: int = DEFAULT_PORT,
        host: str = DEFAULT_HOST
    ):
        """
        Initialize the server.

        Args:
            directory: Directory with the built site
            port: Port to listen on (0 picks a free one)
            host: Interface to bind
        """
        self.directory = os.path.realpath(directory)
        self.host = host
        self.port = port
        self.logger = get_logger("server")

        self._runner: Optional[web.AppRunner] = None

    @property
    def root_document(self) -> str:
        return os.path.join(self.directory, ROOT_DOCUMENT)

    @property
    def origin(self) -> str:
        """Origin the site is reachable at once started."""
        return f"http://{self.host}:{self.port}"

    def create_app(self) -> web.Application:
        app = web.Application()
        app.router.add_get('/{tail:.*}', self._handle)
        return app

    async def start(self) -> None:
        """
        Bind the port and start serving.

        Raises:
            ServerStartError: If the port cannot be bound
        """
        if not os.path.isfile(self.root_document):
            self.logger.warning(f"No {ROOT_DOCUMENT} in {self.directory}")

        runner = web.AppRunner(self.create_app(), access_log=None)
        await runner.setup()
        site = web.TCPSite(runner, self.host, self.port)
        try:
            await site.start()
        except OSError as e:
            await runner.cleanup()
            raise ServerStartError(
                f"Cannot listen on {self.host}:{self.port}: {e}"
            ) from e

        self._runner = runner
        # Resolve the real port when an ephemeral one was requested
        if runner.addresses:
            self.port = runner.addresses[0][1]
        self.logger.info(f"Serving {self.directory} at {self.origin}")

    async def stop(self) -> None:
        if self._runner is not None:
            await self._runner.cleanup()
            self._runner = None
            self.logger.info("Server stopped")

    def resolve(self, request_path: str) -> Optional[str]:
        """
        Map a request path to a file inside the served directory.

        Directories resolve to their own index document. Paths leaving the
        directory never resolve.

        Args:
            request_path: Decoded URL path

        Returns:
            File path, or None if there is no such file
        """
        candidate = os.path.realpath(
            os.path.join(self.directory, request_path.lstrip('/'))
        )
        if candidate != self.directory and not candidate.startswith(self.directory + os.sep):
            return None
        if os.path.isdir(candidate):
            candidate = os.path.join(candidate, ROOT_DOCUMENT)
        if os.path.isfile(candidate):
            return candidate
        return None

    async def _handle(self, request: web.Request) -> web.StreamResponse:
        path = self.resolve(request.match_info.get('tail', ''))
        if path is None:
            if not os.path.isfile(self.root_document):
                raise web.HTTPNotFound()
            path = self.root_document
        return web.FileResponse(path)

    async def __aenter__(self):
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.stop()
