"""
Content writer for persisting rendered pages.

Each route is written to ``<output>/<route>/index.<ext>``.
"""

import asyncio
import contextlib
import os
import tempfile

from ..errors import ContentWriteError
from ..utils.constants import DEFAULT_OUTPUT_EXTENSION
from ..utils.log import get_logger
from ..utils.paths import ensure_parent_dir, route_to_path


class ContentWriter:
    """
    Writes rendered documents into the output tree.

    A document is written to a temporary file next to its target and moved
    into place, so a failed write never leaves a truncated page behind.
    """

    def __init__(self, output_dir: str, extension: str = DEFAULT_OUTPUT_EXTENSION):
        """
        Initialize the content writer.

        Args:
            output_dir: Base output directory
            extension: Extension of the written documents
        """
        self.output_dir = output_dir
        self.extension = extension
        self.logger = get_logger("writer")

    def path_for(self, route: str) -> str:
        """Local file path a route is written to."""
        return route_to_path(route, self.output_dir, self.extension)

    async def write(self, route: str, html: str) -> str:
        """
        Save HTML content for a route.

        Args:
            route: Route the document belongs to
            html: Document content

        Returns:
            Path of the written file

        Raises:
            ContentWriteError: If the route is invalid or the file cannot be written
        """
        try:
            local_path = self.path_for(route)
        except ValueError as e:
            raise ContentWriteError(route, str(e)) from e

        try:
            await asyncio.to_thread(self._write_file, local_path, html)
        except OSError as e:
            self.logger.error(f"Error saving page {route}: {e}")
            raise ContentWriteError(route, str(e)) from e

        self.logger.debug(f"Saved page: {route} -> {local_path}")
        return local_path

    @staticmethod
    def _write_file(local_path: str, content: str) -> None:
        ensure_parent_dir(local_path)
        fd, tmp_path = tempfile.mkstemp(
            dir=os.path.dirname(local_path),
            prefix='.',
            suffix='.tmp'
        )
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                f.write(content)
            os.replace(tmp_path, local_path)
        except BaseException:
            with contextlib.suppress(OSError):
                os.unlink(tmp_path)
            raise
