"""
Tests for the local file server.
"""

from __future__ import annotations

import os

import aiohttp
import pytest

from spa_prerender.errors import ServerStartError
from spa_prerender.web import StaticSiteServer


@pytest.fixture
def site(tmp_path):
    root = tmp_path / "www"
    (root / "docs").mkdir(parents=True)
    (root / "index.html").write_text("<html>app shell</html>", encoding="utf-8")
    (root / "app.js").write_text("console.log('app')", encoding="utf-8")
    (root / "docs" / "index.html").write_text("<html>docs</html>", encoding="utf-8")
    (tmp_path / "secret.txt").write_text("secret", encoding="utf-8")
    return root


async def fetch(server: StaticSiteServer, path: str):
    async with aiohttp.ClientSession() as session:
        async with session.get(server.origin + path) as response:
            return response.status, await response.text()


@pytest.mark.asyncio
async def test_serves_files_and_falls_back_to_root_document(site):
    async with StaticSiteServer(str(site), port=0, host="127.0.0.1") as server:
        assert server.port != 0

        assert await fetch(server, "/app.js") == (200, "console.log('app')")
        assert await fetch(server, "/") == (200, "<html>app shell</html>")
        assert await fetch(server, "/about/team") == (200, "<html>app shell</html>")
        assert await fetch(server, "/docs") == (200, "<html>docs</html>")
        assert await fetch(server, "/missing.css") == (200, "<html>app shell</html>")


def test_resolve_never_leaves_the_directory(site):
    server = StaticSiteServer(str(site))

    assert server.resolve("../secret.txt") is None
    assert server.resolve("/docs/../../secret.txt") is None
    assert server.resolve("app.js") == os.path.realpath(site / "app.js")
    assert server.resolve("/") == os.path.realpath(site / "index.html")


@pytest.mark.asyncio
async def test_missing_root_document_gives_404(tmp_path):
    async with StaticSiteServer(str(tmp_path), port=0, host="127.0.0.1") as server:
        status, _ = await fetch(server, "/anything")

    assert status == 404


@pytest.mark.asyncio
async def test_port_in_use_is_a_startup_error(site):
    async with StaticSiteServer(str(site), port=0, host="127.0.0.1") as first:
        second = StaticSiteServer(str(site), port=first.port, host="127.0.0.1")
        with pytest.raises(ServerStartError):
            await second.start()


@pytest.mark.asyncio
async def test_stop_is_idempotent(site):
    server = StaticSiteServer(str(site), port=0, host="127.0.0.1")
    await server.stop()
    await server.start()
    await server.stop()
    await server.stop()
