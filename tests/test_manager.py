"""
Tests for the prerender manager and CLI wiring.
"""

from __future__ import annotations

import pytest

from spa_prerender import main as cli
from spa_prerender.crawler import CrawlResult
from spa_prerender.errors import ConfigError, ServerStartError
from spa_prerender.manager import PrerenderManager

from tests.conftest import ScriptedRenderer


@pytest.fixture
def site(tmp_path):
    root = tmp_path / "www"
    (root / "assets").mkdir(parents=True)
    (root / "index.html").write_text("<html><body>shell</body></html>", encoding="utf-8")
    (root / "app.js").write_text("boot()", encoding="utf-8")
    (root / "assets" / "logo.svg").write_text("<svg/>", encoding="utf-8")
    return root


def options_for(site, output):
    return {
        "http": {"directory": str(site), "port": 0, "host": "127.0.0.1"},
        "output": {"directory": str(output)},
        "queue": {"concurrency": 2},
    }


@pytest.mark.asyncio
async def test_full_run_writes_routes_and_assets(site, tmp_path):
    output = tmp_path / "output"
    (output / "stale").mkdir(parents=True)
    renderers = []

    def factory(origin):
        renderer = ScriptedRenderer(
            {"/": ["/about", "/contact", "/app.js"], "/about": ["/"], "/contact": []},
            origin=origin,
        )
        renderers.append(renderer)
        return renderer

    manager = PrerenderManager(options_for(site, output), renderer_factory=factory)
    result = await manager.start()

    assert result.pages_rendered == 3
    assert result.errors == []
    assert (output / "about" / "index.html").is_file()
    assert (output / "contact" / "index.html").is_file()
    assert "ssr=" in (output / "index.html").read_text(encoding="utf-8")
    assert (output / "app.js").read_text(encoding="utf-8") == "boot()"
    assert (output / "assets" / "logo.svg").is_file()
    assert not (output / "stale").exists()
    assert renderers[0].shutdown_calls == 1


@pytest.mark.asyncio
async def test_renderer_is_shut_down_when_crawl_fails(site, tmp_path, monkeypatch):
    renderers = []

    def factory(origin):
        renderer = ScriptedRenderer({}, origin=origin)
        renderers.append(renderer)
        return renderer

    async def explode(self, start_route="/"):
        raise RuntimeError("coordinator crashed")

    monkeypatch.setattr("spa_prerender.manager.PrerenderCrawler.run", explode)
    manager = PrerenderManager(options_for(site, tmp_path / "out"), renderer_factory=factory)

    with pytest.raises(RuntimeError):
        await manager.start()

    assert renderers[0].shutdown_calls == 1


def test_copy_assets_skips_root_document(site, tmp_path):
    output = tmp_path / "out"
    output.mkdir()
    manager = PrerenderManager(options_for(site, output))

    copied = manager.copy_assets()

    assert copied == 2
    assert not (output / "index.html").exists()
    assert (output / "app.js").is_file()


def test_copy_assets_tolerates_missing_source(tmp_path):
    manager = PrerenderManager(options_for(tmp_path / "missing", tmp_path / "out"))

    assert manager.copy_assets() == 0


def test_output_may_not_contain_source(site):
    with pytest.raises(ConfigError):
        PrerenderManager(options_for(site, site))
    with pytest.raises(ConfigError):
        PrerenderManager(options_for(site, site.parent))


def test_cli_defaults():
    args = cli.parse_arguments([])

    assert args.source == "./www"
    assert args.output == "./output"
    assert cli.parse_arguments(["dist", "out"]).output == "out"


@pytest.mark.asyncio
async def test_cli_exit_codes(monkeypatch, tmp_path):
    async def ok(self):
        return CrawlResult(pages_rendered=1)

    async def fail(self):
        raise ServerStartError("Cannot listen on localhost:1337")

    source, output = str(tmp_path / "www"), str(tmp_path / "out")

    monkeypatch.setattr(PrerenderManager, "start", ok)
    assert await cli.main([source, output]) == 0

    monkeypatch.setattr(PrerenderManager, "start", fail)
    assert await cli.main([source, output]) == 1
