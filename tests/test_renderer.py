"""
Tests for the page renderer. A fake browser stands in for Chromium.
"""

from __future__ import annotations

import asyncio
from types import SimpleNamespace

import pytest
from playwright.async_api import Error as PlaywrightError, TimeoutError as PlaywrightTimeout

from spa_prerender.crawler import PageRenderer, RenderResult
from spa_prerender.crawler.renderer import LINK_SCRIPT


ORIGIN = "http://localhost:1337"


def test_collect_links_deduplicates_and_filters():
    renderer = PageRenderer(origin=ORIGIN)

    links = renderer.collect_links([
        ORIGIN + "/about",
        ORIGIN + "/about",
        ORIGIN + "/about/",
        ORIGIN + "/about#team",
        ORIGIN + "/",
        "http://localhost:9999/other",
        "https://example.com/",
    ])

    assert links == {"/about", "/"}


def test_render_result_ok():
    assert RenderResult(url=ORIGIN, html="<html></html>").ok
    assert not RenderResult(url=ORIGIN, errors=["boom"]).ok


@pytest.mark.asyncio
async def test_shutdown_without_browser_is_a_noop():
    renderer = PageRenderer(origin=ORIGIN)

    await renderer.shutdown()
    await renderer.shutdown()

    assert not renderer.started


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error",
    [
        PlaywrightTimeout("Timeout 30000ms exceeded."),
        PlaywrightError("net::ERR_CONNECTION_REFUSED"),
        RuntimeError("unexpected"),
    ],
)
async def test_navigation_failures_come_back_as_results(monkeypatch, error):
    renderer = PageRenderer(origin=ORIGIN)

    async def fail(result):
        result.html = "<html>partial</html>"
        raise error

    monkeypatch.setattr(renderer, "_render_into", fail)

    result = await renderer.render(ORIGIN + "/about")

    assert result.url == ORIGIN + "/about"
    assert result.html == ""
    assert len(result.errors) == 1


@pytest.mark.asyncio
async def test_hanging_render_is_cut_off(monkeypatch):
    renderer = PageRenderer(origin=ORIGIN, timeout=10)

    async def hang(result):
        await asyncio.sleep(5)

    monkeypatch.setattr(renderer, "_render_into", hang)

    result = await renderer.render(ORIGIN + "/slow")

    assert result.html == ""
    assert "timed out" in result.errors[0]


class FakePage:
    """Just enough of a Playwright page for one render."""

    def __init__(self, html="<html><body></body></html>", hrefs=(), status=200,
                 goto_error=None, fire=()):
        self.html = html
        self.hrefs = list(hrefs)
        self.status = status
        self.goto_error = goto_error
        self.fire = list(fire)
        self.handlers = {}
        self.evaluated = []
        self.default_timeout = None

    def set_default_timeout(self, timeout):
        self.default_timeout = timeout

    def on(self, event, handler):
        self.handlers[event] = handler

    async def goto(self, url, wait_until=None, timeout=None):
        for event, payload in self.fire:
            self.handlers[event](payload)
        if self.goto_error is not None:
            raise self.goto_error
        return SimpleNamespace(status=self.status)

    async def evaluate(self, script, arg):
        self.evaluated.append((script, arg))
        return self.hrefs

    async def content(self):
        return self.html


class FakeContext:
    def __init__(self, page):
        self.page = page
        self.closed = False

    async def new_page(self):
        return self.page

    async def close(self):
        self.closed = True


class FakeBrowser:
    def __init__(self, page):
        self.contexts = []
        self.page = page

    async def new_context(self, **kwargs):
        context = FakeContext(self.page)
        self.contexts.append(context)
        return context


def with_browser(monkeypatch, renderer, page) -> FakeBrowser:
    browser = FakeBrowser(page)

    async def ensure_browser():
        return browser

    monkeypatch.setattr(renderer, "_ensure_browser", ensure_browser)
    return browser


@pytest.mark.asyncio
async def test_render_collects_html_and_same_origin_links(monkeypatch):
    renderer = PageRenderer(origin=ORIGIN + "/", timeout=5000)
    page = FakePage(
        html="<html><body>hello</body></html>",
        hrefs=[ORIGIN + "/about", ORIGIN + "/about/", "https://example.com/"],
    )
    browser = with_browser(monkeypatch, renderer, page)

    result = await renderer.render(ORIGIN + "/")

    assert result.html == "<html><body>hello</body></html>"
    assert result.links == {"/about"}
    assert result.errors == []
    assert page.evaluated == [(LINK_SCRIPT, ORIGIN)]
    assert page.default_timeout == 5000
    assert browser.contexts[0].closed


@pytest.mark.asyncio
async def test_page_errors_are_recorded_and_html_kept(monkeypatch):
    renderer = PageRenderer(origin=ORIGIN)
    page = FakePage(
        fire=[
            ("pageerror", SimpleNamespace(name="TypeError", message="x is undefined")),
            ("crash", None),
        ],
    )
    with_browser(monkeypatch, renderer, page)

    result = await renderer.render(ORIGIN + "/broken")

    assert result.html == page.html
    assert result.errors == [
        "TypeError: x is undefined",
        f"Page crashed: {ORIGIN}/broken",
    ]


@pytest.mark.asyncio
async def test_failed_navigation_closes_the_context(monkeypatch):
    renderer = PageRenderer(origin=ORIGIN)
    page = FakePage(goto_error=PlaywrightError("net::ERR_CONNECTION_REFUSED"))
    browser = with_browser(monkeypatch, renderer, page)

    result = await renderer.render(ORIGIN + "/down")

    assert result.html == ""
    assert "ERR_CONNECTION_REFUSED" in result.errors[0]
    assert browser.contexts[0].closed


@pytest.mark.asyncio
async def test_http_error_status_yields_no_html_or_links(monkeypatch):
    renderer = PageRenderer(origin=ORIGIN)
    page = FakePage(status=404, hrefs=[ORIGIN + "/about"])
    browser = with_browser(monkeypatch, renderer, page)

    result = await renderer.render(ORIGIN + "/missing")

    assert result.html == ""
    assert result.links == set()
    assert result.errors == ["HTTP 404"]
    assert page.evaluated == []
    assert browser.contexts[0].closed
