"""
Shared fixtures for the prerender tests.

Provides a scripted renderer that stands in for the browser.
"""

from __future__ import annotations

import asyncio
from typing import Dict, Iterable, List, Union

import pytest

from spa_prerender.crawler import RenderResult


ORIGIN = "http://127.0.0.1:1337"

Page = Union[Iterable[str], BaseException, RenderResult]


def page_html(route: str, links: Iterable[str] = ()) -> str:
    anchors = "".join(f'<a href="{link}">{link}</a>' for link in links)
    return (
        "<!DOCTYPE html><html><head><title>t</title></head>"
        f'<body><div class="hydrated"><h1>{route}</h1><nav>{anchors}</nav></div></body></html>'
    )


class ScriptedRenderer:
    """Renders routes from a dictionary instead of a browser."""

    def __init__(self, pages: Dict[str, Page], origin: str = ORIGIN, delay: float = 0.0):
        self.pages = pages
        self.origin = origin
        self.delay = delay
        self.calls: List[str] = []
        self.active = 0
        self.peak = 0
        self.shutdown_calls = 0

    async def render(self, url: str) -> RenderResult:
        route = url[len(self.origin):] or "/"
        self.calls.append(route)
        self.active += 1
        self.peak = max(self.peak, self.active)
        try:
            await asyncio.sleep(self.delay)
            page = self.pages.get(route)
            if isinstance(page, BaseException):
                raise page
            if isinstance(page, RenderResult):
                return page
            if page is None:
                return RenderResult(url=url, errors=["HTTP 404"])
            links = list(page)
            return RenderResult(url=url, html=page_html(route, links), links=set(links))
        finally:
            self.active -= 1

    async def shutdown(self) -> None:
        self.shutdown_calls += 1


@pytest.fixture
def origin() -> str:
    return ORIGIN


@pytest.fixture
def scripted_renderer():
    """Factory for ScriptedRenderer instances."""

    def make(pages: Dict[str, Page], **kwargs) -> ScriptedRenderer:
        return ScriptedRenderer(pages, **kwargs)

    return make
