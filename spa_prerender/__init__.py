"""
SPA Prerender - static snapshots of single-page applications.

This package crawls a locally served single-page app, renders every route
in a headless browser, annotates the markup for client-side re-hydration
and writes one static HTML file per route.
"""

__version__ = "1.0.0"
__author__ = "SPA Prerender Team"
