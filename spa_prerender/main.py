#!/usr/bin/env python3
"""
SPA Prerender - static snapshots of single-page apps.

Serves a built single-page app locally, renders every reachable route in
headless Chromium, annotates the markup for client-side re-hydration and
writes one index.html per route.

Usage:
    spa-prerender [source] [output]

Log verbosity is read from SPA_PRERENDER_LOG_LEVEL (e.g. DEBUG).
"""

import argparse
import asyncio
import os
import sys
from typing import List, Optional

from spa_prerender.config import PrerenderOptions
from spa_prerender.errors import ConfigError, ServerStartError
from spa_prerender.manager import PrerenderManager
from spa_prerender.utils.constants import DEFAULT_OUTPUT_DIR, DEFAULT_SOURCE_DIR
from spa_prerender.utils.log import (
    level_from_env,
    setup_logger,
    print_error,
    print_info,
    print_success
)


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parse command line arguments.

    Returns:
        Parsed arguments namespace
    """
    parser = argparse.ArgumentParser(
        prog='spa-prerender',
        description='Prerender a single-page app into static HTML',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    %(prog)s
    %(prog)s ./dist
    %(prog)s ./dist ./prerendered
        """
    )

    parser.add_argument(
        'source',
        nargs='?',
        default=DEFAULT_SOURCE_DIR,
        help=f'Directory with the built app (default: {DEFAULT_SOURCE_DIR})'
    )

    parser.add_argument(
        'output',
        nargs='?',
        default=DEFAULT_OUTPUT_DIR,
        help=f'Directory for the prerendered site (default: {DEFAULT_OUTPUT_DIR})'
    )

    return parser.parse_args(argv)


async def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the prerenderer.

    Returns:
        Exit code (0 once the summary is printed, 1 if the run cannot start)
    """
    args = parse_arguments(argv)
    setup_logger(level=level_from_env())

    try:
        options = PrerenderOptions().with_directories(args.source, args.output)
        manager = PrerenderManager(options)

        print_info(f"Source: {manager.source_dir}")
        print_info(f"Output: {manager.output_dir}")

        await manager.start()

        print_success(f"Prerendered site written to: {os.path.abspath(args.output)}")
        return 0

    except ServerStartError as e:
        print_error(f"Cannot start server: {e}")
        return 1
    except ConfigError as e:
        print_error(f"Invalid configuration: {e}")
        return 1
    except KeyboardInterrupt:
        print_error("\nPrerender interrupted by user")
        return 1


def run() -> None:
    """Entry point wrapper for running as module."""
    sys.exit(asyncio.run(main()))


if __name__ == '__main__':
    run()
