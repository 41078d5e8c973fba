#!/usr/bin/env python3
"""
Styled snapshot - command-line entry point.
Loads a page in Chromium and writes one self-contained HTML snapshot.
"""

import argparse
import asyncio
import logging
import re
import sys
from pathlib import Path
from typing import Dict, List, Optional

from .browser import DEFAULT_VIEWPORT, snapshot_url
from .config import DEFAULT_FETCH_TIMEOUT_MS, DEFAULT_PROXY_URL, CaptureConfig


def normalize_url(url: str) -> str:
    if not re.match(r"^[a-zA-Z][a-zA-Z0-9+.-]*://", url):
        return "https://" + url
    return url


def parse_viewport(width: Optional[int], height: Optional[int]) -> Dict[str, int]:
    return {
        "width": width or DEFAULT_VIEWPORT["width"],
        "height": height or DEFAULT_VIEWPORT["height"],
    }


def build_config(args: argparse.Namespace) -> CaptureConfig:
    return CaptureConfig(
        proxy_url=args.proxy_url,
        use_proxy=not args.no_proxy,
        fetch_timeout_ms=args.fetch_timeout,
        raise_errors=args.strict,
    )


def write_output(content: str, output: Optional[str]) -> None:
    if not output:
        sys.stdout.write(content)
        sys.stdout.write("\n")
        return
    path = Path(output)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    print(f"Snapshot: {path} ({len(content)} characters)", file=sys.stderr)


async def main_async(args: argparse.Namespace) -> None:
    url = normalize_url(args.url)
    print(f"Capturing {url}", file=sys.stderr)
    content = await snapshot_url(
        url,
        config=build_config(args),
        viewport=parse_viewport(args.width, args.height),
        wait_until=args.wait_until,
        timeout_ms=args.timeout,
        headless=not args.headed,
    )
    write_output(content, args.output)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Capture a page as one self-contained, styled HTML document")
    parser.add_argument("url", help="Page to capture")
    parser.add_argument("--output", "-o", help="Output file (default: stdout)")
    parser.add_argument("--width", type=int, help="Viewport width")
    parser.add_argument("--height", type=int, help="Viewport height")
    parser.add_argument(
        "--wait-until",
        default="domcontentloaded",
        choices=["load", "domcontentloaded", "networkidle", "commit"],
        help="Navigation event to wait for before capturing",
    )
    parser.add_argument("--timeout", type=int, default=60000, help="Navigation timeout in milliseconds")
    parser.add_argument("--no-proxy", action="store_true", help="Do not retry failed stylesheet downloads through the proxy")
    parser.add_argument("--proxy-url", default=DEFAULT_PROXY_URL, help="Proxy prefix for stylesheet downloads")
    parser.add_argument(
        "--fetch-timeout",
        type=int,
        default=DEFAULT_FETCH_TIMEOUT_MS,
        help="Stylesheet download timeout in milliseconds",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Fail instead of writing a fallback document when the capture breaks",
    )
    parser.add_argument("--headed", action="store_true", help="Show the browser window")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        asyncio.run(main_async(args))
    except Exception as exc:
        print(f"Capture failed: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
