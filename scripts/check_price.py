"""
check_price.py
==============
Run the extraction engine against one or more product URLs and print the
outcomes as JSON.

    python scripts/check_price.py https://www.amazon.com/dp/B0BSHF7WHW
    python scripts/check_price.py --no-render --concurrency 3 URL [URL ...]
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from pricedrop.core.config import Settings
from pricedrop.scraper import extract_products, get_supported_stores


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Extract product price snapshots.")
    parser.add_argument("urls", nargs="*", help="Product page URLs")
    parser.add_argument("--no-render", action="store_true", help="Disable headless rendering")
    parser.add_argument("--no-generic", action="store_true", help="Fail unregistered stores")
    parser.add_argument("--concurrency", type=int, default=None)
    parser.add_argument("--list-stores", action="store_true", help="Print supported domains")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser.parse_args(argv)


async def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)

    config = Settings()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else config.log_level,
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    if args.list_stores:
        print("\n".join(get_supported_stores()))
        return 0
    if not args.urls:
        print("No URLs given.", file=sys.stderr)
        return 2

    if args.no_render:
        config.rendering_enabled = False
    if args.no_generic:
        config.generic_fallback_enabled = False

    outcomes = await extract_products(args.urls, config, max_concurrency=args.concurrency)
    print(json.dumps([outcome.to_dict() for outcome in outcomes], indent=2, ensure_ascii=False))
    return 0 if all(outcome.success for outcome in outcomes) else 1


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
