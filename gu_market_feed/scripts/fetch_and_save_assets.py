#!/usr/bin/env python3
from __future__ import annotations

"""
Fetch every Gods Unchained asset owned by a wallet and save them to JSON.

The saved file is the input of calc_assets_value, so valuation can be rerun
without paging through the whole inventory again.

Example:
  python -m gu_market_feed.scripts.fetch_and_save_assets --user 0xabc... --out assets.json
"""

import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

# Add project root to path if running as script
if __name__ == "__main__":
    project_root = Path(__file__).resolve().parent.parent.parent
    if str(project_root) not in sys.path:
        sys.path.insert(0, str(project_root))

from gu_market_feed.immutable.api import GU_COLLECTION_ADDRESS, IMX_API, ImmutableXClient, fetch_assets
from gu_market_feed.immutable.persistence import save_assets


async def run(user: str, out: Path, api_url: str) -> int:
    async with ImmutableXClient(api_url) as client:
        assets = await fetch_assets(client, collection=GU_COLLECTION_ADDRESS, user=user)
    save_assets(assets, out)
    print(f"assets={len(assets)} user={user} out={out}")
    return 0


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Fetch GU assets owned by a wallet into a JSON file")
    p.add_argument(
        "--user",
        default=os.environ.get("MY_WALLET_ADDRESS"),
        help="Wallet address (default: $MY_WALLET_ADDRESS)",
    )
    p.add_argument("--out", type=Path, default=Path("assets.json"), help="Output JSON path")
    p.add_argument("--api-url", default=IMX_API, help="Immutable X API base URL")
    p.add_argument("--debug", action="store_true")
    args = p.parse_args(argv)
    if not args.user:
        p.error("--user is required when MY_WALLET_ADDRESS is not set")
    return args


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.debug else logging.INFO)
    try:
        return asyncio.run(run(args.user, args.out, args.api_url))
    except Exception as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        if args.debug:
            raise
        return 3


if __name__ == "__main__":
    raise SystemExit(main())
