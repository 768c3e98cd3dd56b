#!/usr/bin/env python3
from __future__ import annotations

"""
Value a saved asset list (see fetch_and_save_assets) at current best sell prices.

Each distinct (proto, quality) is priced once; the total is count * price summed
over groups.

Example:
  python -m gu_market_feed.scripts.calc_assets_value --assets assets.json --out-csv valuation.csv
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

if __name__ == "__main__":
    project_root = Path(__file__).resolve().parent.parent.parent
    if str(project_root) not in sys.path:
        sys.path.insert(0, str(project_root))

from gu_market_feed.immutable.api import IMX_API, ImmutableXClient, wei_to_eth
from gu_market_feed.immutable.persistence import load_assets_from_file
from gu_market_feed.immutable.valuation import AssetsValuation, calc_assets_total_value


def make_client(api_url: str) -> ImmutableXClient:
    return ImmutableXClient(api_url)


async def run(assets_path: Path, api_url: str, out_csv: Optional[Path] = None) -> AssetsValuation:
    assets = load_assets_from_file(assets_path)
    async with make_client(api_url) as client:
        valuation = await calc_assets_total_value(client, assets)

    if out_csv is not None:
        out_csv.parent.mkdir(parents=True, exist_ok=True)
        df = valuation.groups.copy()
        df["price_eth"] = [wei_to_eth(v) for v in df["price_wei"]]
        df["value_eth"] = [wei_to_eth(v) for v in df["value_wei"]]
        df.to_csv(out_csv, index=False)

    print(f"assets={len(assets)} groups={len(valuation.groups)} total_eth={wei_to_eth(valuation.total_wei)}")
    return valuation


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Compute the total value of saved GU assets")
    p.add_argument("--assets", type=Path, default=Path("assets.json"), help="Assets JSON file")
    p.add_argument("--out-csv", type=Path, default=None, help="Optional per-group valuation CSV")
    p.add_argument("--api-url", default=IMX_API, help="Immutable X API base URL")
    p.add_argument("--debug", action="store_true")
    return p.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.debug else logging.INFO)
    if not args.assets.exists():
        print(f"[ERROR] Assets file not found: {args.assets}", file=sys.stderr)
        return 2
    try:
        asyncio.run(run(args.assets, args.api_url, args.out_csv))
        return 0
    except Exception as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        if args.debug:
            raise
        return 3


if __name__ == "__main__":
    raise SystemExit(main())
