#!/usr/bin/env python3
from __future__ import annotations

"""
Pull successful ETH-for-card trades on the GU collection for a time window.

Goals:
  1) Page through all trades in [min_timestamp, max_timestamp]
  2) Persist a raw CSV snapshot per run
  3) Optionally append new trades to DuckDB, keyed on transaction_id

Example:
  python -m gu_market_feed.scripts.fetch_trades \
    --min-timestamp 2022-05-27T00:00:00Z --max-timestamp 2022-05-27T01:00:00Z \
    --persist-dir artifacts --duckdb gu.duckdb
"""

import argparse
import asyncio
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

if __name__ == "__main__":
    project_root = Path(__file__).resolve().parent.parent.parent
    if str(project_root) not in sys.path:
        sys.path.insert(0, str(project_root))

from gu_market_feed.etl import AsyncIndependentJob, RetryOptions
from gu_market_feed.immutable.api import IMX_API, ImmutableXClient, fetch_trades
from gu_market_feed.immutable.db import append_trades_if_absent, ensure_tables
from gu_market_feed.immutable.persistence import (
    PersistConfig,
    now_utc_run_id,
    trades_to_dataframe,
    write_trades_snapshot,
)


@dataclass
class RunConfig:
    min_timestamp: str
    max_timestamp: str
    persist_dir: Path
    dataset_slug: str = "gu_trades"
    duckdb_path: Optional[Path] = None
    api_url: str = IMX_API
    max_retries: int = 5
    debug: bool = False


def make_client(api_url: str) -> ImmutableXClient:
    return ImmutableXClient(api_url)


async def run_once(cfg: RunConfig) -> int:
    async with make_client(cfg.api_url) as client:
        # Re-fetching the whole window on failure is fine, nothing is written until the end
        job = AsyncIndependentJob(
            lambda: fetch_trades(client, min_timestamp=cfg.min_timestamp, max_timestamp=cfg.max_timestamp),
            RetryOptions(max_retries=cfg.max_retries),
        )
        trades = await job.run()

    df = trades_to_dataframe(trades)
    raw_path = write_trades_snapshot(PersistConfig(cfg.persist_dir, cfg.dataset_slug), now_utc_run_id(), df)

    appended = 0
    if cfg.duckdb_path is not None:
        ensure_tables(cfg.duckdb_path)
        appended = append_trades_if_absent(cfg.duckdb_path, df)

    print(
        f"trades={len(df)} appended={appended} window=[{cfg.min_timestamp}..{cfg.max_timestamp}] raw={raw_path}"
    )
    return 0


def parse_args(argv: Optional[List[str]] = None) -> RunConfig:
    p = argparse.ArgumentParser(description="Fetch GU trades from Immutable X for a time window")
    p.add_argument("--min-timestamp", required=True, help="ISO-8601 window start, e.g. 2022-05-27T00:00:00Z")
    p.add_argument("--max-timestamp", required=True, help="ISO-8601 window end")
    p.add_argument("--persist-dir", type=Path, required=True, help="Directory root for artifacts")
    p.add_argument("--dataset", default="gu_trades", help="Dataset slug directory for artifacts")
    p.add_argument("--duckdb", type=Path, default=None, help="Optional DuckDB file to append trades to")
    p.add_argument("--api-url", default=IMX_API, help="Immutable X API base URL")
    p.add_argument("--max-retries", type=int, default=5)
    p.add_argument("--debug", action="store_true")
    args = p.parse_args(argv)
    return RunConfig(
        min_timestamp=args.min_timestamp,
        max_timestamp=args.max_timestamp,
        persist_dir=args.persist_dir,
        dataset_slug=args.dataset,
        duckdb_path=args.duckdb,
        api_url=args.api_url,
        max_retries=args.max_retries,
        debug=bool(args.debug),
    )


def main(argv: Optional[List[str]] = None) -> int:
    cfg = parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if cfg.debug else logging.INFO)
    try:
        return asyncio.run(run_once(cfg))
    except Exception as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        if cfg.debug:
            raise
        return 3


if __name__ == "__main__":
    raise SystemExit(main())
