from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ..etl import RetriesExhaustedError, RetryOptions
from .api import IMX_API, ImmutableXClient
from .db import ensure_tables
from .jobs import DEFAULT_QUALITY, create_fetch_proto_range_price_job


@dataclass
class RunConfig:
    proto_from: int
    proto_to: int
    duckdb_path: Path
    quality: str = DEFAULT_QUALITY
    api_url: str = IMX_API
    max_retries: int = 5
    retry_delay: float = 0.0
    debug: bool = False


def make_client(api_url: str) -> ImmutableXClient:
    return ImmutableXClient(api_url)


async def run_once(cfg: RunConfig) -> int:
    ensure_tables(cfg.duckdb_path)

    opts = RetryOptions(max_retries=cfg.max_retries, delay_seconds=cfg.retry_delay)
    async with make_client(cfg.api_url) as client:
        job = create_fetch_proto_range_price_job(
            client, cfg.duckdb_path, cfg.proto_from, cfg.proto_to, cfg.quality, opts
        )
        try:
            results = await job.run()
        except RetriesExhaustedError as e:
            print(f"[ERROR] price range job failed after {e.attempts} pass(es): {e.root_cause!r}", file=sys.stderr)
            return 1

    priced = sum(1 for r in results if r.price_wei > 0)
    print(
        f"fetched={len(results)} priced={priced} from={cfg.proto_from} to={cfg.proto_to} "
        f"quality={cfg.quality} errors=0 db={cfg.duckdb_path}"
    )
    return 0


def parse_args(argv: Optional[list[str]] = None) -> RunConfig:
    p = argparse.ArgumentParser(description="Fetch GU proto prices from Immutable X into DuckDB")
    p.add_argument("--from", dest="proto_from", type=int, required=True, help="First proto (inclusive)")
    p.add_argument("--to", dest="proto_to", type=int, required=True, help="Last proto (exclusive)")
    p.add_argument("--duckdb", type=Path, required=True, help="Path to DuckDB file")
    p.add_argument("--quality", default=DEFAULT_QUALITY, help="Card quality (default: Meteorite)")
    p.add_argument("--api-url", default=IMX_API, help="Immutable X API base URL")
    p.add_argument("--max-retries", type=int, default=5, help="Retries per proto and per range pass")
    p.add_argument("--retry-delay", type=float, default=0.0, help="Seconds to wait between attempts")
    p.add_argument("--debug", action="store_true", help="Verbose logging")
    args = p.parse_args(argv)
    if args.proto_to < args.proto_from:
        p.error("--to must be >= --from")

    return RunConfig(
        proto_from=args.proto_from,
        proto_to=args.proto_to,
        duckdb_path=args.duckdb,
        quality=args.quality,
        api_url=args.api_url,
        max_retries=args.max_retries,
        retry_delay=args.retry_delay,
        debug=args.debug,
    )


def setup_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def main(argv: Optional[list[str]] = None) -> int:
    cfg = parse_args(argv)
    setup_logging(cfg.debug)
    try:
        return asyncio.run(run_once(cfg))
    except Exception as e:  # surface clear error message
        print(f"[ERROR] {e}", file=sys.stderr)
        if cfg.debug:
            raise
        return 3


if __name__ == "__main__":
    raise SystemExit(main())
