#!/usr/bin/env python3
from __future__ import annotations

"""
Export stored proto prices from DuckDB to a CSV.

Usage examples:
  python -m gu_market_feed.scripts.export_duckdb_proto_prices_to_csv \
    --duckdb gu.duckdb --out data/proto_price.csv --overwrite
  python -m gu_market_feed.scripts.export_duckdb_proto_prices_to_csv \
    --duckdb gu.duckdb --date 2022-05-27 --out data/proto_price_20220527.csv

Notes:
  - Outputs columns: date, proto, price_gwei, price_eth
  - By default prevents overwriting unless --overwrite is passed
"""

import argparse
import sys
from datetime import date
from pathlib import Path
from typing import List, Optional

if __name__ == "__main__":
    project_root = Path(__file__).resolve().parent.parent.parent
    if str(project_root) not in sys.path:
        sys.path.insert(0, str(project_root))

from gu_market_feed.immutable.api import WEI_PER_GWEI, wei_to_eth
from gu_market_feed.immutable.db import ensure_tables, read_proto_prices


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Export proto prices from DuckDB to CSV")
    parser.add_argument("--duckdb", type=Path, required=True, help="Path to DuckDB file")
    parser.add_argument("--date", type=date.fromisoformat, default=None, help="Only export this day (YYYY-MM-DD)")
    parser.add_argument("--out", type=Path, default=Path("data") / "proto_price.csv", help="Output CSV path")
    parser.add_argument("--overwrite", action="store_true", help="Allow overwriting existing output file")
    args = parser.parse_args(argv)

    out_path: Path = args.out
    out_path.parent.mkdir(parents=True, exist_ok=True)
    if out_path.exists() and not args.overwrite:
        print(f"ERROR: Output exists: {out_path}. Pass --overwrite to replace.")
        return 2

    ensure_tables(args.duckdb)
    df = read_proto_prices(args.duckdb, args.date)
    if df.empty:
        print("WARN: No rows fetched from DuckDB; writing empty CSV with header.")
    df = df.rename(columns={"price": "price_gwei"})
    df["price_eth"] = [wei_to_eth(int(p) * WEI_PER_GWEI) for p in df["price_gwei"]]
    df = df[["date", "proto", "price_gwei", "price_eth"]]

    df.to_csv(out_path, index=False)
    if not df.empty:
        print(f"Wrote {len(df):,} rows to {out_path}")
        print(f"Range: {df['date'].iloc[0]} .. {df['date'].iloc[-1]}")
    else:
        print(f"Wrote empty CSV to {out_path}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
