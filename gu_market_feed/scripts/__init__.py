"""CLI scripts for pulling and exporting Gods Unchained marketplace data.

Scripts:
- fetch_and_save_assets: Download all GU assets owned by a wallet to JSON
- calc_assets_value: Value a saved asset list at current best sell prices
- fetch_trades: Pull successful trades for a time window into CSV and DuckDB
- export_duckdb_proto_prices_to_csv: Export stored proto prices to CSV

Usage:
    python -m gu_market_feed.scripts.fetch_and_save_assets --help
    python -m gu_market_feed.scripts.fetch_trades --help
"""

__all__ = [
    "fetch_and_save_assets",
    "calc_assets_value",
    "fetch_trades",
    "export_duckdb_proto_prices_to_csv",
]
