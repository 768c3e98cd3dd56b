from __future__ import annotations

import logging
from datetime import date
from pathlib import Path
from typing import Optional

import duckdb  # type: ignore
import pandas as pd


logger = logging.getLogger(__name__)

PRICE_TABLE = "proto_price"
TRADES_TABLE = "trades"

TRADE_COLUMNS = [
    "transaction_id",
    "status",
    "timestamp",
    "sell_order_id",
    "sold_wei",
    "buy_order_id",
    "token_id",
    "token_address",
]


def _connect(db_path: Path):
    db_path.parent.mkdir(parents=True, exist_ok=True)
    return duckdb.connect(str(db_path))


def ensure_tables(db_path: Path) -> None:
    con = _connect(db_path)
    try:
        # price is stored in gwei; wei overflows BIGINT for expensive cards
        con.execute(
            f"""
            CREATE TABLE IF NOT EXISTS {PRICE_TABLE} (
              date DATE NOT NULL,
              proto INTEGER NOT NULL,
              price BIGINT NOT NULL,
              created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
              PRIMARY KEY (date, proto)
            );
            """
        )
        con.execute(
            f"""
            CREATE TABLE IF NOT EXISTS {TRADES_TABLE} (
              transaction_id BIGINT PRIMARY KEY,
              status VARCHAR,
              timestamp TIMESTAMP,
              sell_order_id BIGINT,
              sold_wei VARCHAR,
              buy_order_id BIGINT,
              token_id VARCHAR,
              token_address VARCHAR,
              created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            );
            """
        )
    finally:
        con.close()


def upsert_proto_price(db_path: Path, day: date, proto: int, price_gwei: int) -> None:
    """Insert the day's price for ``proto`` or overwrite the existing one."""
    q = f"""
        INSERT INTO {PRICE_TABLE} (date, proto, price) VALUES (?, ?, ?)
        ON CONFLICT (date, proto) DO UPDATE SET price = EXCLUDED.price
    """
    logger.debug("upsert %s date=%s proto=%s price=%s", PRICE_TABLE, day, proto, price_gwei)
    con = _connect(db_path)
    try:
        con.execute(q, [day, int(proto), int(price_gwei)])
    finally:
        con.close()


def read_proto_prices(db_path: Path, day: Optional[date] = None) -> pd.DataFrame:
    con = _connect(db_path)
    try:
        if day is None:
            q = f"SELECT date, proto, price FROM {PRICE_TABLE} ORDER BY date, proto"
            return con.execute(q).fetch_df()
        q = f"SELECT date, proto, price FROM {PRICE_TABLE} WHERE date = ? ORDER BY proto"
        return con.execute(q, [day]).fetch_df()
    finally:
        con.close()


def append_trades_if_absent(db_path: Path, df: pd.DataFrame) -> int:
    """Insert trades whose transaction_id is not stored yet. Returns the number inserted."""
    if df.empty:
        return 0
    con = _connect(db_path)
    try:
        before = con.execute(f"SELECT COUNT(*) FROM {TRADES_TABLE}").fetchone()[0]
        for _, row in df.loc[:, TRADE_COLUMNS].iterrows():
            con.execute(
                f"""
                INSERT INTO {TRADES_TABLE} ({", ".join(TRADE_COLUMNS)})
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT (transaction_id) DO NOTHING
                """,
                [
                    int(row["transaction_id"]),
                    row["status"],
                    pd.to_datetime(row["timestamp"]).to_pydatetime(),
                    int(row["sell_order_id"]),
                    str(row["sold_wei"]),
                    int(row["buy_order_id"]),
                    str(row["token_id"]),
                    row["token_address"],
                ],
            )
        after = con.execute(f"SELECT COUNT(*) FROM {TRADES_TABLE}").fetchone()[0]
        return int(after - before)
    finally:
        con.close()


def coverage_stats(db_path: Path) -> Optional[tuple[pd.Timestamp, pd.Timestamp, int]]:
    con = _connect(db_path)
    try:
        q = f"SELECT MIN(date), MAX(date), COUNT(*) FROM {PRICE_TABLE}"
        res = con.execute(q).fetchone()
        if res is None or res[0] is None:
            return None
        return pd.Timestamp(res[0]), pd.Timestamp(res[1]), int(res[2])
    finally:
        con.close()
