from __future__ import annotations

import re

import pandas as pd

from gu_market_feed.immutable.db import TRADE_COLUMNS
from gu_market_feed.immutable.persistence import (
    PersistConfig,
    load_assets_from_file,
    now_utc_run_id,
    save_assets,
    trades_to_dataframe,
    write_trades_snapshot,
)

from fakes import make_asset, make_trade


def test_save_and_load_assets(tmp_path):
    assets = [make_asset(1, 100, "Meteorite"), make_asset(2, 101, "Gold")]
    out = save_assets(assets, tmp_path / "out" / "assets.json")
    assert out.exists()
    # one-space indent per level
    assert out.read_text().startswith('[\n {\n  "token_id"')
    assert load_assets_from_file(out) == assets


def test_trades_to_dataframe_sorted_and_flat():
    df = trades_to_dataframe(
        [
            make_trade(2, "2022-05-27T00:11:00Z", 10 ** 15, 5),
            make_trade(1, "2022-05-27T00:10:17.476Z", 961000000000000, 54575984),
        ]
    )
    assert list(df.columns) == TRADE_COLUMNS
    assert df["transaction_id"].tolist() == [1, 2]
    assert df["sold_wei"].iloc[0] == "961000000000000"
    assert df["token_id"].iloc[0] == "54575984"
    assert df["timestamp"].iloc[0] == pd.Timestamp("2022-05-27 00:10:17.476")
    assert df["sell_order_id"].iloc[0] == 10
    assert df["buy_order_id"].iloc[0] == 11


def test_empty_trades_snapshot(tmp_path):
    df = trades_to_dataframe([])
    assert df.empty
    assert list(df.columns) == TRADE_COLUMNS

    cfg = PersistConfig(tmp_path / "artifacts", "test_dataset")
    out = write_trades_snapshot(cfg, "20220527_000000Z", df)
    assert out.name == "20220527_000000Z_trades.csv"
    assert list(pd.read_csv(out).columns) == TRADE_COLUMNS


def test_write_trades_snapshot(tmp_path):
    df = trades_to_dataframe([make_trade(1, "2022-05-27T00:10:17Z", 961000000000000, 54575984)])
    cfg = PersistConfig(tmp_path, "gu_trades")
    out = write_trades_snapshot(cfg, now_utc_run_id(), df)
    assert out.parent == tmp_path / "gu_trades"
    assert re.match(r"\d{8}_\d{6}Z_trades\.csv", out.name)
    df2 = pd.read_csv(out, dtype={"sold_wei": str})
    assert len(df2) == 1
    assert df2["sold_wei"].iloc[0] == "961000000000000"
