from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List

import pandas as pd

from .db import TRADE_COLUMNS


@dataclass(frozen=True)
class PersistConfig:
    root_dir: Path
    dataset_slug: str

    def dataset_dir(self) -> Path:
        d = self.root_dir / self.dataset_slug
        d.mkdir(parents=True, exist_ok=True)
        return d


def now_utc_run_id() -> str:
    return datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%SZ")


def save_assets(assets: List[Dict[str, Any]], path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(assets, indent=1), encoding="utf-8")
    return path


def load_assets_from_file(path: Path) -> List[Dict[str, Any]]:
    return json.loads(path.read_text(encoding="utf-8"))


def trades_to_dataframe(trades: List[Dict[str, Any]]) -> pd.DataFrame:
    """Flatten raw trades into the canonical trade columns.

    Party ``a`` is the ETH side (``sold`` is the price in wei), party ``b`` is the card.
    ``sold_wei`` stays a string: wei amounts do not fit in int64.
    """
    if not trades:
        return pd.DataFrame(columns=TRADE_COLUMNS)
    df = pd.DataFrame(
        [
            {
                "transaction_id": int(t["transaction_id"]),
                "status": t.get("status"),
                "timestamp": pd.to_datetime(t["timestamp"], utc=True).tz_convert(None),
                "sell_order_id": int(t["a"]["order_id"]),
                "sold_wei": str(t["a"]["sold"]),
                "buy_order_id": int(t["b"]["order_id"]),
                "token_id": str(t["b"].get("token_id", "")),
                "token_address": t["b"].get("token_address"),
            }
            for t in trades
        ]
    )
    df = df.sort_values(["timestamp", "transaction_id"], kind="mergesort").reset_index(drop=True)
    return df


def write_trades_snapshot(cfg: PersistConfig, run_id: str, df: pd.DataFrame) -> Path:
    out = cfg.dataset_dir() / f"{run_id}_trades.csv"
    df.loc[:, TRADE_COLUMNS].to_csv(out, index=False)
    return out
