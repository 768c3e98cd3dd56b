from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List

import pandas as pd

from .api import ImmutableXClient, calc_asset_price, wei_to_eth


logger = logging.getLogger(__name__)

ASSET_COLUMNS = ["token_id", "name", "proto", "quality"]


@dataclass(frozen=True)
class AssetsValuation:
    total_wei: int
    groups: pd.DataFrame


def assets_to_dataframe(assets: List[Dict[str, Any]]) -> pd.DataFrame:
    rows = []
    for a in assets:
        meta = a.get("metadata") or {}
        rows.append(
            {
                "token_id": str(a.get("token_id", "")),
                "name": meta.get("name") or a.get("name"),
                "proto": int(meta["proto"]),
                "quality": meta.get("quality"),
            }
        )
    return pd.DataFrame(rows, columns=ASSET_COLUMNS)


def group_assets_by_proto_quality(assets: List[Dict[str, Any]]) -> pd.DataFrame:
    """One row per (proto, quality) with the first asset's name and a count, first-seen order."""
    df = assets_to_dataframe(assets)
    if df.empty:
        return pd.DataFrame(columns=["proto", "quality", "name", "count"])
    grouped = (
        df.groupby(["proto", "quality"], sort=False, dropna=False)
        .agg(name=("name", "first"), count=("token_id", "size"))
        .reset_index()
    )
    return grouped


async def calc_assets_total_value(client: ImmutableXClient, assets: List[Dict[str, Any]]) -> AssetsValuation:
    logger.info("total assets: %d", len(assets))
    groups = group_assets_by_proto_quality(assets)
    logger.info("total uniq assets: %d", len(groups))

    # Wei is kept as python ints (object columns): it overflows int64
    prices: List[int] = []
    values: List[int] = []
    for proto, quality, name, count in zip(groups["proto"], groups["quality"], groups["name"], groups["count"]):
        logger.info("Calculating asset price for %s, quality=%s, number=%d", name, quality, count)
        price = await calc_asset_price(client, int(proto), quality)
        logger.info("Asset price: %s Eth", wei_to_eth(price))
        prices.append(price)
        values.append(price * int(count))

    out = groups.copy()
    out["price_wei"] = pd.Series(prices, index=out.index, dtype=object)
    out["value_wei"] = pd.Series(values, index=out.index, dtype=object)
    return AssetsValuation(total_wei=sum(values), groups=out)
