from __future__ import annotations

import asyncio
import os

import pytest

from gu_market_feed.immutable.api import (
    GU_COLLECTION_ADDRESS,
    ImmutableXClient,
    calc_asset_price,
    get_best_sell_order,
    order_price_wei,
)


pytestmark = pytest.mark.skipif(os.environ.get("IMX_E2E") != "1", reason="set IMX_E2E=1 to hit the real API")


def test_real_assets_page():
    async def call():
        async with ImmutableXClient() as client:
            return await client.get_assets(collection=GU_COLLECTION_ADDRESS, page_size=5)

    page = asyncio.run(call())
    assert 0 < len(page.result) <= 5
    for asset in page.result:
        assert asset["token_address"].lower() == GU_COLLECTION_ADDRESS
        assert "proto" in asset["metadata"]


def test_real_best_sell_order():
    # Proto 1 (Meteorite) has been listed continuously since launch
    async def call():
        async with ImmutableXClient() as client:
            order = await get_best_sell_order(client, 1, "Meteorite")
            price = await calc_asset_price(client, 1, "Meteorite")
            return order, price

    order, price = asyncio.run(call())
    if order is None:
        pytest.skip("no active sell orders for proto 1")
    assert order_price_wei(order) > 0
    assert price > 0
