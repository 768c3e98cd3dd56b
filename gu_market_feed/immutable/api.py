from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Optional

import aiohttp


logger = logging.getLogger(__name__)

IMX_API = os.environ.get("IMX_API_URL", "https://api.x.immutable.com/v1")

GU_COLLECTION_ADDRESS = "0xacb3c6a43d15b907e8433077b6d38ae40936fe2c"

ERC20_TOKEN_ADDRESS = {
    "GODS": "0xccc8cb5229b0ac8069c51fd58367fd1e622afd97",
    "IMX": "0xf57e7e7c23978c3caec3c3548e3d615c346e79ff",
}

WEI_PER_ETH = 10 ** 18
WEI_PER_GWEI = 10 ** 9


@dataclass(frozen=True)
class Page:
    result: List[Dict[str, Any]] = field(default_factory=list)
    cursor: Optional[str] = None
    remaining: Optional[int] = None

    @property
    def has_more(self) -> bool:
        # Older responses omit `remaining`; fall back to cursor presence
        if self.remaining is not None:
            return bool(self.remaining) and bool(self.cursor)
        return bool(self.cursor)


def wei_to_eth(value: int) -> str:
    eth = Decimal(int(value)) / Decimal(WEI_PER_ETH)
    return format(eth.normalize(), "f")


def wei_to_gwei(value: int) -> int:
    return int(value) // WEI_PER_GWEI


def _clean_params(params: Dict[str, Any]) -> Dict[str, str]:
    out: Dict[str, str] = {}
    for k, v in params.items():
        if v is None:
            continue
        out[k] = str(v)
    return out


class ImmutableXClient:
    """Thin async wrapper over the Immutable X public REST API (v1)."""

    def __init__(self, api_url: str = IMX_API, *, timeout: float = 30.0, session: Optional[aiohttp.ClientSession] = None):
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self) -> "ImmutableXClient":
        if self._session is None:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout),
                headers={"User-Agent": "gu-market-feed/0.1"},
            )
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def close(self) -> None:
        if self._session is not None and self._owns_session:
            await self._session.close()
        self._session = None

    async def _get(self, path: str, params: Dict[str, Any]) -> Page:
        if self._session is None:
            raise RuntimeError("ImmutableXClient used outside of 'async with'")
        url = f"{self.api_url}/{path}"
        async with self._session.get(url, params=_clean_params(params)) as resp:
            resp.raise_for_status()
            payload = await resp.json()
        return Page(
            result=list(payload.get("result") or []),
            cursor=payload.get("cursor") or None,
            remaining=payload.get("remaining"),
        )

    async def get_assets(self, **params: Any) -> Page:
        return await self._get("assets", params)

    async def get_orders(self, **params: Any) -> Page:
        return await self._get("orders", params)

    async def get_trades(self, **params: Any) -> Page:
        return await self._get("trades", params)


async def fetch_assets(client: ImmutableXClient, **filters: Any) -> List[Dict[str, Any]]:
    """Fetch every asset matching ``filters``, following the cursor to the end."""
    assets: List[Dict[str, Any]] = []
    cursor: Optional[str] = None
    while True:
        page = await client.get_assets(**filters, cursor=cursor)
        assets.extend(page.result)
        if not page.has_more:
            break
        cursor = page.cursor
    return assets


async def fetch_trades(client: ImmutableXClient, **filters: Any) -> List[Dict[str, Any]]:
    """Fetch successful ETH-for-card trades on the GU collection.

    Volume is roughly 1k trades per hour, so keep the timestamp window tight.
    """
    trades: List[Dict[str, Any]] = []
    cursor: Optional[str] = None
    page_num = 1
    while True:
        logger.debug("requesting page %d", page_num)
        page = await client.get_trades(
            **filters,
            status="success",
            party_a_token_type="ETH",
            party_b_token_address=GU_COLLECTION_ADDRESS,
            cursor=cursor,
        )
        logger.debug("%d items on page", len(page.result))
        trades.extend(page.result)
        if not page.has_more:
            break
        cursor = page.cursor
        page_num += 1
    return trades


async def get_assets_by_name(client: ImmutableXClient, name: str) -> List[Dict[str, Any]]:
    # Name search is full-text, not exact ("Tavern Brawler" matches several cards).
    # Filter by proto when an exact match is needed.
    page = await client.get_assets(collection=GU_COLLECTION_ADDRESS, name=name)
    return page.result


def sell_metadata(proto: int, quality: str) -> str:
    # The API only matches proto when it is given as a string
    return json.dumps({"proto": [str(proto)], "quality": [quality]})


async def get_best_sell_order(client: ImmutableXClient, proto: int, quality: str) -> Optional[Dict[str, Any]]:
    page = await client.get_orders(
        status="active",
        sell_token_address=GU_COLLECTION_ADDRESS,
        sell_metadata=sell_metadata(proto, quality),
        buy_token_type="ETH",
        order_by="buy_quantity",
        direction="asc",
        page_size=1,
    )
    return page.result[0] if page.result else None


def order_price_wei(order: Dict[str, Any]) -> int:
    return int(order["buy"]["data"]["quantity"])


async def calc_asset_price(client: ImmutableXClient, proto: int, quality: str) -> int:
    """Best active sell price in wei, used as the market price.

    There are no buy-limit orders on the marketplace, so the cheapest listing is the
    best available estimate. Returns 0 when nothing is listed.
    """
    order = await get_best_sell_order(client, proto, quality)
    if order is None:
        logger.warning("no sell orders for proto=%s quality=%s", proto, quality)
        return 0
    return order_price_wei(order)
