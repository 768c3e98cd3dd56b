"""Proto price fetch jobs: one retryable job per proto, a sequence per range."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import date
from functools import partial
from pathlib import Path
from typing import List, Optional

from ..etl import AsyncIndependentJob, AsyncJob, AsyncJobSequence, RetryOptions
from .api import ImmutableXClient, calc_asset_price, wei_to_gwei
from .db import upsert_proto_price


logger = logging.getLogger(__name__)

DEFAULT_QUALITY = "Meteorite"


@dataclass(frozen=True)
class ProtoPrice:
    proto: int
    price_wei: int
    day: date


def default_retry_options() -> RetryOptions:
    return RetryOptions(max_retries=5)


async def fetch_proto_price(
    client: ImmutableXClient,
    db_path: Path,
    proto: int,
    quality: str = DEFAULT_QUALITY,
    day: Optional[date] = None,
) -> ProtoPrice:
    """Fetch the best sell price for ``proto`` and upsert it (in gwei) for ``day``.

    Safe to retry: the row is keyed on (date, proto).
    """
    logger.info("fetch price for proto %d", proto)
    price = await calc_asset_price(client, proto, quality)
    day = day or date.today()
    await asyncio.to_thread(upsert_proto_price, db_path, day, proto, wei_to_gwei(price))
    return ProtoPrice(proto=proto, price_wei=price, day=day)


def create_fetch_proto_price_job(
    client: ImmutableXClient,
    db_path: Path,
    proto: int,
    quality: str = DEFAULT_QUALITY,
    retry_options: Optional[RetryOptions] = None,
) -> AsyncJob:
    return AsyncIndependentJob(
        partial(fetch_proto_price, client, db_path, proto, quality),
        retry_options or default_retry_options(),
    )


def create_fetch_proto_range_price_job(
    client: ImmutableXClient,
    db_path: Path,
    start: int,
    stop: int,
    quality: str = DEFAULT_QUALITY,
    retry_options: Optional[RetryOptions] = None,
) -> AsyncJobSequence:
    """Sequence over protos in ``[start, stop)``."""
    opts = retry_options or default_retry_options()
    jobs: List[AsyncJob] = [
        create_fetch_proto_price_job(client, db_path, proto, quality, opts) for proto in range(start, stop)
    ]
    return AsyncJobSequence(jobs, opts)
