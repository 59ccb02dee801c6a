"""Pyth Network price reference served over the Hermes HTTP API."""
from __future__ import annotations

import logging
import ssl
from typing import Any

import aiohttp
import certifi

from ..errors import PriceReferenceError
from ..models import RoundData

logger = logging.getLogger(__name__)


class PythPriceReference:
    """Expose one Pyth feed through the aggregator interface.

    ``answer`` is the integer Pyth price and ``decimals`` is ``-expo``.
    """

    def __init__(self, hermes_url: str, feed_id: str, timeout: int = 10) -> None:
        self.hermes_url = hermes_url
        self.feed_id = feed_id
        self.timeout = timeout

    async def _fetch(self) -> dict[str, Any]:
        url = f"{self.hermes_url}?ids[]={self.feed_id}"

        ssl_context = ssl.create_default_context(cafile=certifi.where())
        connector = aiohttp.TCPConnector(ssl=ssl_context)

        try:
            async with aiohttp.ClientSession(connector=connector) as session:
                async with session.get(
                    url, timeout=aiohttp.ClientTimeout(total=self.timeout)
                ) as response:
                    if response.status != 200:
                        raise PriceReferenceError(
                            f"Pyth feed {self.feed_id}: HTTP {response.status}"
                        )
                    data = await response.json()
        except PriceReferenceError:
            raise
        except Exception as e:
            raise PriceReferenceError(f"Pyth feed {self.feed_id}: {e}") from e

        for item in data.get("parsed", []):
            if item.get("id") == self.feed_id:
                return item.get("price", {})

        raise PriceReferenceError(f"Pyth feed {self.feed_id} missing from response")

    async def latest_round_data(self) -> RoundData:
        price_data = await self._fetch()
        publish_time = int(price_data.get("publish_time", 0))
        answer = int(price_data.get("price", 0))
        logger.debug("Pyth %s: price=%s publish_time=%s", self.feed_id, answer, publish_time)
        return RoundData(
            round_id=publish_time,
            answer=answer,
            started_at=publish_time,
            updated_at=publish_time,
            answered_in_round=publish_time,
        )

    async def decimals(self) -> int:
        price_data = await self._fetch()
        return -int(price_data.get("expo", 0))
