"""
ETH/USD price feed
PriceFeedClient fetches the spot price; PriceTicker keeps it fresh in the
background so API reads never wait on the public feed.
"""
import asyncio
from datetime import datetime, timezone
from typing import Dict, Optional

import httpx

from core.services.errors import PriceFeedError
from infrastructure.config.settings import settings
from infrastructure.logging.logger import get_logger

logger = get_logger(__name__)


class PriceFeedClient:
    """CoinGecko simple/price client"""

    def __init__(self, url: Optional[str] = None, client: Optional[httpx.AsyncClient] = None):
        self.url = url or settings.price_feed.url
        self._client = client

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=settings.price_feed.timeout)
        return self._client

    async def get_eth_usd_price(self) -> float:
        """
        Fetch the ETH spot price in USD

        Raises:
            PriceFeedError: bad status, network failure or non-numeric payload
        """
        try:
            response = await self.client.get(self.url)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            raise PriceFeedError(f"Price feed returned {e.response.status_code}") from e
        except (httpx.HTTPError, ValueError) as e:
            raise PriceFeedError(f"Price feed request failed: {e}") from e

        try:
            price = data["ethereum"]["usd"]
        except (KeyError, TypeError) as e:
            raise PriceFeedError(f"Unexpected price payload: {data}") from e

        if isinstance(price, bool) or not isinstance(price, (int, float)):
            raise PriceFeedError(f"Non-numeric price: {price!r}")
        return float(price)

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None


class PriceTicker:
    """
    Refreshes the ETH price on a fixed interval
    A failed refresh keeps the error until the next refresh succeeds.
    """

    def __init__(self, client: Optional[PriceFeedClient] = None, refresh_interval: Optional[int] = None):
        self.client = client or PriceFeedClient()
        self.refresh_interval = refresh_interval or settings.price_feed.refresh_interval
        self.price: Optional[float] = None
        self.error: Optional[str] = None
        self.updated_at: Optional[datetime] = None
        self.running = False
        self._task: Optional[asyncio.Task] = None

    @property
    def loading(self) -> bool:
        return self.price is None and self.error is None

    async def refetch(self) -> Optional[float]:
        """Refresh now; returns the new price or None on failure"""
        try:
            price = await self.client.get_eth_usd_price()
        except PriceFeedError as e:
            self.error = str(e)
            logger.warning(f"⚠️ ETH price refresh failed: {e}")
            return None

        self.price = price
        self.error = None
        self.updated_at = datetime.now(timezone.utc)
        logger.debug(f"💲 ETH/USD = {price}")
        return price

    async def _run(self) -> None:
        while self.running:
            await self.refetch()
            await asyncio.sleep(self.refresh_interval)

    def start(self) -> None:
        if self._task is None:
            self.running = True
            self._task = asyncio.create_task(self._run())
            logger.info(f"💲 Price ticker started (interval: {self.refresh_interval}s)")

    async def stop(self) -> None:
        self.running = False
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        await self.client.close()
        logger.info("💲 Price ticker stopped")

    def snapshot(self) -> Dict:
        return {
            "price": self.price,
            "error": self.error,
            "loading": self.loading,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }


_price_ticker: Optional[PriceTicker] = None


def get_price_ticker() -> PriceTicker:
    """Get or create the process-wide PriceTicker"""
    global _price_ticker
    if _price_ticker is None:
        _price_ticker = PriceTicker()
    return _price_ticker
