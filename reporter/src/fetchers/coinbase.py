"""Coinbase Exchange fetcher.

Endpoint: https://api.exchange.coinbase.com/products/{BASE}-{QUOTE}/ticker
Rate Limit: High (no key required)
"""

import logging

from ..TradingPair import TradingPair
from .base import BaseFetcher, FetcherError, register_fetcher

logger = logging.getLogger(__name__)


@register_fetcher
class CoinbaseFetcher(BaseFetcher):
    """Fetcher for Coinbase Exchange API.

    No API key required for public ticker endpoint.
    """

    name = "coinbase"
    BASE_URL = "https://api.exchange.coinbase.com"

    SYMBOLS = {
        "STX-USD": "STX-USD",
        "BTC-USD": "BTC-USD",
        "ETH-USD": "ETH-USD",
    }

    async def fetch(self, pair: TradingPair) -> float | None:
        """Fetch price from Coinbase Exchange.

        :param pair: Trading pair (e.g., ETH-USD).
        :returns: Current price or None on failure.
        """
        symbol = self.SYMBOLS.get(str(pair))
        if not symbol:
            logger.debug(f"[coinbase] No product for {pair}")
            return None

        try:
            response = await self._get(f"{self.BASE_URL}/products/{symbol}/ticker")
            data = response.json()

            if not isinstance(data, dict) or "price" not in data:
                logger.warning(f"[coinbase] No price in response for {symbol}: {data}")
                return None

            return self._to_price(data["price"], pair)

        except FetcherError as e:
            logger.warning(f"[coinbase] Failed to fetch {symbol}: {e}")
            return None
        except (KeyError, ValueError, TypeError) as e:
            logger.warning(f"[coinbase] Failed to parse response for {symbol}: {e}")
            return None
