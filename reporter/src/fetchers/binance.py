"""Binance fetcher.

Binance has no direct USD book for most assets, so USD pairs are read from
the matching USDT market and USDT is taken at par.

Endpoint: https://api.binance.com/api/v3/ticker/price?symbol={SYMBOL}
Response: flat ticker, e.g. {"symbol": "STXUSDT", "price": "1.25000000"}
Rate Limit: High (no key required for public endpoints)
"""

import logging

from ..TradingPair import TradingPair
from .base import BaseFetcher, FetcherError, register_fetcher

logger = logging.getLogger(__name__)


@register_fetcher
class BinanceFetcher(BaseFetcher):
    """Fetcher for the Binance public ticker endpoint."""

    name = "binance"
    BASE_URL = "https://api.binance.com/api/v3"

    SYMBOLS = {
        "STX-USD": "STXUSDT",
        "BTC-USD": "BTCUSDT",
        "ETH-USD": "ETHUSDT",
    }

    async def fetch(self, pair: TradingPair) -> float | None:
        """Fetch price from Binance.

        :param pair: Trading pair (e.g., BTC-USD).
        :returns: Current price or None on failure.
        """
        symbol = self.SYMBOLS.get(str(pair))
        if not symbol:
            logger.debug(f"[binance] No symbol for {pair}")
            return None

        try:
            response = await self._get(
                f"{self.BASE_URL}/ticker/price", params={"symbol": symbol}
            )
            data = response.json()

            if not isinstance(data, dict) or "price" not in data:
                logger.warning(f"[binance] No price for {symbol}: {data}")
                return None

            return self._to_price(data["price"], pair)

        except FetcherError as e:
            logger.warning(f"[binance] Failed to fetch {symbol}: {e}")
            return None
        except (KeyError, ValueError, TypeError) as e:
            logger.warning(f"[binance] Failed to parse response for {symbol}: {e}")
            return None
