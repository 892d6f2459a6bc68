"""CoinGecko fetcher.

Endpoint: https://api.coingecko.com/api/v3/simple/price?ids={id}&vs_currencies={quote}
Response: nested by asset id, e.g. {"blockstack": {"usd": 1.25}}
Rate Limit: 30 calls/min (free), higher with API key
"""

import logging

from ..TradingPair import TradingPair
from .base import BaseFetcher, FetcherError, register_fetcher

logger = logging.getLogger(__name__)


@register_fetcher
class CoinGeckoFetcher(BaseFetcher):
    """Fetcher for CoinGecko API.

    API tiers:
        - Free: api.coingecko.com (no key, 30 calls/min)
        - Demo: api.coingecko.com + x-cg-demo-api-key header
        - Pro: pro-api.coingecko.com + x-cg-pro-api-key header

    To use a demo key, prefix with "demo:": API_KEY_COINGECKO=demo:CG-xxxxx
    Pro keys need no prefix: API_KEY_COINGECKO=xxxxx
    """

    name = "coingecko"
    BASE_URL_FREE = "https://api.coingecko.com/api/v3"
    BASE_URL_PRO = "https://pro-api.coingecko.com/api/v3"

    # CoinGecko asset ids per pair
    SYMBOLS = {
        "STX-USD": "blockstack",
        "BTC-USD": "bitcoin",
        "ETH-USD": "ethereum",
    }

    def __init__(self, api_key: str | None = None, timeout: float | None = None):
        """Initialize with optional demo: prefix handling."""
        self._is_demo = False
        if api_key and api_key.lower().startswith("demo:"):
            self._is_demo = True
            api_key = api_key[5:]
        super().__init__(api_key=api_key, timeout=timeout)

    @property
    def base_url(self) -> str:
        """Return appropriate base URL based on API key type."""
        if not self.has_api_key:
            return self.BASE_URL_FREE
        return self.BASE_URL_FREE if self._is_demo else self.BASE_URL_PRO

    @property
    def api_headers(self) -> dict[str, str] | None:
        """Return the API key header, if a key is configured."""
        if not self.has_api_key:
            return None
        header_name = "x-cg-demo-api-key" if self._is_demo else "x-cg-pro-api-key"
        return {header_name: self.api_key}

    async def fetch(self, pair: TradingPair) -> float | None:
        """Fetch price from CoinGecko.

        :param pair: Trading pair (e.g., STX-USD).
        :returns: Current price or None on failure.
        """
        coin_id = self.SYMBOLS.get(str(pair))
        if not coin_id:
            logger.debug(f"[coingecko] No asset id for {pair}")
            return None

        quote = pair.quote.lower()

        try:
            response = await self._get(
                f"{self.base_url}/simple/price",
                params={"ids": coin_id, "vs_currencies": quote},
                headers=self.api_headers,
            )
            data = response.json()

            if coin_id not in data:
                logger.warning(f"[coingecko] Coin {coin_id} not in response: {data}")
                return None

            if quote not in data[coin_id]:
                logger.warning(f"[coingecko] Quote {quote} not available for {coin_id}")
                return None

            return self._to_price(data[coin_id][quote], pair)

        except FetcherError as e:
            logger.warning(f"[coingecko] Failed to fetch {pair}: {e}")
            return None
        except (KeyError, ValueError, TypeError) as e:
            logger.warning(f"[coingecko] Failed to parse response for {pair}: {e}")
            return None
