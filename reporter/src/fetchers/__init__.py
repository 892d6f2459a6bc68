"""
Price fetchers for multiple API sources.

Usage:
    from reporter.src.fetchers import get_fetcher, get_available_fetchers

    available = get_available_fetchers()
    # ['binance', 'coinbase', 'coingecko']

    fetcher = get_fetcher("coingecko")
    price = await fetcher.fetch(TradingPair("STX", "USD"))
"""

from .base import (
    FETCHER_REGISTRY,
    BaseFetcher,
    FetcherConfigError,
    FetcherError,
    FetcherHTTPError,
    get_available_fetchers,
    get_fetcher,
    register_fetcher,
)

# Import all fetcher implementations to trigger registration
from .binance import BinanceFetcher
from .coinbase import CoinbaseFetcher
from .coingecko import CoinGeckoFetcher

__all__ = [
    "BaseFetcher",
    "FetcherError",
    "FetcherConfigError",
    "FetcherHTTPError",
    "register_fetcher",
    "get_fetcher",
    "get_available_fetchers",
    "FETCHER_REGISTRY",
    "BinanceFetcher",
    "CoinbaseFetcher",
    "CoinGeckoFetcher",
]
