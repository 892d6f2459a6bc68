"""Unit tests for price fetchers, using httpx.MockTransport for provider HTTP."""

import asyncio
from collections.abc import Callable

import httpx
import pytest

from reporter.src.fetchers import (
    BaseFetcher,
    BinanceFetcher,
    CoinbaseFetcher,
    CoinGeckoFetcher,
    FetcherConfigError,
    get_available_fetchers,
    get_fetcher,
)
from reporter.src.TradingPair import TradingPair

STX = TradingPair("STX", "USD")
BTC = TradingPair("BTC", "USD")
DOGE = TradingPair("DOGE", "USD")


@pytest.fixture
def http():
    """Install a mock transport on the shared client; returns the request log."""

    def install(handler: Callable[[httpx.Request], httpx.Response]) -> list[httpx.Request]:
        requests: list[httpx.Request] = []

        def record(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return handler(request)

        BaseFetcher.set_shared_client(httpx.AsyncClient(transport=httpx.MockTransport(record)))
        return requests

    yield install
    asyncio.run(BaseFetcher.close_shared_client())


def fetch(fetcher: BaseFetcher, pair: TradingPair) -> float | None:
    return asyncio.run(fetcher.fetch(pair))


class TestRegistry:
    """Test the fetcher registry."""

    def test_available_fetchers(self) -> None:
        """All fetchers should be registered."""
        assert get_available_fetchers() == ["binance", "coinbase", "coingecko"]

    def test_get_fetcher(self) -> None:
        """get_fetcher returns a configured instance."""
        fetcher = get_fetcher("binance", timeout=3.0)
        assert isinstance(fetcher, BinanceFetcher)
        assert fetcher.timeout == 3.0

    def test_default_timeout(self) -> None:
        """Fetchers default to DEFAULT_TIMEOUT."""
        assert get_fetcher("coinbase").timeout == BaseFetcher.DEFAULT_TIMEOUT

    def test_unknown_fetcher(self) -> None:
        """Unknown names raise FetcherConfigError."""
        with pytest.raises(FetcherConfigError, match="Unknown fetcher 'nope'"):
            get_fetcher("nope")

    def test_supports_pair_uses_static_table(self) -> None:
        """Supported pairs come from the static symbol table."""
        for name in get_available_fetchers():
            fetcher = get_fetcher(name)
            assert fetcher.supports_pair(STX)
            assert not fetcher.supports_pair(DOGE)


class TestCoinGeckoFetcher:
    """Test the CoinGecko adapter (response nested by asset id)."""

    def test_fetch_success(self, http) -> None:
        """Price is read from the asset-keyed response."""
        requests = http(lambda r: httpx.Response(200, json={"blockstack": {"usd": 1.25}}))

        assert fetch(CoinGeckoFetcher(), STX) == 1.25
        assert len(requests) == 1
        assert requests[0].url.host == "api.coingecko.com"
        assert requests[0].url.params["ids"] == "blockstack"
        assert requests[0].url.params["vs_currencies"] == "usd"

    def test_missing_asset(self, http) -> None:
        """Missing asset id yields None."""
        http(lambda r: httpx.Response(200, json={}))
        assert fetch(CoinGeckoFetcher(), STX) is None

    def test_missing_quote(self, http) -> None:
        """Missing quote currency yields None."""
        http(lambda r: httpx.Response(200, json={"blockstack": {"eur": 1.1}}))
        assert fetch(CoinGeckoFetcher(), STX) is None

    def test_unsupported_pair_makes_no_request(self, http) -> None:
        """Unsupported pairs make no HTTP request."""
        requests = http(lambda r: httpx.Response(200, json={}))
        assert fetch(CoinGeckoFetcher(), DOGE) is None
        assert requests == []

    def test_pro_key(self, http) -> None:
        """Pro key switches to the pro API host."""
        requests = http(lambda r: httpx.Response(200, json={"bitcoin": {"usd": 50000}}))
        fetcher = CoinGeckoFetcher(api_key="pro-key")

        assert fetch(fetcher, BTC) == 50000.0
        assert requests[0].url.host == "pro-api.coingecko.com"
        assert requests[0].headers["x-cg-pro-api-key"] == "pro-key"

    def test_demo_key(self, http) -> None:
        """demo: prefix selects the demo header."""
        requests = http(lambda r: httpx.Response(200, json={"bitcoin": {"usd": 50000}}))
        fetcher = CoinGeckoFetcher(api_key="demo:CG-abc")

        assert fetch(fetcher, BTC) == 50000.0
        assert fetcher.api_key == "CG-abc"
        assert requests[0].url.host == "api.coingecko.com"
        assert requests[0].headers["x-cg-demo-api-key"] == "CG-abc"


class TestBinanceFetcher:
    """Test the Binance adapter (flat ticker)."""

    def test_fetch_success(self, http) -> None:
        """Price is read from the flat ticker."""
        requests = http(
            lambda r: httpx.Response(200, json={"symbol": "STXUSDT", "price": "1.25200000"})
        )

        assert fetch(BinanceFetcher(), STX) == 1.252
        assert requests[0].url.path == "/api/v3/ticker/price"
        assert requests[0].url.params["symbol"] == "STXUSDT"

    def test_missing_price(self, http) -> None:
        """Missing price field yields None."""
        http(lambda r: httpx.Response(200, json={"symbol": "STXUSDT"}))
        assert fetch(BinanceFetcher(), STX) is None

    def test_non_numeric_price(self, http) -> None:
        """Non-numeric price yields None."""
        http(lambda r: httpx.Response(200, json={"symbol": "STXUSDT", "price": "n/a"}))
        assert fetch(BinanceFetcher(), STX) is None

    @pytest.mark.parametrize("price", ["0", "-1.5", "NaN", "inf"])
    def test_unusable_price(self, http, price: str) -> None:
        """Non-positive and non-finite prices yield None."""
        http(lambda r: httpx.Response(200, json={"symbol": "STXUSDT", "price": price}))
        assert fetch(BinanceFetcher(), STX) is None

    def test_list_payload(self, http) -> None:
        """Unexpected payload shape yields None."""
        http(lambda r: httpx.Response(200, json=[{"price": "1.0"}]))
        assert fetch(BinanceFetcher(), STX) is None


class TestCoinbaseFetcher:
    """Test the Coinbase adapter (flat ticker)."""

    def test_fetch_success(self, http) -> None:
        """Price is read from the product ticker."""
        requests = http(lambda r: httpx.Response(200, json={"price": "43250.005"}))

        assert fetch(CoinbaseFetcher(), BTC) == 43250.005
        assert requests[0].url.path == "/products/BTC-USD/ticker"

    def test_missing_price(self, http) -> None:
        """Error payload yields None."""
        http(lambda r: httpx.Response(200, json={"message": "NotFound"}))
        assert fetch(CoinbaseFetcher(), BTC) is None


class TestFailureModes:
    """Failures common to all adapters must yield None, never raise."""

    @pytest.mark.parametrize("fetcher_cls", [CoinGeckoFetcher, BinanceFetcher, CoinbaseFetcher])
    def test_http_error_status(self, http, fetcher_cls) -> None:
        """Non-2xx status yields None."""
        http(lambda r: httpx.Response(503, text="unavailable"))
        assert fetch(fetcher_cls(), STX) is None

    @pytest.mark.parametrize("fetcher_cls", [CoinGeckoFetcher, BinanceFetcher, CoinbaseFetcher])
    def test_network_error(self, http, fetcher_cls) -> None:
        """Connection errors yield None."""
        def fail(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        http(fail)
        assert fetch(fetcher_cls(), STX) is None

    @pytest.mark.parametrize("fetcher_cls", [CoinGeckoFetcher, BinanceFetcher, CoinbaseFetcher])
    def test_timeout(self, http, fetcher_cls) -> None:
        """HTTP timeouts yield None."""
        def slow(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        http(slow)
        assert fetch(fetcher_cls(), STX) is None

    @pytest.mark.parametrize("fetcher_cls", [CoinGeckoFetcher, BinanceFetcher, CoinbaseFetcher])
    def test_malformed_json(self, http, fetcher_cls) -> None:
        """Non-JSON body yields None."""
        http(lambda r: httpx.Response(200, text="<html>not json</html>"))
        assert fetch(fetcher_cls(), STX) is None

    @pytest.mark.parametrize("fetcher_cls", [CoinGeckoFetcher, BinanceFetcher, CoinbaseFetcher])
    def test_one_request_per_fetch(self, http, fetcher_cls) -> None:
        """Each fetch makes exactly one request."""
        requests = http(lambda r: httpx.Response(500))
        fetch(fetcher_cls(), STX)
        assert len(requests) == 1


class TestSharedClient:
    """Test shared HTTP client lifecycle."""

    def test_client_shared_across_fetchers(self) -> None:
        """All fetchers share one HTTP client."""
        try:
            assert CoinGeckoFetcher.get_shared_client() is BinanceFetcher.get_shared_client()
        finally:
            asyncio.run(BaseFetcher.close_shared_client())

    def test_close_resets_client(self) -> None:
        """Closing the client resets it."""
        client = BaseFetcher.get_shared_client()
        asyncio.run(BaseFetcher.close_shared_client())
        assert client.is_closed
        assert BaseFetcher._shared_client is None
