"""Unit tests for CLI configuration parsing."""

from unittest.mock import patch

import pytest

from reporter.main import (
    build_ledger_sink,
    build_parser,
    build_reporter,
    main,
    parse_api_keys,
    parse_env_api_keys,
)
from reporter.src.errors import ConfigurationError
from reporter.src.fetchers import BinanceFetcher, CoinGeckoFetcher
from reporter.src.LedgerSink import SimulatedLedgerSink
from reporter.src.LedgerSinkContract import ContractLedgerSink
from reporter.src.TradingPair import TradingPair

DEV_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
DEV_ADDRESS = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"

CONFIG_ENV = [
    "PAIRS",
    "SOURCES",
    "MIN_SOURCES",
    "UPDATE_INTERVAL",
    "FETCH_TIMEOUT",
    "LEDGER",
    "RPC_URL",
    "CONTRACT_ADDRESS",
    "REPORTER_PRIVATE_KEY",
    "API_KEYS",
    "API_KEY_COINGECKO",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in CONFIG_ENV:
        monkeypatch.delenv(name, raising=False)


class TestParseApiKeys:
    """Test API key parsing."""

    def test_empty(self) -> None:
        """Missing key string gives no keys."""
        assert parse_api_keys(None) == {}
        assert parse_api_keys("") == {}

    def test_multiple(self) -> None:
        """Malformed entries are skipped, names lowercased."""
        assert parse_api_keys("coingecko=demo:abc, Binance = xyz,garbage") == {
            "coingecko": "demo:abc",
            "binance": "xyz",
        }

    def test_env_keys(self) -> None:
        """API_KEY_<SOURCE> variables are collected."""
        environ = {"API_KEY_COINGECKO": "abc", "API_KEY_BINANCE": "", "OTHER": "x"}
        assert parse_env_api_keys(environ) == {"coingecko": "abc"}


class TestBuildReporter:
    """Test building the scheduler from arguments."""

    def test_defaults(self) -> None:
        """Defaults match the documented configuration."""
        reporter = build_reporter(build_parser().parse_args([]))

        assert reporter.pairs == [
            TradingPair("STX", "USD"),
            TradingPair("BTC", "USD"),
            TradingPair("ETH", "USD"),
        ]
        assert list(reporter.fetchers) == ["coingecko", "binance"]
        assert isinstance(reporter.fetchers["coingecko"], CoinGeckoFetcher)
        assert isinstance(reporter.fetchers["binance"], BinanceFetcher)
        assert reporter.interval == 600
        assert reporter.fetch_timeout == 10.0
        assert reporter.aggregator.min_sources == 1
        assert isinstance(reporter.gateway.sink, SimulatedLedgerSink)

    def test_environment(self, monkeypatch) -> None:
        """Environment variables configure the reporter."""
        monkeypatch.setenv("PAIRS", "btc/usd")
        monkeypatch.setenv("SOURCES", "coinbase")
        monkeypatch.setenv("UPDATE_INTERVAL", "60")
        monkeypatch.setenv("FETCH_TIMEOUT", "2.5")

        reporter = build_reporter(build_parser().parse_args([]))

        assert reporter.pairs == [TradingPair("BTC", "USD")]
        assert list(reporter.fetchers) == ["coinbase"]
        assert reporter.interval == 60
        assert reporter.fetchers["coinbase"].timeout == 2.5

    def test_cli_overrides_environment(self, monkeypatch) -> None:
        """CLI flags take precedence over the environment."""
        monkeypatch.setenv("PAIRS", "btc/usd")
        reporter = build_reporter(build_parser().parse_args(["--pairs", "ETH-USD"]))
        assert reporter.pairs == [TradingPair("ETH", "USD")]

    def test_api_keys_passed_to_fetchers(self, monkeypatch) -> None:
        """API keys reach the matching fetcher."""
        monkeypatch.setenv("API_KEY_COINGECKO", "env-key")
        reporter = build_reporter(build_parser().parse_args(["--sources", "coingecko"]))
        assert reporter.fetchers["coingecko"].api_key == "env-key"

        reporter = build_reporter(
            build_parser().parse_args(["--sources", "coingecko", "--api-keys", "coingecko=cli"])
        )
        assert reporter.fetchers["coingecko"].api_key == "cli"

    @pytest.mark.parametrize(
        "argv, message",
        [
            (["--pairs", "DOGE-USD"], "Unknown trading pair"),
            (["--pairs", ","], "At least one trading pair"),
            (["--sources", "nope"], "Unknown fetcher 'nope'"),
            (["--sources", ","], "At least one source"),
            (["--interval", "0"], "interval must be positive"),
            (["--fetch-timeout", "-1"], "timeout must be positive"),
            (["--interval", "nan"], "interval must be positive"),
            (["--fetch-timeout", "inf"], "timeout must be positive"),
            (["--min-sources", "0"], "--min-sources must be at least 1"),
        ],
    )
    def test_invalid_configuration(self, argv: list[str], message: str) -> None:
        """Invalid settings raise ConfigurationError."""
        with pytest.raises(ConfigurationError, match=message):
            build_reporter(build_parser().parse_args(argv))


class TestBuildLedgerSink:
    """Test ledger selection."""

    def test_contract_requires_settings(self) -> None:
        """Contract ledger lists all missing settings."""
        args = build_parser().parse_args(["--ledger", "contract"])
        with pytest.raises(ConfigurationError, match="RPC_URL.*CONTRACT_ADDRESS.*REPORTER_PRIVATE_KEY"):
            build_ledger_sink(args)

    def test_contract_sink(self, monkeypatch) -> None:
        """Contract ledger builds a web3 sink."""
        monkeypatch.setenv("REPORTER_PRIVATE_KEY", DEV_KEY)
        args = build_parser().parse_args(
            [
                "--ledger", "contract",
                "--rpc-url", "http://localhost:8545",
                "--contract-address", DEV_ADDRESS,
            ]
        )

        sink = build_ledger_sink(args)

        assert isinstance(sink, ContractLedgerSink)
        assert sink.contract.address == DEV_ADDRESS

    def test_invalid_contract_address(self, monkeypatch) -> None:
        """Bad contract address is a configuration error."""
        monkeypatch.setenv("REPORTER_PRIVATE_KEY", DEV_KEY)
        args = build_parser().parse_args(
            ["--ledger", "contract", "--rpc-url", "http://localhost:8545", "--contract-address", "0x12"]
        )
        with pytest.raises(ConfigurationError, match="Invalid contract ledger settings"):
            build_ledger_sink(args)


class TestMain:
    """Test process entry point behaviour."""

    def test_configuration_error_exits(self) -> None:
        """Configuration errors exit with status 1."""
        with pytest.raises(SystemExit) as exc_info:
            main(["--interval", "0"])
        assert exc_info.value.code == 1

    def test_runs_reporter(self) -> None:
        """Valid configuration starts the reporter loop."""
        with patch("reporter.main.asyncio.run") as mock_run:
            main(["--pairs", "STX-USD"])
        mock_run.assert_called_once()
        mock_run.call_args.args[0].close()
