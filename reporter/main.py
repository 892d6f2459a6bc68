#!/usr/bin/env python3
"""Price Reporter.

Fetches prices for a fixed set of trading pairs from multiple off-chain
sources, takes the median, and submits it in 10**6 fixed point to an
on-chain oracle contract every update interval.

Configure via CLI flags or environment variables (CLI takes precedence).
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys

from .src.errors import ConfigurationError
from .src.fetchers import BaseFetcher, FetcherConfigError, get_available_fetchers, get_fetcher
from .src.LedgerSink import LedgerSink, SimulatedLedgerSink
from .src.LedgerSinkContract import ContractLedgerSink
from .src.PriceAggregator import PriceAggregator
from .src.ReporterScheduler import DEFAULT_INTERVAL, ReporterScheduler
from .src.SubmissionGateway import SubmissionGateway
from .src.TradingPair import KNOWN_PAIRS, parse_tracked_pairs

logger = logging.getLogger(__name__)

LEDGERS = ("simulated", "contract")


def parse_api_keys(api_key_str: str | None) -> dict[str, str]:
    """Parse comma-separated API key string into a dictionary.

    Format: source1=key1,source2=key2
    Example: coingecko=demo:CG-abc123

    :param api_key_str: Comma-separated API key string.
    :returns: Dict mapping source names to API keys.
    """
    if not api_key_str:
        return {}

    api_keys = {}
    for item in api_key_str.split(","):
        item = item.strip()
        if "=" in item:
            source, key = item.split("=", 1)
            api_keys[source.strip().lower()] = key.strip()
    return api_keys


def parse_env_api_keys(environ: dict[str, str] | None = None) -> dict[str, str]:
    """Parse API keys from individual environment variables.

    Looks for: API_KEY_COINGECKO, API_KEY_BINANCE, etc.

    :param environ: Environment mapping (default: os.environ).
    :returns: Dict mapping source names to API keys.
    """
    environ = os.environ if environ is None else environ
    api_keys = {}
    for key, value in environ.items():
        if key.startswith("API_KEY_") and value:
            api_keys[key[len("API_KEY_"):].lower()] = value
    return api_keys


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI parser, with defaults taken from the environment."""
    available_sources = get_available_fetchers()

    parser = argparse.ArgumentParser(
        description="Price Reporter: median multi-source prices submitted on-chain",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Available price sources:
  {', '.join(available_sources)}

Known trading pairs:
  {', '.join(sorted(KNOWN_PAIRS))}

Examples:
  # Log prices every 10 minutes without touching a ledger
  python -m reporter.main --pairs STX-USD,BTC-USD --sources coingecko,binance

  # Submit to an oracle contract
  REPORTER_PRIVATE_KEY=0x... python -m reporter.main --ledger contract \\
      --rpc-url https://rpc.example.org --contract-address 0x...

Environment variables (CLI args take precedence):
  PAIRS, SOURCES, MIN_SOURCES, UPDATE_INTERVAL, FETCH_TIMEOUT, LEDGER,
  RPC_URL, CONTRACT_ADDRESS, REPORTER_PRIVATE_KEY, API_KEYS, API_KEY_<SOURCE>
""",
    )

    parser.add_argument(
        "--pairs",
        type=str,
        help="Comma-separated trading pairs (e.g., STX-USD,BTC-USD,ETH-USD)",
        default=os.environ.get("PAIRS") or "STX-USD,BTC-USD,ETH-USD",
    )

    parser.add_argument(
        "--sources",
        type=str,
        help=f"Comma-separated price sources. Available: {', '.join(available_sources)}",
        default=os.environ.get("SOURCES") or "coingecko,binance",
    )

    parser.add_argument(
        "--min-sources",
        dest="min_sources",
        type=int,
        help="Minimum sources required for a consensus price (default: 1)",
        default=int(os.environ.get("MIN_SOURCES") or "1"),
    )

    parser.add_argument(
        "--interval",
        type=float,
        help=f"Seconds between update rounds (default: {DEFAULT_INTERVAL})",
        default=float(os.environ.get("UPDATE_INTERVAL") or DEFAULT_INTERVAL),
    )

    parser.add_argument(
        "--fetch-timeout",
        dest="fetch_timeout",
        type=float,
        help="Timeout for individual fetch requests in seconds (default: 10.0)",
        default=float(os.environ.get("FETCH_TIMEOUT") or "10.0"),
    )

    parser.add_argument(
        "--ledger",
        type=str,
        choices=LEDGERS,
        help="Where to submit prices: simulated (log only) or contract",
        default=os.environ.get("LEDGER") or "simulated",
    )

    parser.add_argument(
        "--rpc-url",
        dest="rpc_url",
        type=str,
        help="RPC endpoint for --ledger contract",
        default=os.environ.get("RPC_URL"),
    )

    parser.add_argument(
        "--contract-address",
        dest="contract_address",
        type=str,
        help="Oracle contract address for --ledger contract",
        default=os.environ.get("CONTRACT_ADDRESS"),
    )

    parser.add_argument(
        "--api-keys",
        dest="api_keys",
        type=str,
        help="Comma-separated API keys (e.g., coingecko=demo:CG-abc)",
        default=os.environ.get("API_KEYS"),
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose (DEBUG) logging",
    )

    return parser


def build_ledger_sink(args: argparse.Namespace) -> LedgerSink:
    """Create the ledger sink selected by --ledger.

    :param args: Parsed arguments.
    :returns: LedgerSink instance.
    :raises ConfigurationError: If contract settings are incomplete.
    """
    if args.ledger == "simulated":
        return SimulatedLedgerSink()

    private_key = os.environ.get("REPORTER_PRIVATE_KEY")
    missing = [
        name
        for name, value in (
            ("--rpc-url/RPC_URL", args.rpc_url),
            ("--contract-address/CONTRACT_ADDRESS", args.contract_address),
            ("REPORTER_PRIVATE_KEY", private_key),
        )
        if not value
    ]
    if missing:
        raise ConfigurationError(f"Contract ledger requires: {', '.join(missing)}")

    try:
        return ContractLedgerSink.from_config(args.rpc_url, args.contract_address, private_key)
    except ValueError as e:
        raise ConfigurationError(f"Invalid contract ledger settings: {e}") from e


def build_reporter(args: argparse.Namespace) -> ReporterScheduler:
    """Build a ReporterScheduler from parsed arguments.

    :param args: Parsed arguments.
    :returns: Configured scheduler.
    :raises ConfigurationError: If the configuration is invalid.
    """
    pairs = parse_tracked_pairs([p for p in args.pairs.split(",") if p.strip()])
    sources = [s.strip().lower() for s in args.sources.split(",") if s.strip()]
    if not sources:
        raise ConfigurationError("At least one source must be specified")
    if args.min_sources < 1:
        raise ConfigurationError("--min-sources must be at least 1")

    api_keys = parse_env_api_keys()
    api_keys.update(parse_api_keys(args.api_keys))

    fetchers: dict[str, BaseFetcher] = {}
    for source in sources:
        try:
            fetchers[source] = get_fetcher(
                source, api_key=api_keys.get(source), timeout=args.fetch_timeout
            )
        except FetcherConfigError as e:
            raise ConfigurationError(str(e)) from e

    return ReporterScheduler(
        pairs=pairs,
        fetchers=fetchers,
        gateway=SubmissionGateway(build_ledger_sink(args)),
        aggregator=PriceAggregator(min_sources=args.min_sources),
        interval=args.interval,
        fetch_timeout=args.fetch_timeout,
    )


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the Price Reporter CLI."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    args = build_parser().parse_args(argv)

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    try:
        reporter = build_reporter(args)
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        sys.exit(1)

    logger.info("=" * 60)
    logger.info("Price Reporter")
    logger.info("=" * 60)
    logger.info(f"Trading Pairs:     {', '.join(str(p) for p in reporter.pairs)}")
    logger.info(f"Sources:           {', '.join(reporter.fetchers)}")
    logger.info(f"Min Sources:       {reporter.aggregator.min_sources}")
    logger.info(f"Update Interval:   {reporter.interval}s")
    logger.info(f"Fetch Timeout:     {reporter.fetch_timeout}s")
    logger.info(f"Ledger:            {args.ledger}")
    keyed = [s for s, f in reporter.fetchers.items() if f.has_api_key]
    if keyed:
        logger.info(f"API Keys:          {', '.join(keyed)}")
    logger.info("=" * 60)

    try:
        asyncio.run(reporter.run())
    except KeyboardInterrupt:
        logger.info("Shutting down...")
    except Exception as e:
        logger.error(f"Fatal error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
