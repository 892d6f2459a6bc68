"""
Price Reporter - Off-Chain Price Submission Module

This module reports consensus prices for a fixed set of trading pairs:
- TradingPair: Base/quote pair identifier and the known-pair set
- PriceAggregator: Median consensus over per-source quotes
- FixedPoint: Decimal <-> 10**6 fixed-point conversion
- SubmissionGateway: Builds records and hands them to a LedgerSink
- ReporterScheduler: Periodic cycle driver
- fetchers: Modular price fetcher implementations
"""

from .errors import ConfigurationError, EncodingError, ReporterError
from .FixedPoint import SCALE, SCALE_DECIMALS, from_fixed_point, to_fixed_point
from .LedgerSink import EncodedSubmission, LedgerReceipt, LedgerSink, SimulatedLedgerSink
from .PriceAggregator import ConsensusPrice, PriceAggregator, PriceQuote
from .ReporterScheduler import Clock, CycleReport, PairStatus, ReporterScheduler, SchedulerState
from .SubmissionGateway import SubmissionGateway, SubmissionResult
from .TradingPair import KNOWN_PAIRS, TradingPair, parse_tracked_pairs

__all__ = [
    "Clock",
    "ConfigurationError",
    "ConsensusPrice",
    "CycleReport",
    "EncodedSubmission",
    "EncodingError",
    "KNOWN_PAIRS",
    "LedgerReceipt",
    "LedgerSink",
    "PairStatus",
    "PriceAggregator",
    "PriceQuote",
    "ReporterError",
    "ReporterScheduler",
    "SCALE",
    "SCALE_DECIMALS",
    "SchedulerState",
    "SimulatedLedgerSink",
    "SubmissionGateway",
    "SubmissionResult",
    "TradingPair",
    "from_fixed_point",
    "parse_tracked_pairs",
    "to_fixed_point",
]
