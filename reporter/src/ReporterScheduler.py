"""ReporterScheduler: Periodic fetch, aggregate and submit loop.

Architecture:
    - Two states: IDLE (waiting for the next cycle) and RUNNING
    - One cycle at a time; the wait before the next cycle starts only after
      every tracked pair has been attempted
    - Within a cycle all pairs, and all sources of a pair, are fetched
      concurrently; each pair waits for all of its sources before aggregating
    - A failure for one pair is logged and never affects the other pairs
    - Ledger submissions run in a worker thread so a slow ledger never
      stalls fetches still in flight for other pairs
    - Time is read and slept through an injectable Clock
"""

from __future__ import annotations

import asyncio
import enum
import logging
import math
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .errors import ConfigurationError, EncodingError
from .fetchers import BaseFetcher
from .FixedPoint import to_fixed_point
from .PriceAggregator import ConsensusPrice, PriceAggregator, PriceQuote

if TYPE_CHECKING:
    from .SubmissionGateway import SubmissionGateway, SubmissionResult
    from .TradingPair import TradingPair

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL = 600
DEFAULT_FETCH_TIMEOUT = 10.0


class Clock:
    """Wall clock backed by time.time() and asyncio.sleep()."""

    def time(self) -> float:
        return time.time()

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)


class SchedulerState(enum.Enum):
    IDLE = "idle"
    RUNNING = "running"


class PairStatus(str, enum.Enum):
    SUBMITTED = "submitted"
    REJECTED = "rejected"
    NO_CONSENSUS = "no_consensus"
    ENCODING_ERROR = "encoding_error"
    ERROR = "error"


@dataclass
class PairOutcome:
    """What happened to one pair in one cycle.

    :ivar pair: Trading pair.
    :ivar status: Outcome of the attempt.
    :ivar consensus: Aggregated price, if one was reached.
    :ivar result: Submission result, if a submission was made.
    :ivar reason: Human-readable failure reason.
    """

    pair: TradingPair
    status: PairStatus
    consensus: ConsensusPrice | None = None
    result: SubmissionResult | None = None
    reason: str | None = None


@dataclass
class CycleReport:
    """Outcomes of one cycle across all tracked pairs.

    :ivar timestamp: Unix timestamp submitted for every pair in the cycle.
    :ivar outcomes: Outcome per pair, in tracking order.
    """

    timestamp: int
    outcomes: dict[TradingPair, PairOutcome] = field(default_factory=dict)

    @property
    def submissions(self) -> list[SubmissionResult]:
        """Submission results of the cycle, accepted or not."""
        return [o.result for o in self.outcomes.values() if o.result is not None]


class ReporterScheduler:
    """Drives the reporter cycle for a fixed set of pairs.

    :ivar pairs: Tracked trading pairs.
    :ivar fetchers: Dict mapping source names to fetcher instances.
    :ivar gateway: Submission gateway.
    :ivar aggregator: Quote aggregator.
    :ivar interval: Seconds to wait between the end of one cycle and the next.
    :ivar fetch_timeout: Per-call fetch timeout in seconds.
    :ivar clock: Time source.
    """

    def __init__(
        self,
        pairs: list[TradingPair],
        fetchers: dict[str, BaseFetcher],
        gateway: SubmissionGateway,
        aggregator: PriceAggregator | None = None,
        interval: float = DEFAULT_INTERVAL,
        fetch_timeout: float = DEFAULT_FETCH_TIMEOUT,
        clock: Clock | None = None,
    ) -> None:
        """Initialize the scheduler.

        :param pairs: Trading pairs to report.
        :param fetchers: Dict mapping source names to fetcher instances.
        :param gateway: Gateway used to submit prices.
        :param aggregator: Aggregator (default: median over >= 1 source).
        :param interval: Seconds between cycles (default: 600).
        :param fetch_timeout: Timeout per source call (default: 10.0).
        :param clock: Time source (default: wall clock).
        :raises ConfigurationError: If the configuration cannot run.
        """
        if not pairs:
            raise ConfigurationError("At least one trading pair must be specified")
        unknown = [str(p) for p in pairs if not p.is_known]
        if unknown:
            raise ConfigurationError(f"Unknown trading pairs: {unknown}")
        if not math.isfinite(interval) or interval <= 0:
            raise ConfigurationError(f"Update interval must be positive, got {interval}")
        if not math.isfinite(fetch_timeout) or fetch_timeout <= 0:
            raise ConfigurationError(f"Fetch timeout must be positive, got {fetch_timeout}")
        if not fetchers:
            raise ConfigurationError("At least one price source must be specified")

        self.pairs = list(pairs)
        self.fetchers = fetchers
        self.gateway = gateway
        self.aggregator = aggregator or PriceAggregator()
        self.interval = interval
        self.fetch_timeout = fetch_timeout
        self.clock = clock or Clock()

        self.pair_sources: dict[TradingPair, list[str]] = {}
        for pair in self.pairs:
            supported = [
                name for name, fetcher in fetchers.items() if fetcher.supports_pair(pair)
            ]
            if not supported:
                raise ConfigurationError(
                    f"No configured sources support pair {pair}. "
                    f"Sources: {list(fetchers)}"
                )
            self.pair_sources[pair] = supported
            logger.info(f"{pair}: supported by {supported}")

        self._state = SchedulerState.IDLE
        self._last_timestamp = 0
        self.next_wake: float | None = None

    @property
    def state(self) -> SchedulerState:
        return self._state

    def _cycle_timestamp(self) -> int:
        # Never hand the ledger a timestamp older than the previous cycle's.
        self._last_timestamp = max(int(self.clock.time()), self._last_timestamp)
        return self._last_timestamp

    async def _fetch_quote(
        self, source: str, fetcher: BaseFetcher, pair: TradingPair
    ) -> PriceQuote | None:
        """Fetch one source for one pair with timeout.

        :param source: Source name.
        :param fetcher: Fetcher instance to use.
        :param pair: Trading pair.
        :returns: PriceQuote, or None on failure.
        """
        try:
            price = await asyncio.wait_for(fetcher.fetch(pair), timeout=self.fetch_timeout)
        except asyncio.TimeoutError:
            logger.warning(f"[{source}] Timeout fetching {pair}")
            return None
        except Exception as e:  # Misbehaving fetcher must not sink the pair
            logger.warning(f"[{source}] Error fetching {pair}: {e}")
            return None

        if price is None:
            return None
        return PriceQuote(pair=pair, price=price, source=source, observed_at=self.clock.time())

    async def collect_quotes(self, pair: TradingPair) -> list[PriceQuote]:
        """Query every source supporting the pair and keep the successful quotes.

        :param pair: Trading pair.
        :returns: Quotes from the sources that answered.
        """
        sources = self.pair_sources[pair]
        results = await asyncio.gather(
            *(self._fetch_quote(s, self.fetchers[s], pair) for s in sources)
        )
        return [q for q in results if q is not None]

    async def _process_pair(self, pair: TradingPair, timestamp: int) -> PairOutcome:
        """Run fetch, aggregate, encode and submit for one pair.

        :param pair: Trading pair.
        :param timestamp: Cycle timestamp to submit with.
        :returns: Outcome for this pair.
        """
        try:
            quotes = await self.collect_quotes(pair)
            consensus = self.aggregator.aggregate(quotes)
            if consensus is None:
                logger.warning(
                    f"No price available for {pair} "
                    f"({len(quotes)}/{len(self.pair_sources[pair])} sources answered)"
                )
                return PairOutcome(pair, PairStatus.NO_CONSENSUS, reason="no consensus")

            breakdown = ", ".join(f"{q.source}=${q.price:.6f}" for q in quotes)
            logger.info(
                f"{pair}: ${consensus.price:.6f} (median of [{breakdown}], "
                f"{consensus.count}/{len(self.pair_sources[pair])} sources)"
            )

            try:
                encoded = to_fixed_point(consensus.price)
                result = await asyncio.to_thread(self.gateway.submit, pair, encoded, timestamp)
            except EncodingError as e:
                logger.error(f"{pair}: Cannot encode price {consensus.price!r}: {e}")
                return PairOutcome(
                    pair, PairStatus.ENCODING_ERROR, consensus=consensus, reason=str(e)
                )

            if not result.accepted:
                return PairOutcome(
                    pair,
                    PairStatus.REJECTED,
                    consensus=consensus,
                    result=result,
                    reason=result.receipt.reason,
                )
            return PairOutcome(pair, PairStatus.SUBMITTED, consensus=consensus, result=result)

        except Exception as e:  # One pair's failure never aborts the cycle
            logger.exception(f"Error updating {pair}: {e}")
            return PairOutcome(pair, PairStatus.ERROR, reason=str(e))

    async def run_cycle(self) -> CycleReport:
        """Run one full cycle across all tracked pairs.

        :returns: CycleReport with one outcome per pair.
        """
        self._state = SchedulerState.RUNNING
        try:
            timestamp = self._cycle_timestamp()
            logger.info(f"--- Price update round (timestamp={timestamp}) ---")

            outcomes = await asyncio.gather(
                *(self._process_pair(pair, timestamp) for pair in self.pairs)
            )
            report = CycleReport(
                timestamp=timestamp,
                outcomes={o.pair: o for o in outcomes},
            )
            submitted = sum(1 for o in outcomes if o.status is PairStatus.SUBMITTED)
            logger.info(f"Round complete: {submitted}/{len(self.pairs)} pairs submitted")
            return report
        finally:
            self._state = SchedulerState.IDLE

    async def run(self, max_cycles: int | None = None) -> None:
        """Run cycles until cancelled (or until max_cycles have completed).

        :param max_cycles: Optional cycle limit, mainly for tests.
        """
        logger.info(
            f"Reporter started: pairs={[str(p) for p in self.pairs]}, "
            f"sources={list(self.fetchers)}, interval={self.interval}s"
        )
        cycles = 0
        try:
            while True:
                await self.run_cycle()
                cycles += 1
                if max_cycles is not None and cycles >= max_cycles:
                    break

                self.next_wake = self.clock.time() + self.interval
                logger.info(f"Next update in {self.interval}s...")
                await self.clock.sleep(self.interval)
        finally:
            # Clean up shared HTTP client
            await BaseFetcher.close_shared_client()
