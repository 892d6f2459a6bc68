"""PriceAggregator: Median consensus over the quotes collected for one pair.

Algorithm:
    1. Ignore quotes with a non-positive or non-finite price
    2. Return None if fewer than min_sources quotes remain (never zero)
    3. Sort ascending and take the median; for an even count the mean of
       the two middle prices

No deduplication or per-source weighting is applied, so the median alone
absorbs a single outlying provider.

.. code-block:: python

    >>> aggregator = PriceAggregator()
    >>> quotes = [
    ...     PriceQuote(pair, 1.248, "coingecko", 0.0),
    ...     PriceQuote(pair, 1.252, "binance", 0.0),
    ... ]
    >>> aggregator.aggregate(quotes).price
    1.25
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from statistics import median as _median

from .TradingPair import TradingPair


@dataclass(frozen=True)
class PriceQuote:
    """One provider's observed price for a pair.

    :ivar pair: Trading pair the price is for.
    :ivar price: Observed price (positive).
    :ivar source: Name of the provider that returned the price.
    :ivar observed_at: Unix timestamp of the observation.
    """

    pair: TradingPair
    price: float
    source: str
    observed_at: float


@dataclass(frozen=True)
class ConsensusPrice:
    """The reconciled price for a pair in one cycle.

    :ivar pair: Trading pair.
    :ivar price: Median of the contributing quotes.
    :ivar count: Number of contributing quotes (always >= 1).
    :ivar sources: Names of the contributing providers.
    """

    pair: TradingPair
    price: float
    count: int
    sources: tuple[str, ...] = ()


class PriceAggregator:
    """Aggregates quotes from multiple sources into their median.

    :ivar min_sources: Minimum valid quotes required for a consensus.
    """

    def __init__(self, min_sources: int = 1) -> None:
        """Initialize the aggregator.

        :param min_sources: Minimum number of valid quotes required (default 1).
        :raises ValueError: If min_sources is less than 1.
        """
        if min_sources < 1:
            raise ValueError("min_sources must be at least 1")
        self.min_sources = min_sources

    def aggregate(self, quotes: list[PriceQuote]) -> ConsensusPrice | None:
        """Reduce the quotes for one pair to a consensus price.

        :param quotes: Quotes collected for a single pair in this cycle.
        :returns: ConsensusPrice, or None if there are too few valid quotes.
        :raises ValueError: If the quotes belong to different pairs.
        """
        pairs = {q.pair for q in quotes}
        if len(pairs) > 1:
            raise ValueError(
                f"Cannot aggregate quotes for different pairs: {sorted(map(str, pairs))}"
            )

        valid = [q for q in quotes if math.isfinite(q.price) and q.price > 0]
        if not valid or len(valid) < self.min_sources:
            return None

        return ConsensusPrice(
            pair=valid[0].pair,
            price=_median(sorted(q.price for q in valid)),
            count=len(valid),
            sources=tuple(q.source for q in valid),
        )
