"""TradingPair: Base/quote asset identifier tracked by the reporter.

Pairs are written ``BASE-QUOTE`` in upper case, the same identifier that is
submitted on-chain. Only pairs in :data:`KNOWN_PAIRS` may be tracked.

.. code-block:: python

    >>> pair = TradingPair.from_string("stx/usd")
    >>> str(pair)
    'STX-USD'
    >>> pair.base
    'STX'
"""

from __future__ import annotations

from .errors import ConfigurationError

# Pairs the reporter knows how to source and submit.
KNOWN_PAIRS: frozenset[str] = frozenset({"STX-USD", "BTC-USD", "ETH-USD"})


class TradingPair:
    """A trading pair identified by its base and quote asset.

    :ivar base: Base asset symbol (upper case).
    :ivar quote: Quote asset symbol (upper case).
    """

    def __init__(self, base: str, quote: str) -> None:
        """Initialize a trading pair.

        :param base: Base asset symbol (e.g., "STX", "BTC").
        :param quote: Quote asset symbol (e.g., "USD").
        :raises ValueError: If either symbol is empty.
        """
        if not base or not quote:
            raise ValueError("Trading pair needs both a base and a quote asset")
        self.base = base.strip().upper()
        self.quote = quote.strip().upper()

    def __str__(self) -> str:
        """Return the pair identifier used on-chain."""
        return f"{self.base}-{self.quote}"

    def __repr__(self) -> str:
        return f"TradingPair({self.base!r}, {self.quote!r})"

    def __hash__(self) -> int:
        return hash(str(self))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TradingPair):
            return NotImplemented
        return str(self) == str(other)

    @property
    def is_known(self) -> bool:
        """Check if the pair is in the statically known set."""
        return str(self) in KNOWN_PAIRS

    @classmethod
    def from_string(cls, pair_str: str) -> TradingPair:
        """Parse a pair string in format "BASE-QUOTE" or "base/quote".

        :param pair_str: Pair string like "STX-USD" or "btc/usd".
        :returns: New TradingPair instance.
        :raises ValueError: If pair string format is invalid.
        """
        normalized = pair_str.strip().replace("/", "-")
        parts = normalized.split("-")
        if len(parts) != 2 or not all(p.strip() for p in parts):
            raise ValueError(
                f"Invalid pair format '{pair_str}'. Expected 'BASE-QUOTE' (e.g., 'STX-USD')"
            )
        return cls(parts[0], parts[1])


def parse_tracked_pairs(pair_strs: list[str]) -> list[TradingPair]:
    """Parse and validate the configured list of tracked pairs.

    Duplicates are dropped, keeping the first occurrence.

    :param pair_strs: Pair strings from configuration.
    :returns: Validated pairs in configuration order.
    :raises ConfigurationError: If the list is empty, malformed, or names a
        pair outside :data:`KNOWN_PAIRS`.
    """
    pairs: list[TradingPair] = []
    for pair_str in pair_strs:
        try:
            pair = TradingPair.from_string(pair_str)
        except ValueError as e:
            raise ConfigurationError(str(e)) from e
        if not pair.is_known:
            raise ConfigurationError(
                f"Unknown trading pair '{pair}'. Known: {', '.join(sorted(KNOWN_PAIRS))}"
            )
        if pair not in pairs:
            pairs.append(pair)

    if not pairs:
        raise ConfigurationError("At least one trading pair must be specified")
    return pairs
