"""SubmissionGateway: Packages an encoded price and hands it to the ledger.

The gateway performs exactly one ledger call per submission and never
retries; a rejected submission waits for the next reporter cycle.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .errors import EncodingError
from .FixedPoint import SCALE_DECIMALS, from_fixed_point
from .LedgerSink import EncodedSubmission, LedgerReceipt, LedgerSink
from .TradingPair import TradingPair

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SubmissionResult:
    """A submitted record together with the ledger's answer.

    :ivar record: The record that was handed to the ledger.
    :ivar receipt: The ledger's receipt.
    """

    record: EncodedSubmission
    receipt: LedgerReceipt

    @property
    def accepted(self) -> bool:
        """Check if the ledger accepted the record."""
        return self.receipt.accepted


def _check_pair(pair: TradingPair | str) -> TradingPair:
    if isinstance(pair, str):
        try:
            pair = TradingPair.from_string(pair)
        except ValueError as e:
            raise EncodingError(str(e)) from e
    if not isinstance(pair, TradingPair) or not pair.is_known:
        raise EncodingError(f"Cannot submit for unknown pair {pair!r}")
    return pair


def _check_uint(name: str, value: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise EncodingError(f"{name} must be an integer, got {value!r}")
    if value < 0:
        raise EncodingError(f"{name} must be non-negative, got {value}")


class SubmissionGateway:
    """Builds submission records and passes them to a ledger sink.

    :ivar sink: Ledger boundary receiving the records.
    """

    def __init__(self, sink: LedgerSink) -> None:
        """Initialize the gateway.

        :param sink: Ledger sink to submit to.
        """
        self.sink = sink

    def submit(
        self, pair: TradingPair | str, price: int, timestamp: int
    ) -> SubmissionResult:
        """Submit an encoded price for a pair.

        :param pair: Trading pair the price is for.
        :param price: Price in micro units.
        :param timestamp: Unix timestamp in seconds.
        :returns: SubmissionResult with the record and the ledger receipt.
        :raises EncodingError: If the pair is unknown, or price or timestamp is
            not a non-negative integer.
        """
        pair = _check_pair(pair)
        _check_uint("price", price)
        _check_uint("timestamp", timestamp)

        record = EncodedSubmission(pair=str(pair), price=price, timestamp=timestamp)
        receipt = self.sink.submit(record)

        if receipt.accepted:
            logger.info(
                f"{record.pair}: Submitted ${from_fixed_point(price):.{SCALE_DECIMALS}f} "
                f"({price} micro, timestamp={timestamp}). Reference: {receipt.reference}"
            )
        else:
            logger.warning(
                f"{record.pair}: Submission rejected ({receipt.reason}), "
                "will retry next cycle"
            )
        return SubmissionResult(record=record, receipt=receipt)
