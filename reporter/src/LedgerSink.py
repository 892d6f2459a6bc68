"""LedgerSink: The external boundary that receives price submissions.

A sink accepts an :class:`EncodedSubmission` and reports whether the ledger
took it. The record is the stable ``(pair, price, timestamp)`` triple.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass

from .FixedPoint import SCALE_DECIMALS, from_fixed_point

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EncodedSubmission:
    """A price ready to be written on-chain.

    :ivar pair: Pair identifier (e.g., "STX-USD").
    :ivar price: Price in micro units (10**6 scale).
    :ivar timestamp: Unix timestamp in seconds.
    """

    pair: str
    price: int
    timestamp: int

    def as_args(self) -> tuple[str, int, int]:
        """Return the contract call arguments in their fixed order."""
        return (self.pair, self.price, self.timestamp)


@dataclass(frozen=True)
class LedgerReceipt:
    """Outcome of handing a submission to the ledger.

    :ivar accepted: True if the ledger accepted the submission.
    :ivar reason: Rejection reason reported by the ledger, if any.
    :ivar reference: Ledger-side reference such as a transaction hash.
    """

    accepted: bool
    reason: str | None = None
    reference: str | None = None


class LedgerSink(ABC):
    """Abstract base class for ledger submission targets."""

    @abstractmethod
    def submit(self, record: EncodedSubmission) -> LedgerReceipt:
        """Submit one record to the ledger.

        :param record: The encoded submission.
        :returns: Receipt saying whether the ledger accepted it.
        """
        pass


class SimulatedLedgerSink(LedgerSink):
    """Sink that logs submissions instead of sending them anywhere."""

    def submit(self, record: EncodedSubmission) -> LedgerReceipt:
        price = from_fixed_point(record.price)
        logger.info(
            f"Submitting {record.pair}: ${price:.{SCALE_DECIMALS}f} "
            f"({record.price} micro) at {record.timestamp} [simulated]"
        )
        return LedgerReceipt(accepted=True, reference="simulated")
