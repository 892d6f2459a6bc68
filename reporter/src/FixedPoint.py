"""Fixed-point conversion between decimal prices and on-chain integers.

Prices are stored on-chain as unsigned integers with six implied decimals
(micro units). Conversion goes through the shortest decimal representation
of the input, so ``1.25`` encodes to exactly ``1250000`` and half-way values
round away from zero.

.. code-block:: python

    >>> to_fixed_point(1.25)
    1250000
    >>> to_fixed_point(0.0000025)
    3
    >>> from_fixed_point(1250000)
    1.25
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from .errors import EncodingError

# Number of decimals stored on-chain.
SCALE_DECIMALS = 6
SCALE = 10**SCALE_DECIMALS


def _to_decimal(price: float | int | Decimal | str) -> Decimal:
    if isinstance(price, bool):
        raise EncodingError(f"Price must be numeric, got {price!r}")
    if isinstance(price, Decimal):
        return price
    if isinstance(price, (float, int, str)):
        try:
            return Decimal(str(price).strip())
        except InvalidOperation as e:
            raise EncodingError(f"Price must be numeric, got {price!r}") from e
    raise EncodingError(f"Price must be numeric, got {type(price).__name__}")


def to_fixed_point(price: float | int | Decimal | str) -> int:
    """Encode a decimal price as an integer scaled by 10**6.

    :param price: Positive, finite price.
    :returns: round(price * 10**6), rounding half away from zero.
    :raises EncodingError: If the price is non-numeric, non-finite, not positive,
        or below half a micro unit.
    """
    value = _to_decimal(price)
    if not value.is_finite():
        raise EncodingError(f"Price must be finite, got {price!r}")
    if value <= 0:
        raise EncodingError(f"Price must be positive, got {price!r}")

    encoded = int((value * SCALE).to_integral_value(rounding=ROUND_HALF_UP))
    if encoded == 0:
        raise EncodingError(f"Price {price!r} rounds to zero at {SCALE_DECIMALS} decimals")
    return encoded


def from_fixed_point(value: int) -> float:
    """Decode an on-chain integer back to a decimal price.

    :param value: Non-negative integer in micro units.
    :returns: value / 10**6.
    :raises EncodingError: If value is not a non-negative integer.
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise EncodingError(f"Fixed-point value must be an integer, got {value!r}")
    if value < 0:
        raise EncodingError(f"Fixed-point value must be non-negative, got {value}")
    return float(Decimal(value) / SCALE)
