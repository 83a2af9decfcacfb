"""Numeric formatting for the Hyperliquid wire format.

Prices and sizes travel as decimal strings with at most 8 fractional digits,
USD amounts of some L1 actions as integers scaled by ``10^6``.

The conversions here refuse to silently round: a value that does not fit the
wire representation raises :py:class:`~eth_hyperliquid.errors.PrecisionLoss`.

Example:

.. code-block:: python

    from eth_hyperliquid.numeric import float_to_wire, float_to_usd_int

    assert float_to_wire(1670.1) == "1670.1"
    assert float_to_wire(100.0) == "100"
    assert float_to_usd_int(10.0) == 10_000_000
"""

import math

from eth_hyperliquid.errors import InvalidNumber, PrecisionLoss

#: Fractional digits allowed in a wire decimal string
WIRE_DECIMALS = 8

#: Maximum allowed difference between the input and its 8-decimal rendition
WIRE_TOLERANCE = 1e-12

#: Maximum allowed difference between a scaled value and its integer rounding
INT_TOLERANCE = 1e-3

#: USD amounts are scaled by 10^6 on the wire
USD_DECIMALS = 6


def _check_finite(x: float):
    if math.isnan(x) or math.isinf(x):
        raise InvalidNumber(f"Cannot encode non-finite number: {x}")


def float_to_wire(x: float) -> str:
    """Convert a price or a size to its canonical wire string.

    - Rendered with 8 fractional digits, then trailing zeros and a dangling
      decimal point are stripped

    - Negative zero becomes ``"0"``

    :param x:
        Price or size

    :return:
        Decimal string, e.g. ``"0.0147"`` or ``"100"``

    :raise InvalidNumber:
        NaN or infinity

    :raise PrecisionLoss:
        The value needs more than 8 fractional digits
    """
    _check_finite(x)
    rounded = f"{x:.{WIRE_DECIMALS}f}"
    if abs(float(rounded) - x) > WIRE_TOLERANCE:
        raise PrecisionLoss(f"float_to_wire causes rounding: {x} -> {rounded}")

    if "." in rounded:
        rounded = rounded.rstrip("0").rstrip(".")

    if rounded == "-0":
        rounded = "0"

    return rounded


def parse_decimal(text: str) -> float:
    """Parse a wire decimal string back to a float."""
    value = float(text)
    _check_finite(value)
    return value


def float_to_int(x: float, power: int) -> int:
    """Scale ``x`` by ``10^power`` and convert to an integer.

    :raise PrecisionLoss:
        The scaled value is not within ``1e-3`` of an integer
    """
    _check_finite(x)
    with_decimals = x * 10**power
    if math.isinf(with_decimals):
        raise PrecisionLoss(f"float_to_int overflows: {x} at power {power}")
    rounded = round(with_decimals)
    if abs(rounded - with_decimals) >= INT_TOLERANCE:
        raise PrecisionLoss(f"float_to_int causes rounding: {x} at power {power}")
    return rounded


def float_to_usd_int(x: float) -> int:
    """Convert a USD amount to micro-dollars, as used by ``usd`` and ``ntli`` fields."""
    return float_to_int(x, USD_DECIMALS)


def _round_half_away_from_zero(x: float) -> float:
    magnitude = abs(x)
    whole = math.floor(magnitude)
    if magnitude - whole >= 0.5:
        whole += 1
    return math.copysign(whole, x)


def round_to_significant_figures(x: float, figures: int) -> float:
    """Round to a number of significant figures, halves away from zero.

    A negative scale is applied as a division followed by a multiplication,
    so the result for e.g. ``123456.789`` at 5 figures is exactly ``123460.0``.
    """
    _check_finite(x)
    if x == 0:
        return 0.0

    power = figures - math.ceil(math.log10(abs(x)))
    if power >= 0:
        factor = 10**power
        return _round_half_away_from_zero(x * factor) / factor
    else:
        factor = 10 ** (-power)
        return _round_half_away_from_zero(x / factor) * factor


def round_half_to_even(x: float, digits: int) -> float:
    """Round to ``digits`` decimals with banker's rounding.

    Operates on the exact binary value of ``x``, so ``-1.2345`` rounds to
    ``-1.234``. Negative ``digits`` round to tens, hundreds and so on.
    """
    _check_finite(x)
    return float(round(x, digits))


def get_dex(symbol: str) -> str:
    """Extract the builder-deployed dex prefix from a coin name.

    ``"xyz:BTC"`` is traded on dex ``"xyz"``, plain ``"BTC"`` on the default dex ``""``.
    """
    prefix, separator, _ = symbol.partition(":")
    return prefix if separator else ""
