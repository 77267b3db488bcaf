"""
Amount conversion between human amounts and smallest units
"""

from decimal import Decimal, InvalidOperation, ROUND_FLOOR, localcontext
from typing import Union

from ..errors import AmountError
from ..types import SwapMode

U64_MAX = 2 ** 64 - 1

AmountLike = Union[Decimal, int, float, str]


def parse_amount(amount: AmountLike) -> Decimal:
    """
    Validate a human amount

    Floats are converted through their string form so 0.001 stays 0.001.

    Raises:
        AmountError: Not a finite number, or not greater than zero
    """
    if isinstance(amount, bool) or amount is None:
        raise AmountError.not_a_number(amount)

    try:
        value = amount if isinstance(amount, Decimal) else Decimal(str(amount).strip())
    except (InvalidOperation, ValueError):
        raise AmountError.not_a_number(amount)

    if not value.is_finite():
        raise AmountError.not_a_number(amount)
    if value <= 0:
        raise AmountError.not_positive(amount)
    return value


def scale_amount(amount: AmountLike, decimals: int) -> int:
    """
    floor(amount * 10^decimals)

    Raises:
        AmountError: Invalid amount, truncates to zero, or exceeds u64
    """
    value = parse_amount(amount)

    with localcontext() as ctx:
        ctx.prec = 80
        raw = int(value.scaleb(decimals).to_integral_value(rounding=ROUND_FLOOR))

    if raw == 0:
        raise AmountError.too_small(value, decimals)
    if raw > U64_MAX:
        raise AmountError.too_large(value, decimals)
    return raw


def to_smallest_units(
    amount: AmountLike,
    mode: SwapMode,
    from_decimals: int,
    to_decimals: int,
) -> int:
    """
    Convert a swap amount to smallest units

    ExactIn amounts denominate the input token, ExactOut amounts the output
    token.
    """
    decimals = from_decimals if mode == SwapMode.EXACT_IN else to_decimals
    return scale_amount(amount, decimals)


def from_smallest_units(raw: int, decimals: int) -> Decimal:
    """Convert smallest units back to a human amount (exact)"""
    return Decimal(int(raw)).scaleb(-decimals)
