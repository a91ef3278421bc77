"""Token amount conversions.

Human readable decimal amounts are converted to the token native units
with exact decimal arithmetic. No floats anywhere.
"""
from decimal import MAX_EMAX, MIN_EMIN, Decimal, Inexact, Overflow, localcontext

from orderdeployer.errors import EncodingError
from orderdeployer.state.session import InvalidAmount, parse_human_amount
from orderdeployer.state.types import NativeAmount, TokenAmount


#: Largest amount an ERC-20 uint256 can hold
MAX_UINT256 = 2**256 - 1


class AmountPrecisionLoss(EncodingError):
    """The amount has more decimal places than the token."""


class AmountOverflow(EncodingError):
    """The amount does not fit in uint256."""


def to_native_units(amount: str | Decimal, decimals: int) -> NativeAmount:
    """Convert a human readable amount to the token native units.

    .. code-block:: python

        assert to_native_units("2000", 6) == 2_000_000_000
        assert to_native_units("0.5", 18) == 5 * 10**17

    :param amount:
        Decimal string, e.g. ``"50.6"``, or a :py:class:`Decimal`

    :param decimals:
        Token decimals

    :raise InvalidAmount:
        Not a non-negative decimal

    :raise AmountPrecisionLoss:
        The amount would need rounding

    :raise AmountOverflow:
        Does not fit in uint256
    """
    assert isinstance(decimals, int) and decimals >= 0, f"Bad decimals: {decimals}"

    if isinstance(amount, Decimal):
        value = amount
        if not value.is_finite() or value < 0:
            raise InvalidAmount(f"Not a finite non-negative amount: {amount}")
    else:
        value = parse_human_amount(amount, check_range=False)

    with localcontext() as ctx:
        # scaleb() only moves the exponent, it must neither round the digits
        # nor underflow to zero or overflow for extreme exponents
        ctx.prec = max(100, len(value.as_tuple().digits) + 10)
        ctx.Emax = MAX_EMAX
        ctx.Emin = MIN_EMIN
        ctx.traps[Inexact] = True
        try:
            scaled = value.scaleb(decimals)
            integral = scaled.to_integral_value()
        except Overflow as e:
            raise AmountOverflow(f"Amount {amount} with {decimals} decimals does not fit in uint256") from e
        except Inexact as e:
            raise AmountPrecisionLoss(f"Amount {amount} cannot be expressed with {decimals} decimals") from e

        # Compare as decimals, int() of a huge exponent would not finish
        if scaled > MAX_UINT256:
            raise AmountOverflow(f"Amount {amount} with {decimals} decimals does not fit in uint256")

        if scaled != integral:
            raise AmountPrecisionLoss(f"Amount {amount} has more than {decimals} decimals")

    return int(integral)


def from_native_units(amount: NativeAmount, decimals: int) -> TokenAmount:
    """Convert native units back to a human readable decimal."""
    with localcontext() as ctx:
        ctx.prec = 100
        return Decimal(amount).scaleb(-decimals)
