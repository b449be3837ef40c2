"""Pure valuation functions — raw token integers to human and USD amounts.

Raw amounts stay integers until the final scaling step. Scaling uses
``Decimal.scaleb`` which only moves the exponent, so it is exact; the only
rounding happens in the final ``quantize``.
"""
from __future__ import annotations

from decimal import ROUND_HALF_UP, Context, Decimal

TOKEN_AMOUNT_PLACES = 8
USD_VALUE_PLACES = 4

TOKEN_AMOUNT_QUANTUM = Decimal(1).scaleb(-TOKEN_AMOUNT_PLACES)
USD_VALUE_QUANTUM = Decimal(1).scaleb(-USD_VALUE_PLACES)

# Wide enough for uint256 products plus the fractional digits.
_CTX = Context(prec=200, rounding=ROUND_HALF_UP)

MAX_DECIMALS = 36


def _check(raw_amount: int, decimals: int) -> None:
    if raw_amount < 0:
        raise ValueError(f"Raw amount must be non-negative, got {raw_amount}")
    if not 0 <= decimals <= MAX_DECIMALS:
        raise ValueError(f"Unsupported decimals: {decimals}")


def scale(raw_amount: int, decimals: int) -> Decimal:
    """Exact ``raw_amount / 10**decimals`` without rounding."""
    _check(raw_amount, decimals)
    return Decimal(int(raw_amount)).scaleb(-decimals, context=_CTX)


def to_decimal(price: Decimal | float | int | str) -> Decimal:
    """Convert a price to Decimal; floats go through ``str`` to drop binary noise."""
    if isinstance(price, Decimal):
        return price
    if isinstance(price, float):
        return Decimal(repr(price))
    return Decimal(price)


def format_amount(raw_amount: int, decimals: int) -> Decimal:
    """Human-readable token amount, rounded to 8 fractional digits."""
    return scale(raw_amount, decimals).quantize(TOKEN_AMOUNT_QUANTUM, context=_CTX)


def usd_value(
    raw_amount: int, decimals: int, price_usd: Decimal | float | int | str
) -> Decimal:
    """USD value of a raw amount at ``price_usd``, rounded to 4 fractional digits.

    The token amount is used at full precision; only the product is rounded.
    """
    price = to_decimal(price_usd)
    if price < 0:
        raise ValueError(f"Price must be non-negative, got {price}")
    value = _CTX.multiply(scale(raw_amount, decimals), price)
    return value.quantize(USD_VALUE_QUANTUM, context=_CTX)


def usd_value_from_oracle(
    raw_amount: int, decimals: int, oracle_price: int, price_decimals: int
) -> Decimal:
    """USD value from an integer oracle price scaled by ``10**price_decimals``.

    One formula for every token decimals value:
        raw_amount * oracle_price / 10**(decimals + price_decimals)
    """
    _check(raw_amount, decimals)
    if oracle_price < 0:
        raise ValueError(f"Oracle price must be non-negative, got {oracle_price}")
    if price_decimals < 0:
        raise ValueError(f"Unsupported price decimals: {price_decimals}")
    product = Decimal(int(raw_amount) * int(oracle_price))
    value = product.scaleb(-(decimals + price_decimals), context=_CTX)
    return value.quantize(USD_VALUE_QUANTUM, context=_CTX)
