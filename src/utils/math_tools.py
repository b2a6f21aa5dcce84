# src/utils/math_tools.py
from __future__ import annotations

from decimal import ROUND_FLOOR, Decimal, localcontext
from typing import Union

Number = Union[int, str, Decimal]

# 2^96, the scale of Uniswap-style Q96 fixed-point prices.
Q96: int = 1 << 96

# Enough precision for 2^96 * 10^36 with room to spare.
_PRECISION = 120


def _as_decimal(x: Number) -> Decimal:
    d = x if isinstance(x, Decimal) else Decimal(str(x))
    if not d.is_finite():
        raise ValueError(f"non-finite value: {x!r}")
    return d


def _floor_int(d: Decimal) -> int:
    return int(d.to_integral_value(rounding=ROUND_FLOOR))


# ---- Price conversion ------------------------------------------------------ #


def q96_from_ratio(price: Number, token_decimals: int, currency_decimals: int) -> int:
    """
    Convert a human price (currency per token, e.g. 0.5 USDC per TOKEN) to Q96.

    Decimal places of the token and currency rescale the ratio to base units:
        q96 = floor(price * 10**token_decimals / 10**currency_decimals * 2**96)
    """
    p = _as_decimal(price)
    if p < 0:
        raise ValueError(f"price must be non-negative, got {price}")
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        scale = Decimal(10) ** token_decimals / Decimal(10) ** currency_decimals
        return _floor_int(p * scale * Q96)


def ratio_from_q96(price_q96: int, token_decimals: int, currency_decimals: int) -> Decimal:
    """Convert a Q96 price back to a human ratio. Display only."""
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        scale = Decimal(10) ** token_decimals / Decimal(10) ** currency_decimals
        r = Decimal(price_q96) / Q96 / scale
        # normalize() alone would print 100 as 1E+2
        return r.quantize(Decimal(1)) if r == r.to_integral_value() else r.normalize()


def to_base_units(amount: Number, decimals: int) -> int:
    """Human amount -> integer base units (wei-style), truncating dust."""
    a = _as_decimal(amount)
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        return _floor_int(a * (Decimal(10) ** decimals))


# ---- Tick helpers ---------------------------------------------------------- #


def is_aligned(price_q96: int, tick_spacing: int) -> bool:
    """True when the price is a whole multiple of the tick spacing."""
    if tick_spacing <= 0:
        raise ValueError("tick_spacing must be positive")
    return price_q96 % tick_spacing == 0


def clamp_to_nearest_tick(price_q96: int, tick_spacing: int, floor_q96: int, cap_q96: int) -> int:
    """
    Snap a Q96 price onto the tick grid anchored at ``floor_q96``.

    Prices at or beyond the bounds clamp to them; otherwise the nearest tick
    wins, ties round down, and the result never exceeds the cap.
    """
    if tick_spacing <= 0:
        raise ValueError("tick_spacing must be positive")
    if price_q96 >= cap_q96:
        return cap_q96
    if price_q96 <= floor_q96:
        return floor_q96
    rem = (price_q96 - floor_q96) % tick_spacing
    if rem == 0:
        return price_q96
    down = price_q96 - rem
    up = down + tick_spacing
    candidate = up if rem > tick_spacing - rem else down
    return min(candidate, cap_q96)
