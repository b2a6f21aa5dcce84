from decimal import Decimal

import pytest

from src.utils.math_tools import (
    Q96,
    clamp_to_nearest_tick,
    is_aligned,
    q96_from_ratio,
    ratio_from_q96,
    to_base_units,
)


def test_unit_price_with_equal_decimals_is_q96():
    assert Q96 == 2**96
    assert q96_from_ratio(1, 18, 18) == 2**96
    assert q96_from_ratio("1.0", 6, 6) == 2**96


def test_decimals_rescale_the_price():
    # 0.5 USDC (6 decimals) per 18-decimal token
    assert q96_from_ratio("0.5", 18, 6) == 5 * 10**11 * 2**96


def test_ratio_from_q96_inverts_exact_prices():
    assert ratio_from_q96(2**96, 18, 18) == Decimal(1)
    assert ratio_from_q96(q96_from_ratio("2.5", 6, 6), 6, 6) == Decimal("2.5")


def test_q96_rejects_bad_prices():
    with pytest.raises(ValueError):
        q96_from_ratio("-1", 18, 18)
    with pytest.raises(ValueError):
        q96_from_ratio(Decimal("NaN"), 18, 18)


def test_to_base_units_truncates_dust():
    assert to_base_units("1.5", 6) == 1_500_000
    assert to_base_units(Decimal("0.0000001"), 6) == 0
    assert to_base_units(3, 18) == 3 * 10**18


def test_is_aligned():
    assert is_aligned(10, 5)
    assert not is_aligned(12, 5)
    assert not is_aligned(13, 5)
    assert is_aligned(0, 5)
    with pytest.raises(ValueError):
        is_aligned(10, 0)


def test_clamp_to_nearest_tick():
    floor, cap, spacing = 100, 200, 10
    assert clamp_to_nearest_tick(120, spacing, floor, cap) == 120
    assert clamp_to_nearest_tick(124, spacing, floor, cap) == 120
    assert clamp_to_nearest_tick(126, spacing, floor, cap) == 130
    # ties round down
    assert clamp_to_nearest_tick(125, spacing, floor, cap) == 120
    assert clamp_to_nearest_tick(250, spacing, floor, cap) == cap
    assert clamp_to_nearest_tick(50, spacing, floor, cap) == floor


def test_clamp_never_exceeds_cap():
    assert clamp_to_nearest_tick(196, 10, 100, 197) == 197
