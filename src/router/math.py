"""Pure integer math and constants used by the router: no I/O."""
from __future__ import annotations

import math

WAD = 10**18
MAX_UINT256 = 2**256 - 1
FEE_DENOMINATOR = 1000
ZERO_ADDRESS = "0x" + "0" * 40


def mul_wad(x: int, y: int) -> int:
    """Multiply two fixed-point numbers with 18 decimals, rounding down."""
    return x * y // WAD


def div_wad(x: int, y: int) -> int:
    """Divide two fixed-point numbers with 18 decimals, rounding down."""
    return x * WAD // y


def div_wad_up(x: int, y: int) -> int:
    """Divide two fixed-point numbers with 18 decimals, rounding up."""
    return -(-(x * WAD) // y)


def optimal_deposit(amount_a: int, reserves_a: int, swap_fee: int = 997) -> int:
    """Amount of token A to swap so the remainder matches the pool ratio.

    Closed-form solution of the one-sided deposit problem for a
    constant-product pool charging ``(1000 - swap_fee) / 1000`` per swap:

        a = (1000 + fee) * rA
        b = amountA * 1000 * rA * 4 * fee
        swap = (sqrt(a^2 + b) - a) / (2 * fee)

    Examples:
        optimal_deposit(0, 10**6) → 0
        optimal_deposit(3 * 10**6, 10**6, 1000) → 10**6
    """
    if swap_fee <= 0 or swap_fee > FEE_DENOMINATOR:
        raise ValueError(f"swap_fee must be in (0, {FEE_DENOMINATOR}], got {swap_fee}")
    a = (FEE_DENOMINATOR + swap_fee) * reserves_a
    b = amount_a * FEE_DENOMINATOR * reserves_a * 4 * swap_fee
    c = math.isqrt(a * a + b)
    return (c - a) // (2 * swap_fee)


def get_amount_out(
    amount_in: int, reserve_in: int, reserve_out: int, swap_fee: int = 997
) -> int:
    """Constant-product output for ``amount_in``, after the per-mille fee."""
    if amount_in <= 0 or reserve_in <= 0 or reserve_out <= 0:
        return 0
    amount_in_with_fee = amount_in * swap_fee
    numerator = amount_in_with_fee * reserve_out
    denominator = reserve_in * FEE_DENOMINATOR + amount_in_with_fee
    return numerator // denominator
