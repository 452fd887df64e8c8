"""Pure swap planning: which legs a flow needs quoted, no I/O."""
from __future__ import annotations

from ..models import SwapLeg
from ..router.math import optimal_deposit


def entry_token(token0: str, token1: str, usdc: str, native: str) -> str:
    """Pool asset that USDC is routed into before the optimal split."""
    if usdc in (token0, token1):
        return usdc
    if native in (token0, token1):
        return native
    return token0


def plan_leverage_swaps(
    token0: str, token1: str, usdc: str, native: str, amount: int
) -> tuple[SwapLeg, ...]:
    """Hops that carry ``amount`` USDC into one of the pool's assets.

    Only the first hop's input is known up front. Later hops carry 0 and
    callers chain in the previous hop's quoted output. The split into the
    pool's other asset is planned separately with :func:`plan_split_leg`.

    Examples:
        plan_leverage_swaps("USDC", "WETH", "USDC", "WETH", 100) → ()
        plan_leverage_swaps("OP", "WETH", "USDC", "WETH", 100) → (USDC→WETH,)
        plan_leverage_swaps("OP", "VELO", "USDC", "WETH", 100) → (USDC→WETH, WETH→OP)
    """
    pool = (token0, token1)
    if usdc in pool:
        return ()
    if native in pool:
        return (SwapLeg(usdc, native, amount),)
    return (SwapLeg(usdc, native, amount), SwapLeg(native, token0, 0))


def plan_split_leg(
    token0: str,
    token1: str,
    token_a: str,
    amount_a: int,
    reserve0: int,
    reserve1: int,
    swap_fee: int = 997,
) -> SwapLeg:
    """Swap of the optimal share of ``amount_a`` into the pool's other asset."""
    if token_a == token0:
        reserve_a, token_b = reserve0, token1
    else:
        reserve_a, token_b = reserve1, token0
    return SwapLeg(token_a, token_b, optimal_deposit(amount_a, reserve_a, swap_fee))


def plan_deleverage_swaps(
    token0: str,
    token1: str,
    amount0: int,
    amount1: int,
    usdc: str,
    native: str,
) -> tuple[SwapLeg, ...]:
    """Legs to quote when turning burned liquidity back into USDC.

    When the pool does not hold USDC, the final native → USDC leg carries only
    the native amount known up front; callers add the outputs of the earlier
    legs once those are quoted.
    """
    if usdc in (token0, token1):
        other, amount = (token1, amount1) if token0 == usdc else (token0, amount0)
        return (SwapLeg(other, usdc, amount),) if amount > 0 else ()

    legs: list[SwapLeg] = []
    native_amount = 0
    for token, amount in ((token0, amount0), (token1, amount1)):
        if token == native:
            native_amount += amount
        elif amount > 0:
            legs.append(SwapLeg(token, native, amount))
    legs.append(SwapLeg(native, usdc, native_amount))
    return tuple(legs)
