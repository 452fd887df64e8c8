"""Value converter: stable asset <-> two-asset liquidity position."""
from __future__ import annotations

import logging

from ..interfaces.environment import ExecutionEnvironment
from ..interfaces.pair import LiquidityPair
from ..interfaces.token import Token
from .math import optimal_deposit
from .swap_adapter import SwapRouterAdapter

logger = logging.getLogger(__name__)


class ValueConverter:
    """Convert between USDC and the two assets of a liquidity pool.

    Every stage reads the owner's full balance rather than trusting amounts
    passed in, so surplus from upstream fees or rounding is carried along.
    """

    def __init__(
        self,
        env: ExecutionEnvironment,
        owner: str,
        swapper: SwapRouterAdapter,
        usdc: str,
        native_token: str,
        swap_fee: int = 997,
    ) -> None:
        self._env = env
        self._owner = owner
        self._swapper = swapper
        self._usdc = usdc
        self._native = native_token
        self._swap_fee = swap_fee

    def _balance_of(self, token: str) -> int:
        erc20: Token = self._env.at(token, self._owner)
        return erc20.balance_of(self._owner)

    async def usdc_to_liquidity(self, lp_token_pair: str, amount_usdc: int) -> tuple[int, int]:
        """Turn USDC into pool-proportional balances of the pair's two assets.

        Returns the owner's balances of ``(token0, token1)``, ready to be sent
        to the pair for minting.
        """
        pair: LiquidityPair = self._env.at(lp_token_pair, self._owner)
        token0, token1 = pair.token0(), pair.token1()
        logger.debug("Converting %d USDC into %s/%s", amount_usdc, token0, token1)

        if self._usdc in (token0, token1):
            token_a = self._usdc
        else:
            await self._swapper.swap_tokens(
                self._usdc, self._native, self._balance_of(self._usdc)
            )
            if self._native in (token0, token1):
                token_a = self._native
            else:
                await self._swapper.swap_tokens(
                    self._native, token0, self._balance_of(self._native)
                )
                token_a = token0

        reserve0, reserve1, _ = pair.get_reserves()
        reserves_a = reserve0 if token_a == token0 else reserve1
        token_b = token1 if token_a == token0 else token0

        total_a = self._balance_of(token_a)
        swap_amount = optimal_deposit(total_a, reserves_a, self._swap_fee)
        logger.debug(
            "Optimal deposit: swapping %d of %d %s into %s",
            swap_amount, total_a, token_a, token_b,
        )
        await self._swapper.swap_tokens(token_a, token_b, swap_amount)

        return self._balance_of(token0), self._balance_of(token1)

    async def liquidity_to_usdc(
        self, token0: str, token1: str, amount0: int, amount1: int
    ) -> int:
        """Swap both pool assets back into USDC and return the owner's USDC balance."""
        logger.debug(
            "Converting %d %s + %d %s to USDC", amount0, token0, amount1, token1
        )

        if self._usdc in (token0, token1):
            other = token1 if token0 == self._usdc else token0
            await self._swapper.swap_tokens(other, self._usdc, self._balance_of(other))
            return self._balance_of(self._usdc)

        for token in (token0, token1):
            if token != self._native:
                await self._swapper.swap_tokens(
                    token, self._native, self._balance_of(token)
                )

        await self._swapper.swap_tokens(
            self._native, self._usdc, self._balance_of(self._native)
        )
        return self._balance_of(self._usdc)
