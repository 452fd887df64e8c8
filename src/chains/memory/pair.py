"""Constant-product liquidity pair that is also its own LP token."""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass

from ...router.math import FEE_DENOMINATOR, ZERO_ADDRESS, get_amount_out
from .chain import MemoryChain, Revert
from .token import MemoryToken, TokenStorage

logger = logging.getLogger(__name__)


@dataclass
class PairStorage(TokenStorage):
    reserve0: int = 0
    reserve1: int = 0
    block_timestamp_last: int = 0


class MemoryPair(MemoryToken):
    """UniswapV2-style pair: mint and burn against sent balances, fee per mille."""

    MINIMUM_LIQUIDITY = 1000

    def __init__(
        self,
        chain: MemoryChain,
        token0: str,
        token1: str,
        swap_fee: int = 997,
        symbol: str = "LP",
    ) -> None:
        if token0 == token1:
            raise ValueError("Pair tokens must differ")
        super().__init__(chain, symbol, decimals=18, storage=PairStorage())
        self._token0 = token0
        self._token1 = token1
        self.swap_fee = swap_fee

    def token0(self) -> str:
        return self._token0

    def token1(self) -> str:
        return self._token1

    def get_reserves(self) -> tuple[int, int, int]:
        s = self.storage
        return s.reserve0, s.reserve1, s.block_timestamp_last

    def get_amount_out(self, amount_in: int, token_in: str) -> int:
        reserve0, reserve1, _ = self.get_reserves()
        if token_in == self._token0:
            return get_amount_out(amount_in, reserve0, reserve1, self.swap_fee)
        if token_in == self._token1:
            return get_amount_out(amount_in, reserve1, reserve0, self.swap_fee)
        raise Revert(f"{token_in} is not in pair {self.address}")

    def _balances(self) -> tuple[int, int]:
        balance0 = self._at(self._token0).balance_of(self.address)
        balance1 = self._at(self._token1).balance_of(self.address)
        return balance0, balance1

    def _update(self, balance0: int, balance1: int) -> None:
        self.storage.reserve0 = balance0
        self.storage.reserve1 = balance1
        self.storage.block_timestamp_last = self.chain.timestamp

    async def mint(self, to: str) -> int:
        reserve0, reserve1, _ = self.get_reserves()
        balance0, balance1 = self._balances()
        amount0 = balance0 - reserve0
        amount1 = balance1 - reserve1

        total_supply = self.storage.total_supply
        if total_supply == 0:
            liquidity = math.isqrt(amount0 * amount1) - self.MINIMUM_LIQUIDITY
            self._mint(ZERO_ADDRESS, self.MINIMUM_LIQUIDITY)
        else:
            liquidity = min(
                amount0 * total_supply // reserve0, amount1 * total_supply // reserve1
            )
        if liquidity <= 0:
            raise Revert("Insufficient liquidity minted")

        self._mint(to, liquidity)
        self._update(balance0, balance1)
        logger.debug("%s minted %d to %s", self.symbol, liquidity, to)
        return liquidity

    async def burn(self, to: str) -> tuple[int, int]:
        balance0, balance1 = self._balances()
        liquidity = self.balance_of(self.address)
        total_supply = self.storage.total_supply

        amount0 = liquidity * balance0 // total_supply
        amount1 = liquidity * balance1 // total_supply
        if amount0 <= 0 or amount1 <= 0:
            raise Revert("Insufficient liquidity burned")

        self._burn(self.address, liquidity)
        await self._at(self._token0).transfer(to, amount0)
        await self._at(self._token1).transfer(to, amount1)
        self._update(*self._balances())
        logger.debug("%s burned %d for %d/%d", self.symbol, liquidity, amount0, amount1)
        return amount0, amount1

    async def swap(self, amount0_out: int, amount1_out: int, to: str) -> None:
        if amount0_out <= 0 and amount1_out <= 0:
            raise Revert("Insufficient output amount")
        reserve0, reserve1, _ = self.get_reserves()
        if amount0_out >= reserve0 or amount1_out >= reserve1:
            raise Revert("Insufficient liquidity")

        if amount0_out > 0:
            await self._at(self._token0).transfer(to, amount0_out)
        if amount1_out > 0:
            await self._at(self._token1).transfer(to, amount1_out)

        balance0, balance1 = self._balances()
        amount0_in = max(balance0 - (reserve0 - amount0_out), 0)
        amount1_in = max(balance1 - (reserve1 - amount1_out), 0)
        if amount0_in <= 0 and amount1_in <= 0:
            raise Revert("Insufficient input amount")

        fee = FEE_DENOMINATOR - self.swap_fee
        adjusted0 = balance0 * FEE_DENOMINATOR - amount0_in * fee
        adjusted1 = balance1 * FEE_DENOMINATOR - amount1_in * fee
        if adjusted0 * adjusted1 < reserve0 * reserve1 * FEE_DENOMINATOR**2:
            raise Revert("K")

        self._update(balance0, balance1)
