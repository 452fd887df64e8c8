"""Pre-quote the swaps a leverage or deleverage call will need."""
from __future__ import annotations

import logging

from ..aggregator.planner import (
    entry_token,
    plan_deleverage_swaps,
    plan_leverage_swaps,
    plan_split_leg,
)
from ..interfaces.quote_source import QuoteSource
from ..models import SwapLeg, SwapQuote

logger = logging.getLogger(__name__)


class LeveragePlanner:
    """Turns planned swap legs into executable quotes from a quote source.

    The legs follow the same hops the router's value converter executes, so
    the quotes preview a conversion before it runs.
    """

    def __init__(self, quotes: QuoteSource, usdc: str, native: str, from_address: str) -> None:
        self._quotes = quotes
        self._usdc = usdc
        self._native = native
        self._from_address = from_address

    async def _quote(self, leg: SwapLeg) -> SwapQuote:
        if leg.amount == 0:
            return SwapQuote(leg.from_token, leg.to_token, 0, 0)
        return await self._quotes.fetch_swap(
            leg.from_token, leg.to_token, leg.amount, self._from_address
        )

    async def plan_leverage(
        self,
        token0: str,
        token1: str,
        amount: int,
        reserves: tuple[int, int] | None = None,
        swap_fee: int = 997,
    ) -> list[SwapQuote]:
        """Quote the route hops, then the optimal split when pool reserves are given."""
        quotes: list[SwapQuote] = []
        held = amount
        for leg in plan_leverage_swaps(token0, token1, self._usdc, self._native, amount):
            if quotes:
                leg = SwapLeg(leg.from_token, leg.to_token, held)
            quote = await self._quote(leg)
            held = quote.amount_out
            quotes.append(quote)

        if reserves is not None:
            token_a = entry_token(token0, token1, self._usdc, self._native)
            split = plan_split_leg(token0, token1, token_a, held, *reserves, swap_fee)
            quotes.append(await self._quote(split))

        logger.info("Planned %d leverage swap(s) for %s/%s", len(quotes), token0, token1)
        return quotes

    async def plan_deleverage(
        self, token0: str, token1: str, amount0: int, amount1: int
    ) -> list[SwapQuote]:
        legs = plan_deleverage_swaps(
            token0, token1, amount0, amount1, self._usdc, self._native
        )
        quotes: list[SwapQuote] = []
        into_native = 0
        for leg in legs:
            if leg.from_token == self._native and leg.to_token == self._usdc:
                leg = SwapLeg(leg.from_token, leg.to_token, leg.amount + into_native)
            quote = await self._quote(leg)
            if quote.to_token == self._native:
                into_native += quote.amount_out
            quotes.append(quote)
        logger.info("Planned %d deleverage swap(s) for %s/%s", len(quotes), token0, token1)
        return quotes

    @staticmethod
    def calldata(quotes: list[SwapQuote]) -> list[str]:
        """Hex payloads in quote order for an external executor; ``["0x"]`` when nothing swaps."""
        return [q.calldata for q in quotes] or ["0x"]
