"""Swap venues and the route finder that picks between them."""
from __future__ import annotations

import logging
from typing import Sequence

from ...models import RouteQuote, Venue
from .chain import MemoryChain, Revert
from .contract import Contract
from .pair import MemoryPair

logger = logging.getLogger(__name__)


class MemoryVenueRouter(Contract):
    """Single-hop executor over the pairs listed on one venue."""

    def __init__(self, chain: MemoryChain, venue: Venue) -> None:
        super().__init__(chain, f"venue:{venue.value}")
        self.venue = venue
        self._pairs: dict[frozenset[str], str] = {}

    def add_pair(self, pair: MemoryPair) -> None:
        self._pairs[frozenset((pair.token0(), pair.token1()))] = pair.address

    def pair_for(self, token_in: str, token_out: str) -> str | None:
        return self._pairs.get(frozenset((token_in, token_out)))

    def get_amount_out(self, amount_in: int, token_in: str, token_out: str) -> int:
        pair = self.pair_for(token_in, token_out)
        if pair is None:
            return 0
        return self._at(pair).get_amount_out(amount_in, token_in)

    async def swap(
        self,
        amount_in: int,
        min_amount_out: int,
        token_in: str,
        token_out: str,
        recipient: str,
    ) -> int:
        pair_address = self.pair_for(token_in, token_out)
        if pair_address is None:
            raise Revert(f"{self.venue.value}: no pair for {token_in}/{token_out}")

        pair = self._at(pair_address)
        amount_out = pair.get_amount_out(amount_in, token_in)
        if amount_out < min_amount_out:
            raise Revert(
                f"{self.venue.value}: insufficient output ({amount_out} < {min_amount_out})"
            )

        await self._at(token_in).transfer_from(self.msg_sender, pair_address, amount_in)
        if token_in == pair.token0():
            await pair.swap(0, amount_out, recipient)
        else:
            await pair.swap(amount_out, 0, recipient)
        return amount_out


class MemoryRouteFinder(Contract):
    """Quotes every allowed venue and returns the one with the best output."""

    def __init__(self, chain: MemoryChain) -> None:
        super().__init__(chain, "route-finder")
        self._venues: dict[Venue, str] = {}

    def add_venue(self, router: MemoryVenueRouter) -> None:
        self._venues[router.venue] = router.address

    def find_best_path(
        self, amount_in: int, token_in: str, token_out: str, venues: Sequence[Venue]
    ) -> RouteQuote:
        best: RouteQuote | None = None
        for venue in venues:
            executor = self._venues.get(Venue(venue))
            if executor is None:
                continue
            amount_out = self._at(executor).get_amount_out(amount_in, token_in, token_out)
            if amount_out > 0 and (best is None or amount_out > best.amount_out):
                best = RouteQuote(
                    venue=Venue(venue),
                    executor=executor,
                    path=(token_in, token_out),
                    amount_in=amount_in,
                    amount_out=amount_out,
                )

        if best is None:
            raise Revert(f"No route for {amount_in} {token_in} -> {token_out}")
        logger.debug("Best route %s: %d out", best.venue.value, best.amount_out)
        return best
