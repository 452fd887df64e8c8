"""Swap routing protocols: route query and per-venue execution."""
from typing import Protocol, Sequence

from ..models import RouteQuote, Venue


class RoutingService(Protocol):
    """Read-only best-route query over a bounded venue set."""

    def find_best_path(
        self, amount_in: int, token_in: str, token_out: str, venues: Sequence[Venue]
    ) -> RouteQuote: ...


class VenueExecutor(Protocol):
    """Execution target resolved by a route quote."""

    async def swap(
        self,
        amount_in: int,
        min_amount_out: int,
        token_in: str,
        token_out: str,
        recipient: str,
    ) -> int: ...
