"""Swap router adapter: one call to convert ``amount_in`` of X into Y."""
from __future__ import annotations

import logging
from typing import Sequence

from ..interfaces.environment import ExecutionEnvironment
from ..interfaces.routing import RoutingService, VenueExecutor
from ..models import Venue
from .allowance import approve_token

logger = logging.getLogger(__name__)


class SwapRouterAdapter:
    """Route swaps through the routing service, restricted to an allow-list of venues.

    No slippage floor is applied here: the routing service's own quote is
    passed as the minimum output. Callers own conversion-level slippage.
    """

    def __init__(
        self,
        env: ExecutionEnvironment,
        owner: str,
        route_finder: str,
        venues: Sequence[Venue],
    ) -> None:
        if not venues:
            raise ValueError("At least one swap venue must be allowed")
        self._env = env
        self._owner = owner
        self._route_finder = route_finder
        self._venues = tuple(Venue(v) for v in venues)

    @property
    def venues(self) -> tuple[Venue, ...]:
        return self._venues

    async def swap_tokens(self, token_in: str, token_out: str, amount_in: int) -> int:
        """Swap ``amount_in`` of ``token_in`` held by the owner into ``token_out``.

        Zero amounts and same-token swaps are no-ops. Returns the amount received.
        """
        if amount_in == 0 or token_in == token_out:
            return 0

        finder: RoutingService = self._env.at(self._route_finder, self._owner)
        quote = finder.find_best_path(amount_in, token_in, token_out, self._venues)

        # Executor pulls amount_in under this allowance
        await approve_token(self._env, self._owner, token_in, quote.executor, amount_in)

        executor: VenueExecutor = self._env.at(quote.executor, self._owner)
        amount_out = await executor.swap(
            amount_in, quote.amount_out, token_in, token_out, self._owner
        )

        logger.debug(
            "Swapped %d %s -> %d %s via %s",
            amount_in, token_in, amount_out, token_out, quote.venue.value,
        )
        return amount_out
