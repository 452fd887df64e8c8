"""Paraswap quote source: price route first, then the transaction build."""
from __future__ import annotations

import logging
import time

from ..config import AggregatorConfig
from ..models import SwapQuote
from .client import FallbackHttpClient

logger = logging.getLogger(__name__)

# Seconds the built transaction stays valid
TX_DEADLINE = 10_000
DEFAULT_DECIMALS = 18


class ParaswapClient(FallbackHttpClient):
    """Quotes SELL-side swaps through ``/prices`` and ``/transactions/{network}``."""

    def __init__(self, config: AggregatorConfig) -> None:
        super().__init__(config)
        self.token_decimals = dict(config.token_decimals)

    def decimals_of(self, token: str) -> int:
        return self.token_decimals.get(token.lower(), DEFAULT_DECIMALS)

    @property
    def slippage_bps(self) -> int:
        return round(self.slippage * 10_000)

    async def fetch_swap(
        self,
        from_token: str,
        to_token: str,
        amount: int,
        from_address: str | None = None,
    ) -> SwapQuote:
        user = from_address or self.from_address
        prices = await self.get(
            "prices",
            {
                "srcToken": from_token,
                "destToken": to_token,
                "srcDecimals": str(self.decimals_of(from_token)),
                "destDecimals": str(self.decimals_of(to_token)),
                "amount": str(amount),
                "side": "SELL",
                "network": str(self.chain_id),
                "userAddress": user,
            },
        )
        try:
            price_route = prices["priceRoute"]
            amount_out = int(price_route["destAmount"])
        except (KeyError, TypeError, ValueError) as e:
            raise RuntimeError(f"Malformed aggregator response: {e}") from e

        tx = await self.post(
            f"transactions/{self.chain_id}",
            {
                "srcToken": from_token,
                "destToken": to_token,
                "srcAmount": str(amount),
                "slippage": self.slippage_bps,
                "priceRoute": price_route,
                "userAddress": user,
                "deadline": int(time.time()) + TX_DEADLINE,
            },
            params={"ignoreChecks": "true"},
        )
        try:
            calldata = str(tx["data"])
        except (KeyError, TypeError) as e:
            raise RuntimeError(f"Malformed aggregator response: {e}") from e

        logger.debug(
            "Paraswap quoted %d %s -> %d %s", amount, from_token, amount_out, to_token
        )
        return SwapQuote(
            from_token=from_token,
            to_token=to_token,
            amount_in=amount,
            amount_out=amount_out,
            calldata=calldata,
        )
