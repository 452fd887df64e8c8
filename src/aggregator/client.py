"""Swap aggregator HTTP clients with fallback support."""
from __future__ import annotations

import logging
import ssl
from typing import Any

import aiohttp
import certifi

from ..config import AggregatorConfig
from ..models import SwapQuote

logger = logging.getLogger(__name__)

# Selector the aggregator prefixes to its swap calldata; executors expect it stripped
SWAP_SELECTOR = "0x12aa3caf"


class FallbackHttpClient:
    """JSON-over-HTTP client that rotates through endpoints until one answers."""

    def __init__(self, config: AggregatorConfig) -> None:
        if not config.endpoints:
            raise ValueError("At least one aggregator endpoint must be configured")
        self.endpoints = list(config.endpoints)
        self.timeout = config.timeout
        self.chain_id = config.chain_id
        self.slippage = config.slippage
        self.from_address = config.from_address
        self.current_endpoint_index = 0

    async def request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        """Send ``method`` to ``path`` with fallback to alternative endpoints."""
        ssl_context = ssl.create_default_context(cafile=certifi.where())

        last_error: Exception | None = None
        for attempt in range(len(self.endpoints)):
            index = (self.current_endpoint_index + attempt) % len(self.endpoints)
            url = f"{self.endpoints[index].rstrip('/')}/{path}"

            try:
                connector = aiohttp.TCPConnector(ssl=ssl_context)
                async with aiohttp.ClientSession(connector=connector) as session:
                    send = getattr(session, method)
                    async with send(
                        url,
                        timeout=aiohttp.ClientTimeout(total=self.timeout),
                        **kwargs,
                    ) as response:
                        result = await response.json()
                        if "error" in result:
                            raise RuntimeError(
                                f"Aggregator error: {result.get('description') or result['error']}"
                            )

                        if index != self.current_endpoint_index:
                            logger.info("Switched to aggregator endpoint: %s", url)
                            self.current_endpoint_index = index

                        return result
            except Exception as e:
                last_error = e
                logger.warning("Aggregator endpoint %s failed: %s", url, e)
                if attempt < len(self.endpoints) - 1:
                    logger.info("Trying next endpoint...")
                continue

        raise RuntimeError(f"All aggregator endpoints failed. Last error: {last_error}")

    async def get(self, path: str, params: dict[str, str]) -> dict[str, Any]:
        return await self.request("get", path, params=params)

    async def post(
        self, path: str, payload: dict[str, Any], params: dict[str, str] | None = None
    ) -> dict[str, Any]:
        return await self.request("post", path, json=payload, params=params or {})


class AggregatorClient(FallbackHttpClient):
    """Swap-quote client for a 1inch-style aggregation API."""

    async def fetch_swap(
        self,
        from_token: str,
        to_token: str,
        amount: int,
        from_address: str | None = None,
    ) -> SwapQuote:
        """Quote swapping ``amount`` of ``from_token`` into ``to_token``."""
        params = {
            "fromTokenAddress": from_token,
            "toTokenAddress": to_token,
            "amount": str(amount),
            "fromAddress": from_address or self.from_address,
            "slippage": str(self.slippage),
            "disableEstimate": "true",
            "compatibilityMode": "true",
        }
        result = await self.get(f"{self.chain_id}/swap", params)

        try:
            amount_out = int(result.get("toTokenAmount") or result["toAmount"])
            calldata = str(result["tx"]["data"])
        except (KeyError, TypeError, ValueError) as e:
            raise RuntimeError(f"Malformed aggregator response: {e}") from e

        if calldata.startswith(SWAP_SELECTOR):
            calldata = "0x" + calldata[len(SWAP_SELECTOR):]

        logger.debug(
            "Quoted %d %s -> %d %s", amount, from_token, amount_out, to_token
        )
        return SwapQuote(
            from_token=from_token,
            to_token=to_token,
            amount_in=amount,
            amount_out=amount_out,
            calldata=calldata,
        )
