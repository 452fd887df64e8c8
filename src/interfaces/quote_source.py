"""Quote source protocol: off-chain swap aggregation API."""
from typing import Protocol

from ..models import SwapQuote


class QuoteSource(Protocol):
    """Abstract interface for fetching executable swap quotes."""

    async def fetch_swap(
        self, from_token: str, to_token: str, amount: int, from_address: str
    ) -> SwapQuote: ...
