"""Off-chain swap planning against an HTTP aggregation API."""
from ..config import AggregatorConfig
from ..interfaces.quote_source import QuoteSource
from .client import SWAP_SELECTOR, AggregatorClient, FallbackHttpClient
from .paraswap import ParaswapClient
from .planner import entry_token, plan_deleverage_swaps, plan_leverage_swaps, plan_split_leg

PROVIDERS: dict[str, type[AggregatorClient] | type[ParaswapClient]] = {
    "oneinch": AggregatorClient,
    "paraswap": ParaswapClient,
}


def make_quote_source(config: AggregatorConfig) -> QuoteSource:
    """Build the quote source named by ``config.provider``."""
    try:
        cls = PROVIDERS[config.provider]
    except KeyError:
        raise ValueError(f"Unknown aggregator provider '{config.provider}'") from None
    return cls(config)


__all__ = [
    "PROVIDERS",
    "SWAP_SELECTOR",
    "AggregatorClient",
    "FallbackHttpClient",
    "ParaswapClient",
    "entry_token",
    "make_quote_source",
    "plan_deleverage_swaps",
    "plan_leverage_swaps",
    "plan_split_leg",
]
