"""Protocol interfaces for the components the router talks to."""
from .environment import ExecutionEnvironment
from .lending import Borrowable, Collateral
from .pair import LiquidityPair
from .quote_source import QuoteSource
from .routing import RoutingService, VenueExecutor
from .token import Token, WrappedNative

__all__ = [
    "Borrowable",
    "Collateral",
    "ExecutionEnvironment",
    "LiquidityPair",
    "QuoteSource",
    "RoutingService",
    "Token",
    "VenueExecutor",
    "WrappedNative",
]
