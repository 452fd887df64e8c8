"""In-process execution environment and lending-market components."""
from .chain import CallProxy, MemoryChain, Revert
from .contract import Contract
from .lending import MemoryBorrowable, MemoryCollateral
from .market import Market, deploy_market, fund_position, to_units
from .pair import MemoryPair
from .token import MemoryToken, MemoryWrappedNative
from .venue import MemoryRouteFinder, MemoryVenueRouter

__all__ = [
    "CallProxy",
    "Contract",
    "Market",
    "MemoryBorrowable",
    "MemoryChain",
    "MemoryCollateral",
    "MemoryPair",
    "MemoryRouteFinder",
    "MemoryToken",
    "MemoryVenueRouter",
    "MemoryWrappedNative",
    "Revert",
    "deploy_market",
    "fund_position",
    "to_units",
]
