"""Data models: all frozen (immutable)."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Venue(str, Enum):
    """Closed set of swap venues the router is allowed to route through."""

    UNISWAP_V2 = "uniswap_v2"
    SUSHISWAP = "sushiswap"
    TRADER_JOE = "trader_joe"
    PANGOLIN = "pangolin"


# ---------------------------------------------------------------------------
# Position Context: serialized into continuation payloads
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LeverageCalldata:
    """Context carried through the borrow continuation when opening a position."""

    KIND = "leverage"

    lp_token_pair: str
    collateral: str
    borrowable: str
    recipient: str
    lp_amount_min: int


@dataclass(frozen=True)
class DeleverageCalldata:
    """Context carried through the redeem continuation when closing a position."""

    KIND = "deleverage"

    lp_token_pair: str
    collateral: str
    borrowable: str
    recipient: str
    redeem_tokens: int
    usdc_amount_min: int = 0


# ---------------------------------------------------------------------------
# Routing
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RouteQuote:
    """Best single-venue route reported by the routing service."""

    venue: Venue
    executor: str
    path: tuple[str, ...]
    amount_in: int
    amount_out: int


@dataclass(frozen=True)
class SwapLeg:
    """One swap an off-chain caller has to quote before submitting a flow."""

    from_token: str
    to_token: str
    amount: int


@dataclass(frozen=True)
class SwapQuote:
    """Aggregator response for a single swap leg."""

    from_token: str
    to_token: str
    amount_in: int
    amount_out: int
    calldata: str = "0x"


# ---------------------------------------------------------------------------
# Entry point inputs / outputs
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PermitData:
    """Signed allowance authorization consumed before a flow starts."""

    value: int
    deadline: int
    signature: str


@dataclass(frozen=True)
class LiquidationResult:
    amount: int
    seize_tokens: int
    usdc_amount: int = 0


@dataclass(frozen=True)
class ScenarioReport:
    """Borrower and router state after one simulated flow."""

    action: str
    borrower: str
    collateral_tokens: int
    debt: int
    usdc_balance: int
    router_residue: dict[str, int]
    detail: str = ""
