"""Deploy a complete lending market and router onto a MemoryChain from config."""
from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass, field
from decimal import Decimal

from ...config import RouterConfig, SimulationConfig
from ...router import AltairRouter
from ...router.math import WAD, MAX_UINT256
from .chain import MemoryChain
from .lending import MemoryBorrowable, MemoryCollateral
from .pair import MemoryPair
from .token import MemoryToken, MemoryWrappedNative
from .venue import MemoryRouteFinder, MemoryVenueRouter

logger = logging.getLogger(__name__)

SECONDS_PER_YEAR = 365 * 24 * 3600


def to_units(amount: float, decimals: int) -> int:
    """Convert a human-readable amount into integer token units."""
    return int(Decimal(str(amount)) * 10**decimals)


@dataclass
class Market:
    chain: MemoryChain
    tokens: dict[str, MemoryToken]
    route_finder: MemoryRouteFinder
    venues: dict[str, MemoryVenueRouter]
    pools: list[MemoryPair]
    pair: MemoryPair
    collateral: MemoryCollateral
    borrowable: MemoryBorrowable
    router: AltairRouter
    usdc: MemoryToken
    native: MemoryWrappedNative
    provider: str
    lender: str
    accounts: dict[str, str] = field(default_factory=dict)

    def token_by_address(self, address: str) -> MemoryToken:
        for token in self.tokens.values():
            if token.address == address:
                return token
        raise KeyError(address)

    def router_residue(self) -> dict[str, int]:
        """Non-zero balances the router still holds, by token symbol."""
        router = self.router.address
        holdings = [*self.tokens.values(), *self.pools, self.collateral, self.borrowable]
        residue = {t.symbol: t.balance_of(router) for t in holdings}
        residue["native"] = self.chain.native_balance_of(router)
        return {symbol: amount for symbol, amount in residue.items() if amount}


async def _seed_pool(
    chain: MemoryChain,
    pair: MemoryPair,
    provider: str,
    token0: MemoryToken,
    token1: MemoryToken,
    amount0: int,
    amount1: int,
) -> int:
    token0.deal(pair.address, amount0)
    token1.deal(pair.address, amount1)
    return await chain.transact(provider, pair.address, "mint", provider)


async def deploy_market(
    sim: SimulationConfig,
    router_config: RouterConfig | None = None,
    chain: MemoryChain | None = None,
    secret: bytes | None = None,
) -> Market:
    """Build tokens, seeded venue pools, the lending market and the router.

    The router's token addresses come from the deployed tokens; its venue
    allow-list and fee come from ``router_config``.
    """
    chain = chain or MemoryChain()
    router_config = router_config or RouterConfig()

    tokens: dict[str, MemoryToken] = {}
    for t in sim.tokens:
        cls = MemoryWrappedNative if t.native else MemoryToken
        tokens[t.symbol] = cls(chain, t.symbol, decimals=t.decimals)
    usdc = tokens[sim.stable.symbol]
    native = tokens[sim.native.symbol]

    provider = chain.create_account("liquidity-provider")
    route_finder = MemoryRouteFinder(chain)
    venues: dict[str, MemoryVenueRouter] = {}
    pools: list[MemoryPair] = []

    for p in sim.pools:
        venue = venues.get(p.venue.value)
        if venue is None:
            venue = MemoryVenueRouter(chain, p.venue)
            route_finder.add_venue(venue)
            venues[p.venue.value] = venue

        token0, token1 = tokens[p.token0], tokens[p.token1]
        pair = MemoryPair(
            chain, token0.address, token1.address, p.swap_fee,
            symbol=f"{p.venue.value}:{p.token0}-{p.token1}",
        )
        await _seed_pool(
            chain, pair, provider, token0, token1,
            to_units(p.reserve0, token0.decimals), to_units(p.reserve1, token1.decimals),
        )
        venue.add_pair(pair)
        pools.append(pair)

    market_cfg = sim.market
    market_tokens = {tokens[market_cfg.token0].address, tokens[market_cfg.token1].address}
    pair = next(p for p in pools if {p.token0(), p.token1()} == market_tokens)

    collateral = MemoryCollateral(chain, pair.address)
    borrow_rate = int(Decimal(str(market_cfg.borrow_rate)) * WAD / SECONDS_PER_YEAR)
    borrowable = MemoryBorrowable(chain, usdc.address, collateral.address, borrow_rate)
    collateral.set_borrowable(borrowable.address)
    collateral.set_risk(
        lp_price=_lp_price(sim, pair, usdc),
        debt_ratio=int(Decimal(str(market_cfg.debt_ratio)) * WAD),
        liquidation_incentive=int(Decimal(str(market_cfg.liquidation_incentive)) * WAD),
    )

    lender = chain.create_account("lender")
    liquidity = to_units(market_cfg.usdc_liquidity, usdc.decimals)
    usdc.deal(lender, liquidity)
    await chain.transact(lender, usdc.address, "approve", borrowable.address, MAX_UINT256)
    await chain.transact(lender, borrowable.address, "deposit", liquidity, lender)

    config = dataclasses.replace(
        router_config,
        factory=router_config.factory or chain.create_account("factory"),
        native_token=native.address,
        usdc=usdc.address,
    )
    router = AltairRouter(chain, config, route_finder.address, secret=secret)

    logger.info(
        "Deployed market %s with %d pools across %d venues",
        pair.symbol, len(pools), len(venues),
    )
    return Market(
        chain=chain,
        tokens=tokens,
        route_finder=route_finder,
        venues=venues,
        pools=pools,
        pair=pair,
        collateral=collateral,
        borrowable=borrowable,
        router=router,
        usdc=usdc,
        native=native,
        provider=provider,
        lender=lender,
    )


def _lp_price(sim: SimulationConfig, pair: MemoryPair, usdc: MemoryToken) -> int:
    """USDC units per LP unit, WAD-scaled."""
    if sim.market.lp_price is not None:
        per_token = to_units(sim.market.lp_price, usdc.decimals)
        return per_token * WAD // 10**pair.decimals
    reserve0, reserve1, _ = pair.get_reserves()
    reserve_usdc = reserve0 if pair.token0() == usdc.address else reserve1
    return 2 * reserve_usdc * WAD // pair.total_supply()


async def fund_position(market: Market, borrower: str, equity: int) -> int:
    """Give ``borrower`` a collateral position worth ``equity`` USDC units.

    Mints liquidity from pool-proportional token amounts and deposits it.
    Returns the collateral tokens received.
    """
    chain, pair, collateral = market.chain, market.pair, market.collateral
    lp_amount = equity * WAD // collateral.storage.lp_price
    reserve0, reserve1, _ = pair.get_reserves()
    supply = pair.total_supply()

    market.token_by_address(pair.token0()).deal(pair.address, lp_amount * reserve0 // supply)
    market.token_by_address(pair.token1()).deal(pair.address, lp_amount * reserve1 // supply)
    minted = await chain.transact(borrower, pair.address, "mint", borrower)

    await chain.transact(borrower, pair.address, "approve", collateral.address, minted)
    return await chain.transact(borrower, collateral.address, "deposit", minted, borrower)
