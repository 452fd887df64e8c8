"""Shared test fixtures and sample markets."""
from __future__ import annotations

import textwrap
from pathlib import Path
from typing import Awaitable, Callable

import pytest
import pytest_asyncio

from src.chains.memory import Market, MemoryChain, deploy_market, fund_position, to_units
from src.config import (
    AggregatorConfig,
    AppConfig,
    MarketConfig,
    PoolConfig,
    RouterConfig,
    SimulationConfig,
    TokenConfig,
)
from src.models import Venue
from src.router.math import MAX_UINT256

GENESIS = 1_700_000_000
ROUTER_SECRET = b"altair-router-test-secret-000001"

MakeMarket = Callable[..., Awaitable[Market]]


# ---------------------------------------------------------------------------
# Simulation configs
# ---------------------------------------------------------------------------

USDC = TokenConfig(symbol="USDC", decimals=6, stable=True)
WETH = TokenConfig(symbol="WETH", decimals=18, native=True)
OP = TokenConfig(symbol="OP", decimals=18)
VELO = TokenConfig(symbol="VELO", decimals=18)

# WETH = 2000 USDC, OP = 1 USDC, VELO = 0.5 USDC
BASE_POOLS = (
    PoolConfig(venue=Venue.UNISWAP_V2, token0="USDC", token1="WETH",
               reserve0=2_000_000, reserve1=1_000),
    PoolConfig(venue=Venue.SUSHISWAP, token0="USDC", token1="WETH",
               reserve0=1_000_000, reserve1=500),
    PoolConfig(venue=Venue.UNISWAP_V2, token0="OP", token1="WETH",
               reserve0=2_000_000, reserve1=1_000),
)


@pytest.fixture()
def native_pair_sim() -> SimulationConfig:
    """Market on OP/WETH: the pool holds the native asset but not USDC."""
    return SimulationConfig(
        tokens=(USDC, WETH, OP),
        pools=BASE_POOLS,
        market=MarketConfig(token0="OP", token1="WETH", lp_price=89.44),
    )


@pytest.fixture()
def usdc_pair_sim() -> SimulationConfig:
    """Market on USDC/WETH: the pool holds USDC."""
    return SimulationConfig(
        tokens=(USDC, WETH, OP),
        pools=BASE_POOLS,
        market=MarketConfig(token0="USDC", token1="WETH"),
    )


@pytest.fixture()
def exotic_pair_sim() -> SimulationConfig:
    """Market on OP/VELO: the pool holds neither USDC nor the native asset."""
    return SimulationConfig(
        tokens=(USDC, WETH, OP, VELO),
        pools=BASE_POOLS + (
            PoolConfig(venue=Venue.UNISWAP_V2, token0="VELO", token1="WETH",
                       reserve0=4_000_000, reserve1=1_000),
            PoolConfig(venue=Venue.TRADER_JOE, token0="OP", token1="VELO",
                       reserve0=1_000_000, reserve1=2_000_000),
        ),
        market=MarketConfig(token0="OP", token1="VELO", lp_price=1.41),
    )


@pytest.fixture()
def native_stable_sim() -> SimulationConfig:
    """Market whose stable asset is the wrapped native token itself."""
    return SimulationConfig(
        tokens=(TokenConfig(symbol="WETH", decimals=18, native=True, stable=True), OP),
        pools=(
            PoolConfig(venue=Venue.UNISWAP_V2, token0="OP", token1="WETH",
                       reserve0=2_000_000, reserve1=1_000),
        ),
        market=MarketConfig(token0="OP", token1="WETH", usdc_liquidity=500),
    )


@pytest.fixture()
def zero_fee_sim() -> SimulationConfig:
    return SimulationConfig(
        tokens=(USDC, WETH),
        pools=(
            PoolConfig(venue=Venue.UNISWAP_V2, token0="USDC", token1="WETH",
                       reserve0=2_000_000, reserve1=1_000, swap_fee=1000),
        ),
        market=MarketConfig(token0="USDC", token1="WETH"),
    )


# ---------------------------------------------------------------------------
# Deployed markets
# ---------------------------------------------------------------------------


@pytest.fixture()
def router_secret() -> bytes:
    return ROUTER_SECRET


@pytest.fixture()
def make_market() -> MakeMarket:
    """Factory deploying a market plus a funded borrower (``accounts["borrower"]``)."""

    async def _make(
        sim: SimulationConfig,
        swap_fee: int = 997,
        equity: float = 10_000,
        approve: bool = True,
    ) -> Market:
        market = await deploy_market(
            sim,
            RouterConfig(swap_fee=swap_fee),
            MemoryChain(timestamp=GENESIS),
            secret=ROUTER_SECRET,
        )
        chain = market.chain
        borrower = chain.create_account("borrower")
        market.accounts["borrower"] = borrower

        if equity:
            await fund_position(market, borrower, to_units(equity, market.usdc.decimals))
        if approve:
            await chain.transact(
                borrower, market.borrowable.address, "borrow_approve",
                market.router.address, MAX_UINT256,
            )
            await chain.transact(
                borrower, market.collateral.address, "approve",
                market.router.address, MAX_UINT256,
            )
        return market

    return _make


@pytest_asyncio.fixture()
async def market(make_market: MakeMarket, native_pair_sim: SimulationConfig) -> Market:
    return await make_market(native_pair_sim)


@pytest_asyncio.fixture()
async def usdc_market(make_market: MakeMarket, usdc_pair_sim: SimulationConfig) -> Market:
    return await make_market(usdc_pair_sim)


# ---------------------------------------------------------------------------
# App config
# ---------------------------------------------------------------------------


@pytest.fixture()
def sample_app_config(native_pair_sim: SimulationConfig) -> AppConfig:
    return AppConfig(
        router=RouterConfig(
            factory="0xFACTORY",
            native_token="0xWETH",
            usdc="0xUSDC",
        ),
        aggregator=AggregatorConfig(
            endpoints=("https://agg1.example.com", "https://agg2.example.com"),
            chain_id=10,
            timeout=5,
            from_address="0xROUTER",
        ),
        simulation=SimulationConfig(
            tokens=native_pair_sim.tokens,
            pools=native_pair_sim.pools,
            market=native_pair_sim.market,
            borrower_equity=10_000,
        ),
    )


# ---------------------------------------------------------------------------
# Config YAML fixture
# ---------------------------------------------------------------------------

SAMPLE_YAML = textwrap.dedent("""\
    router:
      factory: "0xFACTORY"
      native_token: "0xWETH"
      usdc: "0xUSDC"
      swap_fee: 998
      venues: [uniswap_v2, sushiswap]
    aggregator:
      endpoints: ["https://agg.example.com/v5.0"]
      chain_id: 10
      slippage: 0.01
      timeout: 10
      from_address: "0xROUTER"
    simulation:
      deadline_seconds: 300
      borrower_equity: 10000
      tokens:
        - {symbol: USDC, decimals: 6, stable: true}
        - {symbol: WETH, decimals: 18, native: true}
        - {symbol: OP, decimals: 18}
      pools:
        - {venue: uniswap_v2, token0: USDC, token1: WETH, reserve0: 2000000, reserve1: 1000}
        - {venue: uniswap_v2, token0: OP, token1: WETH, reserve0: 2000000, reserve1: 1000}
      market:
        token0: OP
        token1: WETH
        usdc_liquidity: 1000000
        borrow_rate: 0.05
        lp_price: 89.44
""")


@pytest.fixture()
def sample_yaml_path(tmp_path: Path) -> Path:
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text(SAMPLE_YAML)
    return cfg_file
