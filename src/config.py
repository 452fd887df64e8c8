"""Configuration loader: reads config.yaml, interpolates env vars, validates."""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from .models import Venue

logger = logging.getLogger(__name__)

QUOTE_PROVIDERS = ("oneinch", "paraswap")

# ---------------------------------------------------------------------------
# Frozen config dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RouterConfig:
    factory: str = ""
    native_token: str = ""
    usdc: str = ""
    swap_fee: int = 997
    venues: tuple[Venue, ...] = tuple(Venue)


@dataclass(frozen=True)
class AggregatorConfig:
    endpoints: tuple[str, ...] = ()
    provider: str = "oneinch"
    chain_id: int = 43114
    slippage: float = 0.025
    timeout: int = 30
    from_address: str = ""
    token_decimals: dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class TokenConfig:
    symbol: str = ""
    decimals: int = 18
    native: bool = False
    stable: bool = False


@dataclass(frozen=True)
class PoolConfig:
    venue: Venue = Venue.UNISWAP_V2
    token0: str = ""
    token1: str = ""
    reserve0: float = 0.0
    reserve1: float = 0.0
    swap_fee: int = 997


@dataclass(frozen=True)
class MarketConfig:
    token0: str = ""
    token1: str = ""
    usdc_liquidity: float = 1_000_000.0
    borrow_rate: float = 0.0
    lp_price: float | None = None
    debt_ratio: float = 0.8
    liquidation_incentive: float = 1.05


@dataclass(frozen=True)
class SimulationConfig:
    tokens: tuple[TokenConfig, ...] = ()
    pools: tuple[PoolConfig, ...] = ()
    market: MarketConfig = field(default_factory=MarketConfig)
    borrower_equity: float = 0.0
    deadline_seconds: int = 600

    def token(self, symbol: str) -> TokenConfig:
        for token in self.tokens:
            if token.symbol == symbol:
                return token
        raise KeyError(symbol)

    @property
    def native(self) -> TokenConfig:
        return next(t for t in self.tokens if t.native)

    @property
    def stable(self) -> TokenConfig:
        return next(t for t in self.tokens if t.stable)


@dataclass(frozen=True)
class AppConfig:
    router: RouterConfig = field(default_factory=RouterConfig)
    aggregator: AggregatorConfig = field(default_factory=AggregatorConfig)
    simulation: SimulationConfig = field(default_factory=SimulationConfig)


# ---------------------------------------------------------------------------
# Env interpolation
# ---------------------------------------------------------------------------

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)}")


def _interpolate_env(value: Any) -> Any:
    """Recursively replace ${VAR} references with environment variable values."""
    if isinstance(value, str):
        return _ENV_VAR_RE.sub(lambda m: os.environ.get(m.group(1), ""), value)
    if isinstance(value, dict):
        return {k: _interpolate_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_interpolate_env(item) for item in value]
    return value


# ---------------------------------------------------------------------------
# YAML → dataclass builders
# ---------------------------------------------------------------------------


def _build_venue(name: str, where: str) -> Venue:
    try:
        return Venue(name)
    except ValueError:
        known = ", ".join(v.value for v in Venue)
        raise ValueError(f"{where} references unknown venue '{name}' (known: {known})") from None


def _build_router(raw: dict[str, Any]) -> RouterConfig:
    venues = raw.get("venues")
    return RouterConfig(
        factory=raw.get("factory", ""),
        native_token=raw.get("native_token", ""),
        usdc=raw.get("usdc", ""),
        swap_fee=int(raw.get("swap_fee", 997)),
        venues=(
            tuple(_build_venue(v, "router") for v in venues)
            if venues is not None
            else tuple(Venue)
        ),
    )


def _build_aggregator(raw: dict[str, Any]) -> AggregatorConfig:
    return AggregatorConfig(
        endpoints=tuple(raw.get("endpoints", [])),
        provider=str(raw.get("provider", "oneinch")).lower(),
        chain_id=int(raw.get("chain_id", 43114)),
        slippage=float(raw.get("slippage", 0.025)),
        timeout=int(raw.get("timeout", 30)),
        from_address=raw.get("from_address", ""),
        token_decimals={
            str(token).lower(): int(decimals)
            for token, decimals in (raw.get("token_decimals") or {}).items()
        },
    )


def _build_tokens(raw: list[dict[str, Any]]) -> tuple[TokenConfig, ...]:
    tokens: list[TokenConfig] = []
    for t in raw:
        tokens.append(
            TokenConfig(
                symbol=t.get("symbol", ""),
                decimals=int(t.get("decimals", 18)),
                native=bool(t.get("native", False)),
                stable=bool(t.get("stable", False)),
            )
        )
    return tuple(tokens)


def _build_pools(raw: list[dict[str, Any]]) -> tuple[PoolConfig, ...]:
    pools: list[PoolConfig] = []
    for p in raw:
        pair = f"{p.get('token0', '')}/{p.get('token1', '')}"
        pools.append(
            PoolConfig(
                venue=_build_venue(p.get("venue", Venue.UNISWAP_V2.value), f"Pool {pair}"),
                token0=p.get("token0", ""),
                token1=p.get("token1", ""),
                reserve0=float(p.get("reserve0", 0.0)),
                reserve1=float(p.get("reserve1", 0.0)),
                swap_fee=int(p.get("swap_fee", 997)),
            )
        )
    return tuple(pools)


def _build_market(raw: dict[str, Any]) -> MarketConfig:
    lp_price = raw.get("lp_price")
    return MarketConfig(
        token0=raw.get("token0", ""),
        token1=raw.get("token1", ""),
        usdc_liquidity=float(raw.get("usdc_liquidity", 1_000_000.0)),
        borrow_rate=float(raw.get("borrow_rate", 0.0)),
        lp_price=float(lp_price) if lp_price is not None else None,
        debt_ratio=float(raw.get("debt_ratio", 0.8)),
        liquidation_incentive=float(raw.get("liquidation_incentive", 1.05)),
    )


def _build_simulation(raw: dict[str, Any]) -> SimulationConfig:
    return SimulationConfig(
        tokens=_build_tokens(raw.get("tokens", [])),
        pools=_build_pools(raw.get("pools", [])),
        market=_build_market(raw.get("market", {})),
        borrower_equity=float(raw.get("borrower_equity", 0.0)),
        deadline_seconds=int(raw.get("deadline_seconds", 600)),
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load and validate application configuration from YAML + .env.

    Args:
        config_path: Path to config.yaml. Defaults to ``config.yaml`` in the
            project root (two levels up from this file).
    """
    load_dotenv()

    if config_path is None:
        config_path = Path(__file__).resolve().parent.parent / "config.yaml"
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    raw = _interpolate_env(raw)

    cfg = AppConfig(
        router=_build_router(raw.get("router", {})),
        aggregator=_build_aggregator(raw.get("aggregator", {})),
        simulation=_build_simulation(raw.get("simulation", {})),
    )

    _validate(cfg)
    logger.info("Configuration loaded from %s", config_path)
    return cfg


def _validate_fee(fee: int, where: str) -> None:
    if fee <= 0 or fee > 1000:
        raise ValueError(f"{where} swap_fee must be in (0, 1000], got {fee}")


def _validate(cfg: AppConfig) -> None:
    """Raise on invalid configuration."""
    _validate_fee(cfg.router.swap_fee, "Router")
    if not cfg.router.venues:
        raise ValueError("At least one router venue must be configured")

    if not 0 <= cfg.aggregator.slippage < 1:
        raise ValueError(
            f"Aggregator slippage must be in [0, 1), got {cfg.aggregator.slippage}"
        )
    if cfg.aggregator.provider not in QUOTE_PROVIDERS:
        raise ValueError(
            f"Unknown aggregator provider '{cfg.aggregator.provider}' "
            f"(known: {', '.join(QUOTE_PROVIDERS)})"
        )

    sim = cfg.simulation
    if not sim.tokens:
        return

    symbols = [t.symbol for t in sim.tokens]
    if len(set(symbols)) != len(symbols):
        raise ValueError("Simulation token symbols must be unique")
    if sum(t.native for t in sim.tokens) != 1:
        raise ValueError("Exactly one simulation token must be marked native")
    if sum(t.stable for t in sim.tokens) != 1:
        raise ValueError("Exactly one simulation token must be marked stable")

    for pool in sim.pools:
        name = f"{pool.token0}/{pool.token1}"
        for symbol in (pool.token0, pool.token1):
            if symbol not in symbols:
                raise ValueError(f"Pool '{name}' references unknown token '{symbol}'")
        if pool.token0 == pool.token1:
            raise ValueError(f"Pool '{name}' pairs a token with itself")
        if pool.reserve0 <= 0 or pool.reserve1 <= 0:
            raise ValueError(f"Pool '{name}' must be seeded with positive reserves")
        _validate_fee(pool.swap_fee, f"Pool '{name}'")

    market = sim.market
    pair = {market.token0, market.token1}
    for symbol in pair:
        if symbol not in symbols:
            raise ValueError(f"Market references unknown token '{symbol}'")
    if not any({p.token0, p.token1} == pair for p in sim.pools):
        raise ValueError(
            f"Market pair '{market.token0}/{market.token1}' has no matching pool"
        )
    if market.lp_price is None and sim.stable.symbol not in pair:
        raise ValueError(
            "Market lp_price is required when the pair does not hold the stable token"
        )
