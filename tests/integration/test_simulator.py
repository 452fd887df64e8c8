"""Integration tests for the config-driven scenario simulator."""
from __future__ import annotations

import dataclasses

import pytest

from src.chains.memory import Revert, to_units
from src.config import AppConfig, SimulationConfig
from src.services import Simulator


@pytest.fixture()
def simulator(sample_app_config: AppConfig, router_secret: bytes) -> Simulator:
    return Simulator(sample_app_config, secret=router_secret)


class TestSimulator:
    def test_requires_simulation_section(self, sample_app_config: AppConfig) -> None:
        config = dataclasses.replace(sample_app_config, simulation=SimulationConfig())
        with pytest.raises(ValueError, match="simulation"):
            Simulator(config)

    def test_market_before_setup_raises(self, simulator: Simulator) -> None:
        with pytest.raises(RuntimeError, match="not set up"):
            _ = simulator.market

    @pytest.mark.asyncio
    async def test_setup_is_idempotent(self, simulator: Simulator) -> None:
        first = await simulator.setup()
        second = await simulator.setup()
        assert first is second
        assert first.collateral.balance_of(simulator.borrower) > 0

    @pytest.mark.asyncio
    async def test_open_position(self, simulator: Simulator) -> None:
        report = await simulator.open_position(20_000)

        assert report.action == "open"
        assert report.debt == to_units(20_000, 6)
        assert report.router_residue == {}
        assert "borrowed" in report.detail

    @pytest.mark.asyncio
    async def test_open_then_close(self, simulator: Simulator) -> None:
        await simulator.open_position(20_000)

        report = await simulator.close_position()

        assert report.debt == 0
        assert report.collateral_tokens == 0
        assert report.usdc_balance > 0
        assert report.router_residue == {}

    @pytest.mark.asyncio
    async def test_partial_close(self, simulator: Simulator) -> None:
        opened = await simulator.open_position(20_000)

        report = await simulator.close_position(0.25)

        assert 0 < report.debt < opened.debt
        assert report.collateral_tokens == opened.collateral_tokens - opened.collateral_tokens // 4

    @pytest.mark.asyncio
    async def test_full_close_redeems_exact_balance(self, simulator: Simulator) -> None:
        """An 18-decimal balance survives fraction=1.0 without float rounding."""
        opened = await simulator.open_position(20_000)
        assert opened.collateral_tokens > 2**53

        report = await simulator.close_position(1.0)

        assert f"redeemed {opened.collateral_tokens}," in report.detail
        assert report.collateral_tokens == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize("fraction", [0, -0.5, 1.5])
    async def test_close_rejects_bad_fraction(
        self, simulator: Simulator, fraction: float
    ) -> None:
        with pytest.raises(ValueError, match="fraction"):
            await simulator.close_position(fraction)

    @pytest.mark.asyncio
    async def test_liquidate_after_price_drop(self, simulator: Simulator) -> None:
        opened = await simulator.open_position(20_000)

        report = await simulator.liquidate(0.2)

        assert report.action == "liquidate"
        assert report.debt == 0
        assert 0 < report.collateral_tokens < opened.collateral_tokens
        assert report.router_residue == {}

    @pytest.mark.asyncio
    async def test_liquidate_healthy_position_reverts(self, simulator: Simulator) -> None:
        await simulator.open_position(5_000)
        with pytest.raises(Revert, match="not liquidatable"):
            await simulator.liquidate(0)

    @pytest.mark.asyncio
    async def test_liquidate_rejects_bad_drop(self, simulator: Simulator) -> None:
        with pytest.raises(ValueError, match="price_drop"):
            await simulator.liquidate(1.0)
