"""Integration tests for both liquidation entry points."""
from __future__ import annotations

import pytest

from src.chains.memory import Market, Revert, to_units
from src.errors import Expired
from src.models import LiquidationResult
from src.router.math import MAX_UINT256, WAD


def _deadline(market: Market) -> int:
    return market.chain.timestamp + 600


async def _underwater_market(make_market, sim) -> Market:
    """Borrower with 10k equity levered by 20k, then a 20% collateral price drop."""
    market = await make_market(sim)
    borrower = market.accounts["borrower"]
    await market.chain.transact(
        borrower, market.router.address, "leverage",
        market.collateral.address, market.borrowable.address,
        to_units(20_000, 6), 0, borrower, _deadline(market),
    )
    lp_price = market.collateral.storage.lp_price
    market.collateral.set_risk(lp_price=lp_price * 8 // 10)

    liquidator = market.chain.create_account("liquidator")
    market.accounts["liquidator"] = liquidator
    market.usdc.deal(liquidator, to_units(1_000_000, 6))
    await market.chain.transact(
        liquidator, market.usdc.address, "approve", market.router.address, MAX_UINT256
    )
    return market


async def _liquidate(
    market: Market, amount_max: int, method: str = "liquidate", **kwargs
) -> LiquidationResult:
    return await market.chain.transact(
        market.accounts["liquidator"], market.router.address, method,
        market.borrowable.address, amount_max, market.accounts["borrower"],
        kwargs.pop("deadline", _deadline(market)), **kwargs,
    )


class TestLiquidate:
    @pytest.mark.asyncio
    async def test_repays_min_of_amount_and_debt(self, make_market, native_pair_sim) -> None:
        market = await _underwater_market(make_market, native_pair_sim)
        borrower = market.accounts["borrower"]
        liquidator = market.accounts["liquidator"]
        debt = market.borrowable.get_borrow_balance(borrower)

        result = await _liquidate(market, debt // 4)

        assert result.amount == debt // 4
        assert market.borrowable.get_borrow_balance(borrower) == debt - debt // 4
        assert market.collateral.balance_of(liquidator) == result.seize_tokens
        assert result.usdc_amount == 0
        assert market.router_residue() == {}

    @pytest.mark.asyncio
    async def test_oversized_amount_matches_exact_debt(
        self, make_market, native_pair_sim
    ) -> None:
        exact = await _underwater_market(make_market, native_pair_sim)
        oversized = await _underwater_market(make_market, native_pair_sim)
        debt = exact.borrowable.get_borrow_balance(exact.accounts["borrower"])
        liquidator_usdc = oversized.usdc.balance_of(oversized.accounts["liquidator"])

        exact_result = await _liquidate(exact, debt)
        oversized_result = await _liquidate(oversized, debt * 1_000)

        assert oversized_result == exact_result
        assert oversized_result.amount == debt
        assert oversized.borrowable.get_borrow_balance(oversized.accounts["borrower"]) == 0
        assert (
            liquidator_usdc - oversized.usdc.balance_of(oversized.accounts["liquidator"])
            == debt
        )

    @pytest.mark.asyncio
    async def test_seize_includes_incentive(self, make_market, native_pair_sim) -> None:
        market = await _underwater_market(make_market, native_pair_sim)
        storage = market.collateral.storage
        repay = to_units(1_000, 6)

        result = await _liquidate(market, repay)

        seized_value = result.seize_tokens * storage.lp_price // WAD
        assert seized_value == pytest.approx(repay * 105 // 100, rel=1e-6)

    @pytest.mark.asyncio
    async def test_seized_tokens_go_to_recipient(self, make_market, native_pair_sim) -> None:
        market = await _underwater_market(make_market, native_pair_sim)
        recipient = market.chain.create_account("recipient")

        result = await _liquidate(market, to_units(1_000, 6), recipient=recipient)

        assert market.collateral.balance_of(recipient) == result.seize_tokens
        assert market.collateral.balance_of(market.accounts["liquidator"]) == 0

    @pytest.mark.asyncio
    async def test_healthy_position_is_untouched(self, market: Market) -> None:
        borrower = market.accounts["borrower"]
        await market.chain.transact(
            borrower, market.router.address, "leverage",
            market.collateral.address, market.borrowable.address,
            to_units(5_000, 6), 0, borrower, _deadline(market),
        )
        liquidator = market.chain.create_account("liquidator")
        market.accounts["liquidator"] = liquidator
        market.usdc.deal(liquidator, to_units(10_000, 6))
        await market.chain.transact(
            liquidator, market.usdc.address, "approve", market.router.address, MAX_UINT256
        )
        collateral = market.collateral.balance_of(borrower)

        with pytest.raises(Revert, match="not liquidatable"):
            await _liquidate(market, to_units(1_000, 6))

        assert market.usdc.balance_of(liquidator) == to_units(10_000, 6)
        assert market.collateral.balance_of(borrower) == collateral
        assert market.borrowable.get_borrow_balance(borrower) == to_units(5_000, 6)

    @pytest.mark.asyncio
    async def test_expired_deadline_fails(self, make_market, native_pair_sim) -> None:
        market = await _underwater_market(make_market, native_pair_sim)
        with pytest.raises(Expired):
            await _liquidate(market, 1, deadline=market.chain.timestamp - 1)


class TestLiquidateToUsdc:
    @pytest.mark.asyncio
    async def test_proceeds_paid_in_usdc(self, make_market, native_pair_sim) -> None:
        market = await _underwater_market(make_market, native_pair_sim)
        liquidator = market.accounts["liquidator"]
        before = market.usdc.balance_of(liquidator)
        repay = to_units(5_000, 6)

        result = await _liquidate(market, repay, method="liquidate_to_usdc")

        assert result.amount == repay
        assert result.seize_tokens > 0
        assert result.usdc_amount > 0
        assert market.usdc.balance_of(liquidator) == before - repay + result.usdc_amount
        assert market.collateral.balance_of(liquidator) == 0
        assert market.router_residue() == {}

    @pytest.mark.asyncio
    async def test_proceeds_to_separate_recipient(
        self, make_market, usdc_pair_sim
    ) -> None:
        market = await make_market(usdc_pair_sim)
        borrower = market.accounts["borrower"]
        await market.chain.transact(
            borrower, market.router.address, "leverage",
            market.collateral.address, market.borrowable.address,
            to_units(20_000, 6), 0, borrower, _deadline(market),
        )
        market.collateral.set_risk(lp_price=market.collateral.storage.lp_price * 8 // 10)
        liquidator = market.chain.create_account("liquidator")
        recipient = market.chain.create_account("recipient")
        market.accounts["liquidator"] = liquidator
        market.usdc.deal(liquidator, to_units(2_000, 6))
        await market.chain.transact(
            liquidator, market.usdc.address, "approve", market.router.address, MAX_UINT256
        )

        result = await _liquidate(
            market, to_units(2_000, 6), method="liquidate_to_usdc", recipient=recipient
        )

        assert market.usdc.balance_of(recipient) == result.usdc_amount
        assert market.usdc.balance_of(liquidator) == 0
        assert market.router_residue() == {}
