"""Integration tests for the open-position flow on an in-process market."""
from __future__ import annotations

import pytest

from src.chains.memory import Market, Revert, to_units
from src.errors import Expired, InsufficientLiquidityMinted
from src.models import PermitData


def _deadline(market: Market, seconds: int = 600) -> int:
    return market.chain.timestamp + seconds


async def _leverage(
    market: Market,
    amount: float,
    lp_amount_min: int = 0,
    recipient: str | None = None,
    deadline: int | None = None,
    permit: PermitData | None = None,
) -> None:
    borrower = market.accounts["borrower"]
    await market.chain.transact(
        borrower, market.router.address, "leverage",
        market.collateral.address,
        market.borrowable.address,
        to_units(amount, market.usdc.decimals),
        lp_amount_min,
        recipient or borrower,
        _deadline(market) if deadline is None else deadline,
        permit=permit,
    )


class TestLeverage:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "sim_fixture", ["native_pair_sim", "usdc_pair_sim", "exotic_pair_sim"]
    )
    async def test_opens_position_without_residue(
        self, make_market, sim_fixture: str, request: pytest.FixtureRequest
    ) -> None:
        market = await make_market(request.getfixturevalue(sim_fixture))
        borrower = market.accounts["borrower"]
        collateral_before = market.collateral.balance_of(borrower)

        await _leverage(market, 5_000)

        assert market.router_residue() == {}
        assert market.collateral.balance_of(borrower) > collateral_before
        assert market.borrowable.get_borrow_balance(borrower) == to_units(5_000, 6)

    @pytest.mark.asyncio
    async def test_minted_liquidity_meets_minimum(self, market: Market) -> None:
        borrower = market.accounts["borrower"]
        before = market.collateral.balance_of(borrower)
        # OP/WETH LP trades around 89.44 USDC, so 20k USDC buys well over 200 LP
        minimum = 200 * 10**18

        await _leverage(market, 20_000, lp_amount_min=minimum)

        assert market.collateral.balance_of(borrower) - before >= minimum

    @pytest.mark.asyncio
    async def test_minimum_not_met_reverts_everything(self, market: Market) -> None:
        borrower = market.accounts["borrower"]
        reserves = [p.get_reserves()[:2] for p in market.pools]
        cash = market.usdc.balance_of(market.borrowable.address)
        collateral = market.collateral.balance_of(borrower)

        with pytest.raises(InsufficientLiquidityMinted) as exc_info:
            await _leverage(market, 20_000, lp_amount_min=10**30)

        assert exc_info.value.minimum == 10**30
        assert market.borrowable.get_borrow_balance(borrower) == 0
        assert market.usdc.balance_of(market.borrowable.address) == cash
        assert market.collateral.balance_of(borrower) == collateral
        assert [p.get_reserves()[:2] for p in market.pools] == reserves
        assert market.router_residue() == {}

    @pytest.mark.asyncio
    async def test_no_equity_is_undercollateralized(self, make_market, native_pair_sim) -> None:
        market = await make_market(native_pair_sim, equity=0)
        borrower = market.accounts["borrower"]

        with pytest.raises(Revert, match="Insufficient liquidity"):
            await _leverage(market, 1_000)

        assert market.borrowable.get_borrow_balance(borrower) == 0
        assert market.collateral.balance_of(borrower) == 0
        assert market.router_residue() == {}

    @pytest.mark.asyncio
    async def test_borrow_beyond_debt_ratio_reverts(self, market: Market) -> None:
        # 10k equity at a 0.8 debt ratio carries at most about 40k of debt
        with pytest.raises(Revert, match="Insufficient liquidity"):
            await _leverage(market, 60_000)
        assert market.borrowable.get_borrow_balance(market.accounts["borrower"]) == 0

    @pytest.mark.asyncio
    async def test_expired_deadline_fails(self, market: Market) -> None:
        with pytest.raises(Expired) as exc_info:
            await _leverage(market, 1_000, deadline=market.chain.timestamp - 1)
        assert exc_info.value.timestamp == market.chain.timestamp

    @pytest.mark.asyncio
    async def test_deadline_equal_to_now_is_accepted(self, market: Market) -> None:
        await _leverage(market, 1_000, deadline=market.chain.timestamp)
        assert market.borrowable.get_borrow_balance(market.accounts["borrower"]) > 0

    @pytest.mark.asyncio
    async def test_recipient_receives_collateral(self, market: Market) -> None:
        borrower = market.accounts["borrower"]
        recipient = market.chain.create_account("recipient")

        await _leverage(market, 2_000, recipient=recipient)

        assert market.collateral.balance_of(recipient) > 0
        assert market.borrowable.get_borrow_balance(borrower) == to_units(2_000, 6)
        assert market.borrowable.get_borrow_balance(recipient) == 0


class TestLeveragePermit:
    @pytest.mark.asyncio
    async def test_without_borrow_allowance_fails(self, make_market, native_pair_sim) -> None:
        market = await make_market(native_pair_sim, approve=False)
        with pytest.raises(Revert, match="borrow allowance"):
            await _leverage(market, 1_000)

    @pytest.mark.asyncio
    async def test_signed_permit_grants_allowance(self, make_market, native_pair_sim) -> None:
        market = await make_market(native_pair_sim, approve=False)
        borrower = market.accounts["borrower"]
        router = market.router.address
        value, deadline = to_units(1_000, 6), _deadline(market)
        message = market.borrowable.borrow_permit_message(borrower, router, value, deadline)
        permit = PermitData(value, deadline, market.chain.sign(borrower, message))

        await _leverage(market, 1_000, permit=permit)

        assert market.borrowable.get_borrow_balance(borrower) == value
        assert market.borrowable.borrow_allowance(borrower, router) == 0

    @pytest.mark.asyncio
    async def test_forged_permit_fails(self, make_market, native_pair_sim) -> None:
        market = await make_market(native_pair_sim, approve=False)
        permit = PermitData(to_units(1_000, 6), _deadline(market), "00" * 32)
        with pytest.raises(Revert, match="Invalid borrow permit"):
            await _leverage(market, 1_000, permit=permit)
        assert market.borrowable.get_borrow_balance(market.accounts["borrower"]) == 0
