"""Run router flows against an in-process market built from config."""
from __future__ import annotations

import logging

from ..chains.memory import Market, deploy_market, fund_position, to_units
from ..config import AppConfig
from ..models import ScenarioReport
from ..router.math import MAX_UINT256, WAD

logger = logging.getLogger(__name__)


class Simulator:
    """Opens, closes and liquidates one borrower's leveraged position."""

    def __init__(self, config: AppConfig, secret: bytes | None = None) -> None:
        if not config.simulation.tokens:
            raise ValueError("Simulation requires a 'simulation' config section")
        self._config = config
        self._secret = secret
        self._market: Market | None = None
        self.borrower = ""

    @property
    def market(self) -> Market:
        if self._market is None:
            raise RuntimeError("Simulator not set up; call setup() first")
        return self._market

    async def setup(self) -> Market:
        """Deploy the market, fund the borrower's equity and grant the router's allowances."""
        if self._market is not None:
            return self._market

        sim = self._config.simulation
        market = await deploy_market(sim, self._config.router, secret=self._secret)
        chain, router = market.chain, market.router

        self.borrower = chain.create_account("borrower")
        equity = to_units(sim.borrower_equity, market.usdc.decimals)
        if equity > 0:
            await fund_position(market, self.borrower, equity)

        await chain.transact(
            self.borrower, market.borrowable.address, "borrow_approve",
            router.address, MAX_UINT256,
        )
        await chain.transact(
            self.borrower, market.collateral.address, "approve",
            router.address, MAX_UINT256,
        )

        self._market = market
        return market

    def _deadline(self) -> int:
        return self.market.chain.timestamp + self._config.simulation.deadline_seconds

    def report(self, action: str, detail: str = "") -> ScenarioReport:
        m = self.market
        report = ScenarioReport(
            action=action,
            borrower=self.borrower,
            collateral_tokens=m.collateral.balance_of(self.borrower),
            debt=m.borrowable.get_borrow_balance(self.borrower),
            usdc_balance=m.usdc.balance_of(self.borrower),
            router_residue=m.router_residue(),
            detail=detail,
        )
        logger.info(
            "%s: collateral=%d debt=%d usdc=%d residue=%s %s",
            action, report.collateral_tokens, report.debt, report.usdc_balance,
            report.router_residue or "none", detail,
        )
        return report

    async def open_position(self, amount: float, lp_amount_min: int = 0) -> ScenarioReport:
        """Leverage the borrower by ``amount`` USDC."""
        m = await self.setup()
        units = to_units(amount, m.usdc.decimals)
        before = m.collateral.balance_of(self.borrower)

        await m.chain.transact(
            self.borrower, m.router.address, "leverage",
            m.collateral.address, m.borrowable.address, units, lp_amount_min,
            self.borrower, self._deadline(),
        )
        gained = m.collateral.balance_of(self.borrower) - before
        return self.report("open", f"borrowed {units}, collateral +{gained}")

    async def close_position(self, fraction: float = 1.0) -> ScenarioReport:
        """Deleverage ``fraction`` of the borrower's collateral tokens."""
        if not 0 < fraction <= 1:
            raise ValueError(f"fraction must be in (0, 1], got {fraction}")
        m = await self.setup()
        balance = m.collateral.balance_of(self.borrower)
        redeem_tokens = balance * to_units(fraction, 18) // WAD
        debt_before = m.borrowable.get_borrow_balance(self.borrower)
        usdc_before = m.usdc.balance_of(self.borrower)

        await m.chain.transact(
            self.borrower, m.router.address, "deleverage",
            m.collateral.address, m.borrowable.address, redeem_tokens, self._deadline(),
        )
        repaid = debt_before - m.borrowable.get_borrow_balance(self.borrower)
        refunded = m.usdc.balance_of(self.borrower) - usdc_before
        return self.report("close", f"redeemed {redeem_tokens}, repaid {repaid}, refunded {refunded}")

    async def liquidate(self, price_drop: float) -> ScenarioReport:
        """Drop the collateral price by ``price_drop`` and liquidate the borrower to USDC."""
        if not 0 <= price_drop < 1:
            raise ValueError(f"price_drop must be in [0, 1), got {price_drop}")
        m = await self.setup()
        chain, router = m.chain, m.router

        lp_price = m.collateral.storage.lp_price
        m.collateral.set_risk(lp_price=lp_price - lp_price * int(price_drop * WAD) // WAD)

        liquidator = chain.create_account("liquidator")
        debt = m.borrowable.get_borrow_balance(self.borrower)
        m.usdc.deal(liquidator, debt)
        await chain.transact(liquidator, m.usdc.address, "approve", router.address, MAX_UINT256)

        result = await chain.transact(
            liquidator, router.address, "liquidate_to_usdc",
            m.borrowable.address, debt, self.borrower, self._deadline(),
        )
        return self.report(
            "liquidate",
            f"repaid {result.amount}, seized {result.seize_tokens}, "
            f"liquidator received {result.usdc_amount}",
        )
