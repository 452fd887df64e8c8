"""Liquidation flows: repay a delinquent borrower's debt and seize collateral."""
from __future__ import annotations

import logging

from ..interfaces.lending import Borrowable, Collateral
from ..interfaces.pair import LiquidityPair
from ..interfaces.token import Token
from ..models import LiquidationResult
from .base import RouterBase

logger = logging.getLogger(__name__)


class LiquidationOrchestrator(RouterBase):
    async def _repay_for(
        self, borrowable: str, amount_max: int, borrower: str, seize_to: str
    ) -> tuple[int, int]:
        """Pull the capped repayment from the caller and seize collateral to ``seize_to``."""
        liquidator = self._env.msg_sender
        amount = await self._repay_amount(borrowable, amount_max, borrower)

        usdc: Token = self._at(self.usdc)
        await usdc.transfer_from(liquidator, borrowable, amount)

        pool: Borrowable = self._at(borrowable)
        seize_tokens = await pool.liquidate(borrower, seize_to)

        logger.info(
            "Liquidation: %s repaid %d of %s's debt, seized %d collateral tokens",
            liquidator, amount, borrower, seize_tokens,
        )
        return amount, seize_tokens

    async def liquidate(
        self,
        borrowable: str,
        amount_max: int,
        borrower: str,
        deadline: int,
        recipient: str | None = None,
    ) -> LiquidationResult:
        """Repay up to ``amount_max`` and leave the seized collateral tokens with
        ``recipient`` (the caller by default)."""
        self._check_deadline(deadline)
        recipient = recipient or self._env.msg_sender
        amount, seize_tokens = await self._repay_for(
            borrowable, amount_max, borrower, recipient
        )
        return LiquidationResult(amount=amount, seize_tokens=seize_tokens)

    async def liquidate_to_usdc(
        self,
        borrowable: str,
        amount_max: int,
        borrower: str,
        deadline: int,
        recipient: str | None = None,
    ) -> LiquidationResult:
        """Liquidate, then unwind the seized collateral all the way to USDC for
        ``recipient`` (the caller by default)."""
        self._check_deadline(deadline)
        recipient = recipient or self._env.msg_sender
        amount, seize_tokens = await self._repay_for(
            borrowable, amount_max, borrower, self.address
        )

        pool: Borrowable = self._at(borrowable)
        vault: Collateral = self._at(pool.collateral())
        lp_token_pair = vault.underlying()

        # Liquidity goes straight to the pair, ready to burn
        await vault.redeem(seize_tokens, lp_token_pair, self.address)
        pair: LiquidityPair = self._at(lp_token_pair)
        amount0, amount1 = await pair.burn(self.address)

        usdc_amount = await self._converter.liquidity_to_usdc(
            pair.token0(), pair.token1(), amount0, amount1
        )
        await self._transfer(self.usdc, recipient, usdc_amount)

        logger.info("Liquidation: sent %d USDC to %s", usdc_amount, recipient)
        return LiquidationResult(
            amount=amount, seize_tokens=seize_tokens, usdc_amount=usdc_amount
        )
