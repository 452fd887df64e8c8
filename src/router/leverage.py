"""Open-position flow: borrow -> convert -> mint liquidity -> deposit collateral."""
from __future__ import annotations

import logging

from ..errors import InsufficientLiquidityMinted
from ..interfaces.lending import Borrowable, Collateral
from ..interfaces.pair import LiquidityPair
from ..models import LeverageCalldata, PermitData
from .base import RouterBase
from .continuation import authenticate

logger = logging.getLogger(__name__)


class LeverageOrchestrator(RouterBase):
    async def leverage(
        self,
        collateral: str,
        borrowable: str,
        usdc_amount: int,
        lp_amount_min: int,
        recipient: str,
        deadline: int,
        permit: PermitData | None = None,
    ) -> None:
        """Borrow ``usdc_amount`` against the caller and deposit the resulting
        liquidity as collateral for ``recipient``.

        The borrow component sends the USDC to the router and re-enters
        through :meth:`altair_borrow`, where the rest of the flow runs.
        """
        self._check_deadline(deadline)
        borrower = self._env.msg_sender

        pool: Borrowable = self._at(borrowable)
        if permit is not None:
            await pool.borrow_permit(
                borrower, self.address, permit.value, permit.deadline, permit.signature
            )

        vault: Collateral = self._at(collateral)
        context = LeverageCalldata(
            lp_token_pair=vault.underlying(),
            collateral=collateral,
            borrowable=borrowable,
            recipient=recipient,
            lp_amount_min=lp_amount_min,
        )

        logger.info(
            "Leverage: %s borrowing %d USDC from %s into %s",
            borrower, usdc_amount, borrowable, context.lp_token_pair,
        )
        await pool.borrow(borrower, self.address, usdc_amount, self._codec.encode(context))

    async def altair_borrow(self, sender: str, borrow_amount: int, data: bytes) -> int:
        """Borrow continuation. Returns the liquidity deposited."""
        context = self._codec.decode(data, LeverageCalldata)
        authenticate(sender, self.address, self._env.msg_sender, context.borrowable)
        return await self._mint_and_deposit(context, borrow_amount)

    async def _mint_and_deposit(self, context: LeverageCalldata, usdc_amount: int) -> int:
        pair: LiquidityPair = self._at(context.lp_token_pair)
        token0, token1 = pair.token0(), pair.token1()

        amount0, amount1 = await self._converter.usdc_to_liquidity(
            context.lp_token_pair, usdc_amount
        )
        await self._transfer(token0, context.lp_token_pair, amount0)
        await self._transfer(token1, context.lp_token_pair, amount1)

        liquidity = await pair.mint(self.address)
        # Sole slippage gate for the open flow
        if liquidity < context.lp_amount_min:
            raise InsufficientLiquidityMinted(liquidity, context.lp_amount_min)

        await self._approve(context.lp_token_pair, context.collateral, liquidity)
        vault: Collateral = self._at(context.collateral)
        await vault.deposit(liquidity, context.recipient)

        logger.info(
            "Leverage: minted %d liquidity and deposited for %s",
            liquidity, context.recipient,
        )
        return liquidity
