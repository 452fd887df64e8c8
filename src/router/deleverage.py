"""Close-position flow: flash redeem -> burn liquidity -> convert -> repay -> refund."""
from __future__ import annotations

import logging

from ..errors import InsufficientUsdcReceived, InvalidRedeemAmount
from ..interfaces.lending import Collateral
from ..interfaces.pair import LiquidityPair
from ..models import DeleverageCalldata, PermitData
from .base import RouterBase
from .continuation import authenticate
from .math import mul_wad

logger = logging.getLogger(__name__)


class DeleverageOrchestrator(RouterBase):
    async def deleverage(
        self,
        collateral: str,
        borrowable: str,
        redeem_tokens: int,
        deadline: int,
        usdc_amount_min: int = 0,
        permit: PermitData | None = None,
    ) -> None:
        """Redeem ``redeem_tokens`` of the caller's collateral and repay debt with it.

        The collateral component sends the underlying liquidity to the router
        and re-enters through :meth:`altair_redeem`.
        """
        if redeem_tokens <= 0:
            raise InvalidRedeemAmount(redeem_tokens)
        self._check_deadline(deadline)
        borrower = self._env.msg_sender

        vault: Collateral = self._at(collateral)
        redeem_amount = mul_wad(redeem_tokens, vault.exchange_rate())

        if permit is not None:
            await vault.permit(
                borrower, self.address, permit.value, permit.deadline, permit.signature
            )

        context = DeleverageCalldata(
            lp_token_pair=vault.underlying(),
            collateral=collateral,
            borrowable=borrowable,
            recipient=borrower,
            redeem_tokens=redeem_tokens,
            usdc_amount_min=usdc_amount_min,
        )

        logger.info(
            "Deleverage: %s redeeming %d collateral tokens (%d liquidity) from %s",
            borrower, redeem_tokens, redeem_amount, collateral,
        )
        await vault.flash_redeem_altair(
            self.address, redeem_amount, self._codec.encode(context)
        )

    async def altair_redeem(
        self, sender: str, redeem_amount: int, token0: str, token1: str, data: bytes
    ) -> int:
        """Redeem continuation. Returns the USDC amount obtained."""
        context = self._codec.decode(data, DeleverageCalldata)
        authenticate(sender, self.address, self._env.msg_sender, context.collateral)
        return await self._remove_and_repay(context, redeem_amount, token0, token1)

    async def _remove_and_repay(
        self, context: DeleverageCalldata, redeem_amount: int, token0: str, token1: str
    ) -> int:
        await self._transfer(context.lp_token_pair, context.lp_token_pair, redeem_amount)
        pair: LiquidityPair = self._at(context.lp_token_pair)
        amount0, amount1 = await pair.burn(self.address)

        amount_usdc = await self._converter.liquidity_to_usdc(
            token0, token1, amount0, amount1
        )
        if amount_usdc < context.usdc_amount_min:
            raise InsufficientUsdcReceived(amount_usdc, context.usdc_amount_min)

        await self._repay_and_refund(
            context.borrowable, self.usdc, context.recipient, amount_usdc
        )

        # Collateral burns whatever receipt tokens it holds once we return
        vault: Collateral = self._at(context.collateral)
        await vault.transfer_from(
            context.recipient, context.collateral, context.redeem_tokens
        )
        return amount_usdc
