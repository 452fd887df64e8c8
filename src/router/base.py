"""Shared plumbing for the router's orchestrators."""
from __future__ import annotations

import logging
from typing import Any

from ..config import RouterConfig
from ..errors import Expired
from ..interfaces.environment import ExecutionEnvironment
from ..interfaces.lending import Borrowable
from ..interfaces.token import Token, WrappedNative
from .allowance import approve_token
from .continuation import ContinuationCodec
from .converter import ValueConverter
from .math import ZERO_ADDRESS

logger = logging.getLogger(__name__)


class RouterBase:
    """State and helpers shared by the leverage, deleverage and liquidation flows.

    The router never holds a durable balance: everything it receives during a
    flow is forwarded before the flow returns.
    """

    address: str

    def __init__(
        self,
        env: ExecutionEnvironment,
        config: RouterConfig,
        codec: ContinuationCodec,
        converter: ValueConverter,
    ) -> None:
        self._env = env
        self._config = config
        self._codec = codec
        self._converter = converter

    # ------------------------------------------------------------------
    # Fixed configuration
    # ------------------------------------------------------------------

    @property
    def factory(self) -> str:
        return self._config.factory

    @property
    def native_token(self) -> str:
        return self._config.native_token

    @property
    def usdc(self) -> str:
        return self._config.usdc

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _at(self, address: str) -> Any:
        """Call handle on ``address`` with the router as call origin."""
        return self._env.at(address, self.address)

    def _check_deadline(self, deadline: int) -> None:
        now = self._env.timestamp
        if now > deadline:
            raise Expired(deadline, now)

    def _balance_of(self, token: str) -> int:
        erc20: Token = self._at(token)
        return erc20.balance_of(self.address)

    async def _transfer(self, token: str, to: str, amount: int) -> None:
        if amount == 0:
            return
        erc20: Token = self._at(token)
        await erc20.transfer(to, amount)

    async def _approve(self, token: str, spender: str, amount: int) -> None:
        await approve_token(self._env, self.address, token, spender, amount)

    async def _repay_amount(self, borrowable: str, amount_max: int, borrower: str) -> int:
        """Cap ``amount_max`` at the borrower's debt after forcing interest accrual."""
        pool: Borrowable = self._at(borrowable)
        await pool.accrue_interest()
        borrowed = pool.get_borrow_balance(borrower)
        return min(amount_max, borrowed)

    async def _repay_and_refund(
        self, borrowable: str, token: str, borrower: str, amount_max: int
    ) -> int:
        """Repay as much debt as ``amount_max`` covers and refund the rest.

        Returns the repaid amount.
        """
        amount = await self._repay_amount(borrowable, amount_max, borrower)

        await self._transfer(token, borrowable, amount)
        pool: Borrowable = self._at(borrowable)
        # Zero receiver: accounting refresh only, picks up the repayment
        await pool.borrow(borrower, ZERO_ADDRESS, 0, b"")

        refund = amount_max - amount
        if refund > 0:
            if token == self.native_token:
                weth: WrappedNative = self._at(token)
                await weth.withdraw(refund)
                await self._env.send_native(self.address, borrower, refund)
            else:
                await self._transfer(token, borrower, refund)

        logger.info(
            "Repaid %d to %s for %s, refunded %d", amount, borrowable, borrower, refund
        )
        return amount
