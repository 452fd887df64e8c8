"""Lending protocol components: borrow side and collateral side."""
from typing import Protocol

from .token import Token


class Borrowable(Token, Protocol):
    """Stable-asset lending pool that calls back into the router on borrow."""

    def underlying(self) -> str: ...

    def collateral(self) -> str: ...

    def get_borrow_balance(self, borrower: str) -> int: ...

    async def accrue_interest(self) -> None: ...

    async def borrow(
        self, borrower: str, receiver: str, amount: int, data: bytes
    ) -> None: ...

    async def liquidate(self, borrower: str, liquidator: str) -> int: ...

    async def borrow_permit(
        self, owner: str, spender: str, value: int, deadline: int, signature: str
    ) -> None: ...


class Collateral(Token, Protocol):
    """Collateral-receipt token over a liquidity token."""

    def underlying(self) -> str: ...

    def exchange_rate(self) -> int: ...

    async def deposit(self, assets: int, recipient: str) -> int: ...

    async def redeem(self, shares: int, recipient: str, owner: str) -> int: ...

    async def flash_redeem_altair(
        self, redeemer: str, assets: int, data: bytes
    ) -> None: ...

    async def permit(
        self, owner: str, spender: str, value: int, deadline: int, signature: str
    ) -> None: ...
