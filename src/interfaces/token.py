"""Fungible token protocols."""
from typing import Protocol


class Token(Protocol):
    """ERC-20 style token."""

    def balance_of(self, account: str) -> int: ...

    def allowance(self, owner: str, spender: str) -> int: ...

    async def transfer(self, to: str, amount: int) -> bool: ...

    async def approve(self, spender: str, amount: int) -> bool: ...

    async def transfer_from(self, owner: str, to: str, amount: int) -> bool: ...


class WrappedNative(Token, Protocol):
    """Token wrapping the environment's raw native asset one-to-one."""

    async def deposit(self, amount: int) -> None: ...

    async def withdraw(self, amount: int) -> None: ...
