"""ERC-20 style tokens and the wrapped native asset."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field

from ...router.math import MAX_UINT256
from .chain import MemoryChain, Revert
from .contract import Contract

logger = logging.getLogger(__name__)


@dataclass
class TokenStorage:
    total_supply: int = 0
    balances: dict[str, int] = field(default_factory=dict)
    allowances: dict[tuple[str, str], int] = field(default_factory=dict)
    nonces: dict[str, int] = field(default_factory=dict)


class MemoryToken(Contract):
    """Fungible token with allowances and signed permits."""

    def __init__(
        self,
        chain: MemoryChain,
        symbol: str,
        decimals: int = 18,
        storage: TokenStorage | None = None,
    ) -> None:
        super().__init__(chain, symbol)
        self.symbol = symbol
        self.decimals = decimals
        self.storage = storage if storage is not None else TokenStorage()

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def balance_of(self, account: str) -> int:
        return self.storage.balances.get(account, 0)

    def allowance(self, owner: str, spender: str) -> int:
        return self.storage.allowances.get((owner, spender), 0)

    def total_supply(self) -> int:
        return self.storage.total_supply

    def nonce_of(self, owner: str) -> int:
        return self.storage.nonces.get(owner, 0)

    def permit_message(self, owner: str, spender: str, value: int, deadline: int) -> str:
        return (
            f"permit:{self.address}:{owner}:{spender}:{value}:{deadline}:"
            f"{self.nonce_of(owner)}"
        )

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def transfer(self, to: str, amount: int) -> bool:
        self._move(self.msg_sender, to, amount)
        return True

    async def approve(self, spender: str, amount: int) -> bool:
        self.storage.allowances[(self.msg_sender, spender)] = amount
        return True

    async def transfer_from(self, owner: str, to: str, amount: int) -> bool:
        spender = self.msg_sender
        if spender != owner:
            self._spend_allowance(owner, spender, amount)
        self._move(owner, to, amount)
        return True

    async def permit(
        self, owner: str, spender: str, value: int, deadline: int, signature: str
    ) -> None:
        if self.chain.timestamp > deadline:
            raise Revert("Permit expired")
        message = self.permit_message(owner, spender, value, deadline)
        if not self.chain.verify(owner, message, signature):
            raise Revert("Invalid permit signature")
        self.storage.nonces[owner] = self.nonce_of(owner) + 1
        self.storage.allowances[(owner, spender)] = value

    def deal(self, account: str, amount: int) -> None:
        """Mint ``amount`` to ``account`` outside any transaction (setup only)."""
        self._mint(account, amount)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _mint(self, to: str, amount: int) -> None:
        self.storage.total_supply += amount
        self.storage.balances[to] = self.balance_of(to) + amount

    def _burn(self, owner: str, amount: int) -> None:
        balance = self.balance_of(owner)
        if balance < amount:
            raise Revert(f"{self.symbol}: burn exceeds balance ({balance} < {amount})")
        self.storage.balances[owner] = balance - amount
        self.storage.total_supply -= amount

    def _move(self, owner: str, to: str, amount: int) -> None:
        if amount < 0:
            raise Revert(f"{self.symbol}: negative transfer")
        balance = self.balance_of(owner)
        if balance < amount:
            raise Revert(
                f"{self.symbol}: transfer exceeds balance ({balance} < {amount})"
            )
        self.storage.balances[owner] = balance - amount
        self.storage.balances[to] = self.balance_of(to) + amount

    def _spend_allowance(self, owner: str, spender: str, amount: int) -> None:
        allowed = self.allowance(owner, spender)
        if allowed == MAX_UINT256:
            return
        if allowed < amount:
            raise Revert(
                f"{self.symbol}: insufficient allowance ({allowed} < {amount})"
            )
        self.storage.allowances[(owner, spender)] = allowed - amount


class MemoryWrappedNative(MemoryToken):
    """One-to-one wrapper over the chain's raw native value."""

    async def deposit(self, amount: int) -> None:
        sender = self.msg_sender
        self.chain.debit_native(sender, amount)
        self.chain.credit_native(self.address, amount)
        self._mint(sender, amount)

    async def withdraw(self, amount: int) -> None:
        sender = self.msg_sender
        self._burn(sender, amount)
        await self.chain.send_native(self.address, sender, amount)

    def deal(self, account: str, amount: int) -> None:
        """Mint backed ``amount`` to ``account`` outside any transaction (setup only)."""
        self.chain.credit_native(self.address, amount)
        self._mint(account, amount)
