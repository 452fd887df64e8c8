"""Lending components: the USDC borrowable pool and the LP collateral vault."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field

from ...router.math import WAD, ZERO_ADDRESS, div_wad, div_wad_up, mul_wad
from .chain import MemoryChain, Revert
from .token import MemoryToken, TokenStorage

logger = logging.getLogger(__name__)


@dataclass
class BorrowSnapshot:
    principal: int = 0
    interest_index: int = WAD


@dataclass
class BorrowableStorage(TokenStorage):
    total_balance: int = 0
    total_borrows: int = 0
    borrow_index: int = WAD
    borrow_rate: int = 0  # per second, WAD-scaled
    last_accrual: int = 0
    borrows: dict[str, BorrowSnapshot] = field(default_factory=dict)
    borrow_allowances: dict[tuple[str, str], int] = field(default_factory=dict)


@dataclass
class CollateralStorage(TokenStorage):
    total_balance: int = 0
    lp_price: int = WAD  # USDC units per LP unit, WAD-scaled
    debt_ratio: int = 8 * WAD // 10
    liquidation_incentive: int = 105 * WAD // 100


class MemoryBorrowable(MemoryToken):
    """USDC pool lending against one collateral vault.

    ``borrow`` with data hands control to ``receiver.altair_borrow`` and then
    settles whatever the receiver paid back. ``borrow`` with a zero receiver
    only settles repayments already sent to the pool.
    """

    def __init__(
        self,
        chain: MemoryChain,
        underlying: str,
        collateral: str,
        borrow_rate: int = 0,
        symbol: str = "CygUSD",
    ) -> None:
        storage = BorrowableStorage(borrow_rate=borrow_rate, last_accrual=chain.timestamp)
        super().__init__(chain, symbol, decimals=6, storage=storage)
        self._underlying = underlying
        self._collateral = collateral

    def underlying(self) -> str:
        return self._underlying

    def collateral(self) -> str:
        return self._collateral

    def total_borrows(self) -> int:
        return self.storage.total_borrows

    def get_borrow_balance(self, borrower: str) -> int:
        snapshot = self.storage.borrows.get(borrower)
        if snapshot is None or snapshot.principal == 0:
            return 0
        return snapshot.principal * self.storage.borrow_index // snapshot.interest_index

    def borrow_allowance(self, owner: str, spender: str) -> int:
        return self.storage.borrow_allowances.get((owner, spender), 0)

    def borrow_permit_message(
        self, owner: str, spender: str, value: int, deadline: int
    ) -> str:
        return (
            f"borrow-permit:{self.address}:{owner}:{spender}:{value}:{deadline}:"
            f"{self.nonce_of(owner)}"
        )

    # ------------------------------------------------------------------
    # Interest
    # ------------------------------------------------------------------

    def _accrue(self) -> None:
        s = self.storage
        elapsed = self.chain.timestamp - s.last_accrual
        if elapsed <= 0:
            return
        factor = s.borrow_rate * elapsed
        s.total_borrows += mul_wad(s.total_borrows, factor)
        s.borrow_index += mul_wad(s.borrow_index, factor)
        s.last_accrual = self.chain.timestamp

    async def accrue_interest(self) -> None:
        self._accrue()

    # ------------------------------------------------------------------
    # Lending
    # ------------------------------------------------------------------

    async def deposit(self, assets: int, recipient: str) -> int:
        """Supply USDC to the pool. Shares are minted one-to-one."""
        await self._at(self._underlying).transfer_from(self.msg_sender, self.address, assets)
        self._mint(recipient, assets)
        self.storage.total_balance += assets
        return assets

    async def borrow_approve(self, spender: str, amount: int) -> None:
        self.storage.borrow_allowances[(self.msg_sender, spender)] = amount

    async def borrow_permit(
        self, owner: str, spender: str, value: int, deadline: int, signature: str
    ) -> None:
        if self.chain.timestamp > deadline:
            raise Revert("Borrow permit expired")
        message = self.borrow_permit_message(owner, spender, value, deadline)
        if not self.chain.verify(owner, message, signature):
            raise Revert("Invalid borrow permit signature")
        self.storage.nonces[owner] = self.nonce_of(owner) + 1
        self.storage.borrow_allowances[(owner, spender)] = value

    def _spend_borrow_allowance(self, owner: str, spender: str, amount: int) -> None:
        allowed = self.borrow_allowance(owner, spender)
        if allowed < amount:
            raise Revert(f"Insufficient borrow allowance ({allowed} < {amount})")
        self.storage.borrow_allowances[(owner, spender)] = allowed - amount

    def _update_borrow(self, borrower: str, borrow_amount: int, repay_amount: int) -> None:
        s = self.storage
        current = self.get_borrow_balance(borrower)
        updated = max(current + borrow_amount - repay_amount, 0)
        s.total_borrows = max(s.total_borrows + updated - current, 0)
        s.borrows[borrower] = BorrowSnapshot(updated, s.borrow_index)

    def _cash(self) -> int:
        return self._at(self._underlying).balance_of(self.address)

    async def borrow(self, borrower: str, receiver: str, amount: int, data: bytes) -> None:
        self._accrue()
        sender = self.msg_sender
        cash_before = self.storage.total_balance

        if amount > 0:
            if receiver == ZERO_ADDRESS:
                raise Revert("Cannot borrow to the zero address")
            if amount > cash_before:
                raise Revert(f"Insufficient cash ({cash_before} < {amount})")
            if sender != borrower:
                self._spend_borrow_allowance(borrower, sender, amount)
            await self._at(self._underlying).transfer(receiver, amount)

        if receiver != ZERO_ADDRESS and data:
            await self._at(receiver).altair_borrow(sender, amount, data)

        balance = self._cash()
        repay = balance + amount - cash_before
        if repay < 0:
            raise Revert("Pool balance decreased during borrow")

        self._update_borrow(borrower, amount, repay)
        self.storage.total_balance = balance

        # Solvency is checked once the callback has posted its collateral
        if amount > 0:
            _, shortfall = self._at(self._collateral).get_account_liquidity(borrower)
            if shortfall > 0:
                raise Revert(f"Insufficient liquidity: {borrower} short by {shortfall}")
        logger.debug("Borrow %s: +%d -%d", borrower, amount, repay)

    async def liquidate(self, borrower: str, liquidator: str) -> int:
        self._accrue()
        balance = self._cash()
        repay = balance - self.storage.total_balance
        if repay <= 0:
            raise Revert("Nothing repaid")
        debt = self.get_borrow_balance(borrower)
        if repay > debt:
            raise Revert(f"Repayment exceeds debt ({repay} > {debt})")

        seize_tokens = await self._at(self._collateral).seize(liquidator, borrower, repay)
        self._update_borrow(borrower, 0, repay)
        self.storage.total_balance = balance
        logger.debug("Liquidated %s: repaid %d, seized %d", borrower, repay, seize_tokens)
        return seize_tokens


class MemoryCollateral(MemoryToken):
    """Receipt-token vault over an LP token, with flash redemption."""

    def __init__(
        self,
        chain: MemoryChain,
        underlying: str,
        symbol: str = "CygLP",
    ) -> None:
        super().__init__(chain, symbol, decimals=18, storage=CollateralStorage())
        self._underlying = underlying
        self._borrowable = ZERO_ADDRESS

    def underlying(self) -> str:
        return self._underlying

    def borrowable(self) -> str:
        return self._borrowable

    def set_borrowable(self, borrowable: str) -> None:
        self._borrowable = borrowable

    def set_risk(
        self,
        lp_price: int | None = None,
        debt_ratio: int | None = None,
        liquidation_incentive: int | None = None,
    ) -> None:
        if lp_price is not None:
            self.storage.lp_price = lp_price
        if debt_ratio is not None:
            self.storage.debt_ratio = debt_ratio
        if liquidation_incentive is not None:
            self.storage.liquidation_incentive = liquidation_incentive

    def exchange_rate(self) -> int:
        s = self.storage
        if s.total_supply == 0:
            return WAD
        return div_wad(s.total_balance, s.total_supply)

    def total_balance(self) -> int:
        return self.storage.total_balance

    # ------------------------------------------------------------------
    # Risk
    # ------------------------------------------------------------------

    def collateral_value(self, borrower: str) -> int:
        """USDC value of the borrower's position."""
        assets = mul_wad(self.balance_of(borrower), self.exchange_rate())
        return mul_wad(assets, self.storage.lp_price)

    def get_account_liquidity(self, borrower: str) -> tuple[int, int]:
        """Return ``(liquidity, shortfall)`` in USDC."""
        max_debt = mul_wad(self.collateral_value(borrower), self.storage.debt_ratio)
        debt = self._at(self._borrowable).get_borrow_balance(borrower)
        if debt > max_debt:
            return 0, debt - max_debt
        return max_debt - debt, 0

    def can_be_liquidated(self, borrower: str) -> bool:
        return self.get_account_liquidity(borrower)[1] > 0

    # ------------------------------------------------------------------
    # Vault
    # ------------------------------------------------------------------

    async def deposit(self, assets: int, recipient: str) -> int:
        if assets <= 0:
            raise Revert("Cannot deposit zero")
        shares = div_wad(assets, self.exchange_rate())
        await self._at(self._underlying).transfer_from(self.msg_sender, self.address, assets)
        self._mint(recipient, shares)
        self.storage.total_balance += assets
        return shares

    async def redeem(self, shares: int, recipient: str, owner: str) -> int:
        sender = self.msg_sender
        if sender != owner:
            self._spend_allowance(owner, sender, shares)
        assets = mul_wad(shares, self.exchange_rate())
        if assets <= 0:
            raise Revert("Cannot redeem zero")
        self._burn(owner, shares)
        self.storage.total_balance -= assets
        await self._at(self._underlying).transfer(recipient, assets)
        return assets

    async def sync(self) -> None:
        """Adopt the vault's actual LP balance, e.g. after rewards were sent in."""
        self.storage.total_balance = self._at(self._underlying).balance_of(self.address)

    async def flash_redeem_altair(self, redeemer: str, assets: int, data: bytes) -> None:
        """Send ``assets`` LP to ``redeemer`` up front; the receipt tokens covering
        them must be back in the vault when the callback returns."""
        if assets <= 0:
            raise Revert("Cannot redeem zero")
        if assets > self.storage.total_balance:
            raise Revert(f"Insufficient vault balance for {assets}")
        sender = self.msg_sender
        shares = div_wad_up(assets, self.exchange_rate())

        pair = self._at(self._underlying)
        await pair.transfer(redeemer, assets)

        if data:
            await self._at(redeemer).altair_redeem(
                sender, assets, pair.token0(), pair.token1(), data
            )

        received = self.balance_of(self.address)
        if received < shares:
            raise Revert(f"Insufficient receipt tokens returned ({received} < {shares})")
        self._burn(self.address, received)
        self.storage.total_balance -= assets

    async def seize(self, liquidator: str, borrower: str, repay_amount: int) -> int:
        if self.msg_sender != self._borrowable:
            raise Revert("Only the borrowable can seize")
        if not self.can_be_liquidated(borrower):
            raise Revert(f"{borrower} is not liquidatable")

        s = self.storage
        seize_assets = div_wad(mul_wad(repay_amount, s.liquidation_incentive), s.lp_price)
        seize_tokens = div_wad(seize_assets, self.exchange_rate())
        if seize_tokens > self.balance_of(borrower):
            raise Revert("Insufficient collateral to seize")
        self._move(borrower, liquidator, seize_tokens)
        return seize_tokens
