"""In-process execution environment with atomic transactions."""
from __future__ import annotations

import asyncio
import copy
import hashlib
import hmac
import inspect
import logging
import secrets
import time
from typing import Any

logger = logging.getLogger(__name__)


class Revert(Exception):
    """A component rejected a call; the enclosing transaction is rolled back."""


class CallProxy:
    """Handle on a contract whose method calls carry a fixed call origin."""

    def __init__(self, chain: MemoryChain, contract: Any, sender: str) -> None:
        self._chain = chain
        self._contract = contract
        self._sender = sender

    @property
    def address(self) -> str:
        return self._contract.address

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        attr = getattr(self._contract, name)
        if not callable(attr):
            return attr

        frames = self._chain._frames
        sender = self._sender

        if inspect.iscoroutinefunction(attr):

            async def call_async(*args: Any, **kwargs: Any) -> Any:
                frames.append(sender)
                try:
                    return await attr(*args, **kwargs)
                finally:
                    frames.pop()

            return call_async

        def call(*args: Any, **kwargs: Any) -> Any:
            frames.append(sender)
            try:
                return attr(*args, **kwargs)
            finally:
                frames.pop()

        return call


class MemoryChain:
    """Ledger-like environment: addresses, call origins, time and rollback.

    Transactions never interleave. Contract state lives in each contract's
    ``storage`` attribute and is restored wholesale when a transaction raises.
    """

    def __init__(self, chain_id: int = 31337, timestamp: int | None = None) -> None:
        self.chain_id = chain_id
        self._timestamp = int(time.time()) if timestamp is None else timestamp
        self._contracts: dict[str, Any] = {}
        self._keys: dict[str, bytes] = {}
        self._native: dict[str, int] = {}
        self._frames: list[str] = []
        self._nonce = 0
        self._lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Time
    # ------------------------------------------------------------------

    @property
    def timestamp(self) -> int:
        return self._timestamp

    def advance_time(self, seconds: int) -> None:
        self._timestamp += seconds

    # ------------------------------------------------------------------
    # Accounts and contracts
    # ------------------------------------------------------------------

    def _new_address(self, label: str) -> str:
        self._nonce += 1
        digest = hashlib.sha256(f"{self.chain_id}:{label}:{self._nonce}".encode())
        return "0x" + digest.hexdigest()[:40]

    def register(self, contract: Any, label: str) -> str:
        address = self._new_address(label)
        self._contracts[address] = contract
        logger.debug("Registered %s at %s", label, address)
        return address

    def create_account(self, label: str) -> str:
        address = self._new_address(label)
        self._keys[address] = secrets.token_bytes(32)
        return address

    def contract(self, address: str) -> Any:
        try:
            return self._contracts[address]
        except KeyError:
            raise Revert(f"No contract at {address}") from None

    def at(self, address: str, sender: str) -> CallProxy:
        return CallProxy(self, self.contract(address), sender)

    @property
    def msg_sender(self) -> str:
        if not self._frames:
            raise Revert("No active call")
        return self._frames[-1]

    # ------------------------------------------------------------------
    # Native value
    # ------------------------------------------------------------------

    def native_balance_of(self, account: str) -> int:
        return self._native.get(account, 0)

    def credit_native(self, account: str, amount: int) -> None:
        self._native[account] = self.native_balance_of(account) + amount

    def debit_native(self, account: str, amount: int) -> None:
        balance = self.native_balance_of(account)
        if balance < amount:
            raise Revert(f"Insufficient native balance: {balance} < {amount}")
        self._native[account] = balance - amount

    async def send_native(self, sender: str, to: str, amount: int) -> None:
        self.debit_native(sender, amount)
        self.credit_native(to, amount)

    # ------------------------------------------------------------------
    # Signatures
    # ------------------------------------------------------------------

    def sign(self, account: str, message: str) -> str:
        key = self._keys.get(account)
        if key is None:
            raise Revert(f"Account {account} cannot sign")
        return hmac.new(key, message.encode(), hashlib.sha256).hexdigest()

    def verify(self, account: str, message: str, signature: str) -> bool:
        key = self._keys.get(account)
        if key is None:
            return False
        expected = hmac.new(key, message.encode(), hashlib.sha256).hexdigest()
        return hmac.compare_digest(expected, signature)

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    def _snapshot(self) -> dict[str, Any]:
        storage = {
            address: copy.deepcopy(contract.storage)
            for address, contract in self._contracts.items()
            if getattr(contract, "storage", None) is not None
        }
        return {"native": dict(self._native), "storage": storage}

    def _restore(self, snapshot: dict[str, Any]) -> None:
        self._native = snapshot["native"]
        for address, storage in snapshot["storage"].items():
            self._contracts[address].storage = storage

    async def transact(
        self, sender: str, target: str, method: str, *args: Any, **kwargs: Any
    ) -> Any:
        """Call ``target.method`` from ``sender`` atomically.

        Any exception restores every contract's storage and all native
        balances to their state before the call, then propagates.
        """
        async with self._lock:
            snapshot = self._snapshot()
            try:
                result = getattr(self.at(target, sender), method)(*args, **kwargs)
                if inspect.isawaitable(result):
                    result = await result
                return result
            except Exception as e:
                self._restore(snapshot)
                self._frames.clear()
                logger.info("Transaction %s from %s reverted: %s", method, sender, e)
                raise
