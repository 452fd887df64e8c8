"""Base class for in-process components."""
from __future__ import annotations

from typing import Any

from .chain import MemoryChain


class Contract:
    """An address on a :class:`MemoryChain` plus call handles to other contracts.

    Subclasses keep all mutable state in ``self.storage`` so the chain can
    roll it back.
    """

    storage: Any = None

    def __init__(self, chain: MemoryChain, label: str) -> None:
        self.chain = chain
        self.label = label
        self.address = chain.register(self, label)

    @property
    def msg_sender(self) -> str:
        return self.chain.msg_sender

    def _at(self, address: str) -> Any:
        return self.chain.at(address, self.address)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.label} {self.address}>"
